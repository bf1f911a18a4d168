"""WebSocket side of the event bus.

Each connection subscribes before it is accepted, so anything committed after
the handshake is delivered. Clients reconnect with ``?since=<last seq>`` to
replay what they missed; ``{"type": "replay_gap"}`` means the buffer no longer
holds everything and the client should refetch over HTTP. Sending ``ping``
gets ``{"type": "pong"}`` back with the current seq.
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from app.core.auth import user_from_token
from app.core.config import get_settings
from app.core.events import (
    ADMIN_NOTIFICATIONS_TOPIC,
    EventBus,
    Subscription,
    comment_notifications_topic,
    comments_topic,
    get_event_bus,
    topic_filter,
)
from app.core.policies import require_admin
from app.database import get_db
from app.models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["realtime"])


async def _authenticate(websocket: WebSocket, db: Session, token: Optional[str], admin: bool = False) -> Optional[User]:
    """Resolve the ``token`` query param; closes with 1008 and returns None when refused."""
    try:
        if not token:
            raise HTTPException(status_code=401, detail="Not authenticated")
        user = user_from_token(db, token)
        if admin:
            require_admin(user)
        return user
    except HTTPException as e:
        logger.info("realtime connection refused: %s", e.detail)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None


async def _pump(websocket: WebSocket, bus: EventBus, sub: Subscription) -> None:
    tick = get_settings().realtime_tick_seconds
    try:
        await websocket.accept()
        while True:
            if sub.take_replay_gap():
                await websocket.send_json({"type": "replay_gap", "seq": bus.last_seq})
            for event in sub.drain():
                await websocket.send_json(event.to_message())
            try:
                text = await asyncio.wait_for(websocket.receive_text(), timeout=tick)
            except asyncio.TimeoutError:
                continue
            if text.strip().lower() == "ping":
                await websocket.send_json({"type": "pong", "seq": bus.last_seq})
    except WebSocketDisconnect:
        pass
    finally:
        bus.unsubscribe(sub)
        logger.debug("realtime subscriber left (last_seq=%s)", sub.last_seq)


@router.websocket("/comments/{manga_id}/{chapter}")
async def comments_feed(
    websocket: WebSocket,
    manga_id: int,
    chapter: int,
    since: Optional[int] = Query(None, ge=0),
):
    # 댓글 목록은 공개
    bus = get_event_bus()
    sub = bus.subscribe(topic_filter(comments_topic(manga_id, chapter)), since=since)
    await _pump(websocket, bus, sub)


@router.websocket("/notifications")
async def my_notifications_feed(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    since: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
):
    user = await _authenticate(websocket, db, token)
    if user is None:
        return
    bus = get_event_bus()
    sub = bus.subscribe(topic_filter(comment_notifications_topic(user.id)), since=since)
    await _pump(websocket, bus, sub)


@router.websocket("/admin")
async def admin_feed(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    since: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
):
    user = await _authenticate(websocket, db, token, admin=True)
    if user is None:
        return
    bus = get_event_bus()
    sub = bus.subscribe(
        topic_filter(ADMIN_NOTIFICATIONS_TOPIC, get_settings().admin_report_channel),
        since=since,
    )
    await _pump(websocket, bus, sub)
