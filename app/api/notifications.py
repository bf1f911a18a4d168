from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.auth import get_current_user
from app.models import User
from app.schemas.comment import (
    CommentNotificationList,
    CommentNotificationResponse,
    TokenUpdateRequest,
    UnreadCount,
)
from app.services import comments as comment_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/register-token")
def register_token(payload: TokenUpdateRequest, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    current_user.fcm_token = payload.fcm_token
    db.add(current_user)
    db.commit()
    return {"ok": True}


@router.get("/comments", response_model=CommentNotificationList, summary="내 댓글 알림")
def list_comment_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    total, rows = comment_service.list_notifications(db, current_user, unread_only=unread_only, limit=limit, offset=offset)
    return {"total": total, "items": rows}


@router.get("/comments/unread-count", response_model=UnreadCount)
def comment_unread_count(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return UnreadCount(unread=comment_service.unread_count(db, current_user))


@router.post("/comments/{notification_id}/read", response_model=CommentNotificationResponse, summary="읽음 처리 (멱등)")
def mark_comment_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return comment_service.mark_notification_read(db, current_user, notification_id)
