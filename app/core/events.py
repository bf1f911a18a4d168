"""In-process event bus for realtime delivery.

Publishers emit typed events after their transaction commits. Every connected
client owns a ``Subscription`` (topic filter + private queue) that its
connection loop drains once per tick. Events carry a global, strictly
increasing ``seq``; the bus keeps the last ``replay_size`` events so a client
that reconnects with ``since=<last seen seq>`` gets what it missed. Delivery
is at-least-once, so subscriptions drop any seq they already handed out and
clients are expected to dedup on ``seq`` as well.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional

from .config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    seq: int
    topic: str
    type: str
    payload: Dict[str, Any]
    created_at: datetime

    def to_message(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "topic": self.topic,
            "type": self.type,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
        }


EventFilter = Callable[[Event], bool]


def topic_filter(*topics: str) -> EventFilter:
    wanted = set(topics)
    return lambda event: event.topic in wanted


# 토픽 이름 규칙
def comments_topic(manga_id: int, chapter: int) -> str:
    return f"comments:{manga_id}:{chapter}"


def comment_notifications_topic(user_id: int) -> str:
    return f"comment_notifications:{user_id}"


ADMIN_NOTIFICATIONS_TOPIC = "admin_notifications"


@dataclass(eq=False)
class Subscription:
    predicate: EventFilter
    last_seq: int = 0
    # since가 버퍼보다 오래되었거나 큐가 넘쳐 일부 이벤트가 유실된 경우
    replay_gap: bool = False
    max_pending: int = 1000
    _queue: Deque[Event] = field(default_factory=deque)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def offer(self, event: Event) -> None:
        if not self.predicate(event):
            return
        with self._lock:
            if len(self._queue) >= self.max_pending:
                # 읽지 않는 클라이언트: 오래된 것부터 버리고 gap 표시
                self._queue.popleft()
                self.replay_gap = True
            self._queue.append(event)

    def take_replay_gap(self) -> bool:
        """Return and clear the gap flag."""
        with self._lock:
            gap, self.replay_gap = self.replay_gap, False
        return gap

    def drain(self) -> List[Event]:
        with self._lock:
            pending = sorted(self._queue, key=lambda e: e.seq)
            self._queue.clear()
        delivered: List[Event] = []
        for event in pending:
            if event.seq <= self.last_seq:
                continue
            self.last_seq = event.seq
            delivered.append(event)
        return delivered


class EventBus:
    def __init__(self, replay_size: int = 500, queue_size: int = 1000):
        self._lock = threading.Lock()
        self._queue_size = queue_size
        self._seq = 0
        self._buffer: Deque[Event] = deque(maxlen=replay_size)
        self._subscriptions: List[Subscription] = []

    @property
    def last_seq(self) -> int:
        return self._seq

    def publish(self, topic: str, type: str, payload: Dict[str, Any]) -> Event:
        with self._lock:
            self._seq += 1
            event = Event(
                seq=self._seq,
                topic=topic,
                type=type,
                payload=payload,
                created_at=datetime.now(timezone.utc),
            )
            self._buffer.append(event)
            # 락 안에서 넣어야 구독자 큐가 seq 순서를 유지한다
            for sub in self._subscriptions:
                sub.offer(event)
            count = len(self._subscriptions)
        logger.debug("event %s %s seq=%s -> %d subscriber(s)", topic, type, event.seq, count)
        return event

    def subscribe(self, predicate: EventFilter, since: Optional[int] = None) -> Subscription:
        """Register a subscriber; with ``since`` the buffered events after it are queued first."""
        with self._lock:
            sub = Subscription(predicate=predicate, last_seq=since or 0, max_pending=self._queue_size)
            if since is not None and since > self._seq:
                # 서버 재시작 등으로 seq가 초기화된 경우: 처음부터 다시 받도록
                sub.replay_gap = True
                sub.last_seq = self._seq
            elif since is not None:
                oldest = self._buffer[0].seq if self._buffer else self._seq + 1
                sub.replay_gap = since < oldest - 1
                for event in self._buffer:
                    if event.seq > since:
                        sub.offer(event)
            else:
                # 새 구독자는 현재 시점 이후만 받는다
                sub.last_seq = self._seq
            self._subscriptions.append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)


_bus: Optional[EventBus] = None
_bus_lock = threading.Lock()


def get_event_bus() -> EventBus:
    global _bus
    if _bus is None:
        with _bus_lock:
            if _bus is None:
                settings = get_settings()
                _bus = EventBus(
                    replay_size=settings.realtime_replay_size,
                    queue_size=settings.realtime_queue_size,
                )
    return _bus
