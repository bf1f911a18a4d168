import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.core.events import ADMIN_NOTIFICATIONS_TOPIC, EventBus, get_event_bus
from app.core.policies import require_admin
from app.models import AdminNotification, User
from app.schemas.report import AdminNotificationResponse

logger = logging.getLogger(__name__)


def list_admin_notifications(
    db: Session,
    user: Optional[User],
    unread_only: bool = False,
    limit: int = 100,
) -> List[AdminNotification]:
    require_admin(user)
    q = db.query(AdminNotification)
    if unread_only:
        q = q.filter(AdminNotification.read == False)  # noqa: E712
    return q.order_by(AdminNotification.created_at.desc(), AdminNotification.id.desc()).limit(limit).all()


def unread_admin_count(db: Session, user: Optional[User]) -> int:
    """관리자 배지 초기값. 이후는 realtime 이벤트로 증감."""
    require_admin(user)
    return db.query(AdminNotification).filter(AdminNotification.read == False).count()  # noqa: E712


def mark_admin_notification_read(
    db: Session,
    user: Optional[User],
    notification_id: int,
    bus: Optional[EventBus] = None,
) -> AdminNotification:
    require_admin(user)
    n = db.query(AdminNotification).filter(AdminNotification.id == notification_id).first()
    if not n:
        raise NotFound("Notification")
    if n.read:
        return n
    n.read = True
    db.commit()
    db.refresh(n)
    try:
        (bus or get_event_bus()).publish(
            ADMIN_NOTIFICATIONS_TOPIC,
            "admin_notification.read",
            AdminNotificationResponse.model_validate(n).model_dump(mode="json"),
        )
    except Exception:  # noqa: BLE001
        logger.exception("admin notification %s marked read but realtime publish failed", n.id)
    return n
