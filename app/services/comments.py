"""Chapter comments, comment subscriptions and the subscriber fan-out.

Posting a comment and creating the subscribers' notifications happen in one
transaction: the comment is flushed, the matching subscriptions (minus the
author) are turned into unread ``CommentNotification`` rows, then everything
commits together. Realtime events and device pushes go out only after that
commit succeeds, so a rolled-back comment never reaches a client.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import NotFound, ValidationFailed
from app.core.events import EventBus, comment_notifications_topic, comments_topic, get_event_bus
from app.core.policies import require_authenticated, require_self
from app.models import Comment, CommentNotification, CommentSubscription, User
from app.schemas.comment import CommentNotificationResponse, CommentResponse
from app.services import push
from app.services.catalog import get_manga

logger = logging.getLogger(__name__)


def _clean_content(content: Optional[str]) -> str:
    content = (content or "").strip()
    if not content:
        raise ValidationFailed("Comment must not be empty")
    return content


def comment_payload(comment: Comment) -> dict:
    return CommentResponse.model_validate(comment).model_dump(mode="json")


def fan_out_comment(db: Session, comment: Comment) -> List[CommentNotification]:
    """Insert one unread notification per subscriber of the thread, author excluded.

    Runs inside the caller's transaction; nothing is committed here.
    """
    subscriber_ids = [
        user_id
        for (user_id,) in db.query(CommentSubscription.user_id)
        .filter(
            CommentSubscription.manga_id == comment.manga_id,
            CommentSubscription.chapter == comment.chapter,
            CommentSubscription.user_id != comment.user_id,
        )
        .order_by(CommentSubscription.user_id.asc())
        .all()
    ]
    notifications = [
        CommentNotification(user_id=user_id, comment_id=comment.id, read=False)
        for user_id in subscriber_ids
    ]
    db.add_all(notifications)
    db.flush()
    return notifications


def _publish_comment(db: Session, bus: EventBus, comment: Comment, notifications: List[CommentNotification]) -> None:
    payload = comment_payload(comment)
    bus.publish(comments_topic(comment.manga_id, comment.chapter), "comment.created", payload)
    for n in notifications:
        bus.publish(
            comment_notifications_topic(n.user_id),
            "comment_notification.created",
            {"id": n.id, "user_id": n.user_id, "comment_id": n.comment_id, "read": n.read, "comment": payload},
        )
    if not notifications:
        return
    tokens = (
        db.query(User.fcm_token)
        .filter(User.id.in_([n.user_id for n in notifications]), User.fcm_token.isnot(None))
        .all()
    )
    for (token,) in tokens:
        push.try_send_to_token(
            token,
            "New comment",
            comment.content[:100],
            {"manga_id": comment.manga_id, "chapter": comment.chapter, "comment_id": comment.id},
        )


def post_comment(
    db: Session,
    user: Optional[User],
    manga_id: int,
    chapter: int,
    content: str,
    bus: Optional[EventBus] = None,
) -> Comment:
    user = require_authenticated(user)
    content = _clean_content(content)
    get_manga(db, manga_id)

    comment = Comment(
        manga_id=manga_id,
        chapter=chapter,
        user_id=user.id,
        user_email=user.email,
        content=content,
    )
    db.add(comment)
    try:
        db.flush()
        notifications = fan_out_comment(db, comment)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("comment insert on manga=%s chapter=%s rolled back", manga_id, chapter)
        raise
    db.refresh(comment)
    logger.info(
        "comment %s on manga=%s chapter=%s notified %d subscriber(s)",
        comment.id, manga_id, chapter, len(notifications),
    )

    try:
        _publish_comment(db, bus or get_event_bus(), comment, notifications)
    except Exception:  # noqa: BLE001
        logger.exception("comment %s committed but realtime publish failed", comment.id)
    return comment


def list_comments(db: Session, manga_id: int, chapter: int, limit: int = 100, offset: int = 0) -> List[Comment]:
    return (
        db.query(Comment)
        .filter(Comment.manga_id == manga_id, Comment.chapter == chapter)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def _get_comment(db: Session, comment_id: int) -> Comment:
    comment = db.query(Comment).filter(Comment.id == comment_id).first()
    if not comment:
        raise NotFound("Comment")
    return comment


def update_comment(db: Session, user: Optional[User], comment_id: int, content: str) -> Comment:
    comment = _get_comment(db, comment_id)
    require_self(user, comment.user_id)
    comment.content = _clean_content(content)
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, user: Optional[User], comment_id: int) -> None:
    comment = _get_comment(db, comment_id)
    require_self(user, comment.user_id)
    # 알림 행도 같은 트랜잭션에서 삭제 (sqlite는 FK CASCADE 미적용)
    db.query(CommentNotification).filter(CommentNotification.comment_id == comment.id).delete(
        synchronize_session=False
    )
    db.delete(comment)
    db.commit()


# =========================
# 구독
# =========================


def _subscription(db: Session, user_id: int, manga_id: int, chapter: int) -> Optional[CommentSubscription]:
    return (
        db.query(CommentSubscription)
        .filter(
            CommentSubscription.user_id == user_id,
            CommentSubscription.manga_id == manga_id,
            CommentSubscription.chapter == chapter,
        )
        .first()
    )


def is_subscribed(db: Session, user: Optional[User], manga_id: int, chapter: int) -> bool:
    user = require_authenticated(user)
    return _subscription(db, user.id, manga_id, chapter) is not None


def subscribe(db: Session, user: Optional[User], manga_id: int, chapter: int) -> None:
    """Idempotent: an existing row (or a PK collision from a concurrent insert) means already subscribed."""
    user = require_authenticated(user)
    require_self(user, user.id)
    get_manga(db, manga_id)
    if _subscription(db, user.id, manga_id, chapter) is not None:
        return
    db.add(CommentSubscription(user_id=user.id, manga_id=manga_id, chapter=chapter))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("subscription (%s, %s, %s) already exists", user.id, manga_id, chapter)


def unsubscribe(db: Session, user: Optional[User], manga_id: int, chapter: int) -> None:
    user = require_authenticated(user)
    require_self(user, user.id)
    (
        db.query(CommentSubscription)
        .filter(
            CommentSubscription.user_id == user.id,
            CommentSubscription.manga_id == manga_id,
            CommentSubscription.chapter == chapter,
        )
        .delete(synchronize_session=False)
    )
    db.commit()


# =========================
# 댓글 알림
# =========================


def list_notifications(
    db: Session,
    user: Optional[User],
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[int, List[CommentNotification]]:
    user = require_authenticated(user)
    q = (
        db.query(CommentNotification)
        .options(selectinload(CommentNotification.comment))
        .filter(CommentNotification.user_id == user.id)
    )
    if unread_only:
        q = q.filter(CommentNotification.read == False)  # noqa: E712
    total = q.count()
    rows = (
        q.order_by(CommentNotification.created_at.desc(), CommentNotification.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return total, rows


def unread_count(db: Session, user: Optional[User]) -> int:
    user = require_authenticated(user)
    return (
        db.query(CommentNotification)
        .filter(CommentNotification.user_id == user.id, CommentNotification.read == False)  # noqa: E712
        .count()
    )


def mark_notification_read(
    db: Session,
    user: Optional[User],
    notification_id: int,
    bus: Optional[EventBus] = None,
) -> CommentNotification:
    """Idempotent: an already-read notification stays read and is returned as is."""
    n = db.query(CommentNotification).filter(CommentNotification.id == notification_id).first()
    if not n:
        raise NotFound("Notification")
    require_self(user, n.user_id)
    if n.read:
        return n
    n.read = True
    db.commit()
    db.refresh(n)
    try:
        (bus or get_event_bus()).publish(
            comment_notifications_topic(n.user_id),
            "comment_notification.read",
            CommentNotificationResponse.model_validate(n).model_dump(mode="json", exclude={"comment"}),
        )
    except Exception:  # noqa: BLE001
        logger.exception("notification %s marked read but realtime publish failed", n.id)
    return n
