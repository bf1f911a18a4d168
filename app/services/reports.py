"""Content reports and the administrator fan-out.

A report insert writes the ``manga_reports`` row and its ``admin_notifications``
row in one transaction. Once committed, the report is announced on the
out-of-band channel (``settings.admin_report_channel``) both on the event bus
and as an FCM topic message, so an external notifier can react without
polling, and the admin badge stream gets an ``admin_notification.created``.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.errors import Conflict, NotFound
from app.core.events import ADMIN_NOTIFICATIONS_TOPIC, EventBus, get_event_bus
from app.core.policies import is_admin, require_admin, require_authenticated, require_report_reader
from app.models import (
    AdminNotification,
    AdminNotificationType,
    MangaReport,
    ReportIssueType,
    ReportStatus,
    User,
)
from app.schemas.report import AdminNotificationResponse
from app.services import push
from app.services.catalog import get_manga

logger = logging.getLogger(__name__)

# 관리자 화면에서 허용하던 전이. 같은 상태 재적용은 허용.
ALLOWED_TRANSITIONS = {
    ReportStatus.PENDING: {ReportStatus.IN_PROGRESS, ReportStatus.REJECTED},
    ReportStatus.IN_PROGRESS: {ReportStatus.RESOLVED},
    ReportStatus.RESOLVED: set(),
    ReportStatus.REJECTED: set(),
}


def report_signal(report: MangaReport) -> dict:
    return {
        "report_id": report.id,
        "manga_id": report.manga_id,
        "chapter": report.chapter,
        "issue_type": report.issue_type.value,
        "description": report.description,
    }


def _announce(bus: EventBus, report: MangaReport, notification: AdminNotification) -> None:
    settings = get_settings()
    signal = report_signal(report)
    bus.publish(settings.admin_report_channel, "manga_report.created", signal)
    bus.publish(
        ADMIN_NOTIFICATIONS_TOPIC,
        "admin_notification.created",
        AdminNotificationResponse.model_validate(notification).model_dump(mode="json"),
    )
    push.try_send_to_topic(
        settings.admin_report_channel,
        "New manga report",
        f"{signal['issue_type']} on manga {signal['manga_id']} chapter {signal['chapter']}",
        signal,
    )


def submit_report(
    db: Session,
    user: Optional[User],
    manga_id: int,
    chapter: int,
    issue_type: ReportIssueType,
    description: Optional[str] = None,
    bus: Optional[EventBus] = None,
) -> MangaReport:
    user = require_authenticated(user)
    get_manga(db, manga_id)
    description = (description or "").strip() or None

    report = MangaReport(
        manga_id=manga_id,
        chapter=chapter,
        user_id=user.id,
        issue_type=ReportIssueType(issue_type),
        description=description,
        status=ReportStatus.PENDING,
        resolved_at=None,
    )
    db.add(report)
    try:
        db.flush()
        notification = AdminNotification(
            type=AdminNotificationType.MANGA_REPORT,
            data=report_signal(report),
            read=False,
        )
        db.add(notification)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("report insert on manga=%s chapter=%s rolled back", manga_id, chapter)
        raise
    db.refresh(report)
    db.refresh(notification)
    logger.info("report %s (%s) submitted by user %s", report.id, report.issue_type.value, user.id)

    try:
        _announce(bus or get_event_bus(), report, notification)
    except Exception:  # noqa: BLE001
        logger.exception("report %s committed but announcement failed", report.id)
    return report


def get_report(db: Session, user: Optional[User], report_id: int) -> MangaReport:
    report = db.query(MangaReport).filter(MangaReport.id == report_id).first()
    if not report:
        raise NotFound("Report")
    require_report_reader(user, report)
    return report


def list_reports(db: Session, user: Optional[User], status: Optional[ReportStatus] = None) -> List[MangaReport]:
    """관리자는 전체, 일반 사용자는 본인 신고만."""
    user = require_authenticated(user)
    q = db.query(MangaReport)
    if not is_admin(user):
        q = q.filter(MangaReport.user_id == user.id)
    if status is not None:
        q = q.filter(MangaReport.status == status)
    return q.order_by(MangaReport.created_at.desc(), MangaReport.id.desc()).all()


def update_report_status(
    db: Session,
    user: Optional[User],
    report_id: int,
    new_status: ReportStatus,
    now: Optional[datetime] = None,
) -> MangaReport:
    require_admin(user)
    report = db.query(MangaReport).filter(MangaReport.id == report_id).first()
    if not report:
        raise NotFound("Report")
    new_status = ReportStatus(new_status)
    current = report.status
    if new_status != current and new_status not in ALLOWED_TRANSITIONS[current]:
        raise Conflict(f"Cannot move report from {current.value} to {new_status.value}")

    report.status = new_status
    # resolved일 때만 처리 시각 기록, 그 외 상태는 비움
    if new_status != ReportStatus.RESOLVED:
        report.resolved_at = None
    elif current != ReportStatus.RESOLVED or report.resolved_at is None:
        report.resolved_at = now or datetime.utcnow()
    db.commit()
    db.refresh(report)
    logger.info("report %s: %s -> %s by admin %s", report.id, current.value, new_status.value, user.id)
    return report
