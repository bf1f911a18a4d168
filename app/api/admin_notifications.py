from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import get_admin_user
from app.database import get_db
from app.models import User
from app.schemas.comment import UnreadCount
from app.schemas.report import AdminNotificationResponse
from app.services import admin_notifications as admin_notification_service

router = APIRouter(prefix="/admin/notifications", tags=["admin"])


@router.get("", response_model=List[AdminNotificationResponse])
def list_admin_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    return admin_notification_service.list_admin_notifications(db, admin, unread_only=unread_only, limit=limit)


@router.get("/unread-count", response_model=UnreadCount, summary="관리자 배지 카운트")
def admin_unread_count(db: Session = Depends(get_db), admin: User = Depends(get_admin_user)):
    return UnreadCount(unread=admin_notification_service.unread_admin_count(db, admin))


@router.post("/{notification_id}/read", response_model=AdminNotificationResponse, summary="읽음 처리 (멱등)")
def mark_read(notification_id: int, db: Session = Depends(get_db), admin: User = Depends(get_admin_user)):
    return admin_notification_service.mark_admin_notification_read(db, admin, notification_id)
