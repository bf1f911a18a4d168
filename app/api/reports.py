from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth import get_admin_user, get_current_user
from app.database import get_db
from app.models import ReportStatus, User
from app.schemas.report import ReportCreate, ReportResponse, ReportStatusUpdate
from app.services import reports as report_service

router = APIRouter(tags=["reports"])


@router.post(
    "/manga/{manga_id}/chapters/{chapter}/reports",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="챕터 문제 신고",
)
def submit_report(
    manga_id: int,
    chapter: int,
    payload: ReportCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return report_service.submit_report(
        db,
        current_user,
        manga_id,
        chapter,
        payload.issue_type,
        payload.description,
    )


@router.get("/reports/me", response_model=List[ReportResponse], summary="내 신고 목록")
def my_reports(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return report_service.list_reports(db, current_user)


@router.get("/reports", response_model=List[ReportResponse], summary="전체 신고 목록(관리자)")
def list_all_reports(
    status_filter: Optional[ReportStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin_user),
):
    return report_service.list_reports(db, admin, status=status_filter)


@router.get("/reports/{report_id}", response_model=ReportResponse, summary="신고 상세 (신고자/관리자)")
def get_report(report_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return report_service.get_report(db, current_user, report_id)


@router.patch(
    "/reports/{report_id}/status",
    response_model=ReportResponse,
    summary="신고 상태 변경(관리자, 허용되지 않은 전이는 409)",
    description="pending→in_progress, in_progress→resolved, pending→rejected 만 허용. 같은 상태 재적용은 그대로 통과.",
)
def update_report_status(
    report_id: int,
    payload: ReportStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return report_service.update_report_status(db, current_user, report_id, payload.status)
