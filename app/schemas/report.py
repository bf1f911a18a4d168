from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models import AdminNotificationType, ReportIssueType, ReportStatus


class ReportCreate(BaseModel):
    issue_type: ReportIssueType
    description: Optional[str] = Field(None, max_length=2000)


class ReportStatusUpdate(BaseModel):
    status: ReportStatus


class ReportResponse(BaseModel):
    id: int
    manga_id: int
    chapter: int
    user_id: int
    issue_type: ReportIssueType
    description: Optional[str] = None
    status: ReportStatus
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class AdminNotificationResponse(BaseModel):
    id: int
    type: AdminNotificationType
    data: Dict[str, Any]
    read: bool
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)
