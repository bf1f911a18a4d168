from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=5000)


class CommentUpdate(BaseModel):
    content: str = Field(..., max_length=5000)


class CommentResponse(BaseModel):
    id: int
    manga_id: int
    chapter: int
    user_id: int
    user_email: str
    content: str
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class SubscriptionStatus(BaseModel):
    manga_id: int
    chapter: int
    subscribed: bool


class CommentNotificationResponse(BaseModel):
    id: int
    user_id: int
    comment_id: int
    read: bool
    created_at: Optional[datetime] = None
    comment: Optional[CommentResponse] = None
    model_config = ConfigDict(from_attributes=True)


class UnreadCount(BaseModel):
    unread: int


class TokenUpdateRequest(BaseModel):
    fcm_token: str


class CommentNotificationList(BaseModel):
    total: int
    items: List[CommentNotificationResponse]
