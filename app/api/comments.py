from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.database import get_db
from app.models import User
from app.schemas.comment import CommentCreate, CommentResponse, CommentUpdate, SubscriptionStatus
from app.services import comments as comment_service

router = APIRouter(tags=["comments"])


@router.get(
    "/manga/{manga_id}/chapters/{chapter}/comments",
    response_model=List[CommentResponse],
    summary="챕터 댓글 (최신순)",
)
def list_comments(
    manga_id: int,
    chapter: int,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return comment_service.list_comments(db, manga_id, chapter, limit=limit, offset=offset)


@router.post(
    "/manga/{manga_id}/chapters/{chapter}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="댓글 작성 (구독자에게 알림 생성)",
)
def post_comment(
    manga_id: int,
    chapter: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return comment_service.post_comment(db, current_user, manga_id, chapter, payload.content)


@router.patch("/comments/{comment_id}", response_model=CommentResponse, summary="내 댓글 수정")
def update_comment(
    comment_id: int,
    payload: CommentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return comment_service.update_comment(db, current_user, comment_id, payload.content)


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT, summary="내 댓글 삭제")
def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment_service.delete_comment(db, current_user, comment_id)


@router.get(
    "/manga/{manga_id}/chapters/{chapter}/subscription",
    response_model=SubscriptionStatus,
    summary="댓글 알림 구독 여부",
)
def get_subscription(
    manga_id: int,
    chapter: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    subscribed = comment_service.is_subscribed(db, current_user, manga_id, chapter)
    return SubscriptionStatus(manga_id=manga_id, chapter=chapter, subscribed=subscribed)


@router.put(
    "/manga/{manga_id}/chapters/{chapter}/subscription",
    response_model=SubscriptionStatus,
    summary="댓글 알림 구독 (중복 호출 무해)",
)
def subscribe(
    manga_id: int,
    chapter: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment_service.subscribe(db, current_user, manga_id, chapter)
    return SubscriptionStatus(manga_id=manga_id, chapter=chapter, subscribed=True)


@router.delete(
    "/manga/{manga_id}/chapters/{chapter}/subscription",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="댓글 알림 구독 해제 (없으면 no-op)",
)
def unsubscribe(
    manga_id: int,
    chapter: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    comment_service.unsubscribe(db, current_user, manga_id, chapter)
