from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.database import get_db
from app.models import User
from app.schemas.manga import ChapterCreate, ChapterResponse, ChapterUpdate
from app.services import catalog

router = APIRouter(prefix="/manga/{manga_id}/chapters", tags=["chapters"])


@router.get("", response_model=List[ChapterResponse], summary="챕터 목록 (번호순)")
def list_chapters(manga_id: int, db: Session = Depends(get_db)):
    return catalog.list_chapters(db, manga_id)


@router.get("/{number}", response_model=ChapterResponse, summary="챕터 페이지 목록")
def get_chapter(manga_id: int, number: int, db: Session = Depends(get_db)):
    return catalog.get_chapter(db, manga_id, number)


@router.post("", response_model=ChapterResponse, status_code=status.HTTP_201_CREATED)
def create_chapter(
    manga_id: int,
    payload: ChapterCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return catalog.create_chapter(db, current_user, manga_id, payload)


@router.patch("/{number}", response_model=ChapterResponse)
def update_chapter(
    manga_id: int,
    number: int,
    payload: ChapterUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return catalog.update_chapter(db, current_user, manga_id, number, payload)


@router.delete("/{number}", status_code=status.HTTP_204_NO_CONTENT)
def delete_chapter(
    manga_id: int,
    number: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    catalog.delete_chapter(db, current_user, manga_id, number)
