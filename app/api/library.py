from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.database import get_db
from app.models import LibraryStatus, User
from app.schemas.library import LibraryEntryResponse, LibraryResponse, LibraryUpsert, ProgressUpdate
from app.services import library as library_service

router = APIRouter(prefix="/library", tags=["library"])


@router.get("", response_model=LibraryResponse, summary="내 서재 (상태 필터)")
def list_my_library(
    status_filter: Optional[LibraryStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    total, items = library_service.list_entries(db, current_user, status=status_filter, limit=limit, offset=offset)
    return {"total": total, "items": items}


@router.get("/{manga_id}", response_model=LibraryEntryResponse)
def get_library_entry(manga_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return library_service.get_entry(db, current_user, manga_id)


@router.put("/{manga_id}", response_model=LibraryEntryResponse, summary="서재에 추가 / 상태 변경")
def upsert_library_entry(
    manga_id: int,
    payload: LibraryUpsert,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return library_service.upsert_entry(db, current_user, manga_id, payload.status, payload.current_chapter)


@router.patch("/{manga_id}/progress", response_model=LibraryEntryResponse, summary="읽은 챕터 갱신")
def update_progress(
    manga_id: int,
    payload: ProgressUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return library_service.update_progress(db, current_user, manga_id, payload.current_chapter)


@router.delete("/{manga_id}", status_code=status.HTTP_204_NO_CONTENT, summary="서재에서 제거")
def remove_library_entry(manga_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    library_service.remove_entry(db, current_user, manga_id)
