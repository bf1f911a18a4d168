from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.auth import get_admin_user, get_current_user
from app.database import get_db
from app.models import MangaStatus, User
from app.schemas.manga import (
    HomeFeedResponse,
    MangaCreate,
    MangaListResponse,
    MangaLookupResponse,
    MangaResponse,
    MangaUpdate,
)
from app.services import catalog
from app.services.manga_metadata import get_client

router = APIRouter(prefix="/manga", tags=["manga"])


@router.get("", response_model=MangaListResponse, summary="작품 목록 (필터/정렬)")
def list_manga(
    status_filter: Optional[MangaStatus] = Query(None, alias="status"),
    genres: Optional[str] = Query(None, description="장르 다중 선택: Action,Drama"),
    sort: str = Query("latest", pattern="^(latest|rating|title_asc|title_desc)$"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    genre_list = [g.strip() for g in genres.split(",") if g.strip()] if genres else None
    total, items = catalog.list_mangas(db, status=status_filter, genres=genre_list, sort=sort, limit=limit, offset=offset)
    return {"total": total, "items": items}


@router.get("/home", response_model=HomeFeedResponse, summary="홈 화면: 추천/트렌딩/최근 업데이트")
def home(db: Session = Depends(get_db)):
    return catalog.home_feed(db)


@router.get("/lookup", response_model=Optional[MangaLookupResponse], summary="외부 메타데이터로 등록 폼 채우기")
def lookup(
    title: str = Query(..., min_length=1),
    admin: User = Depends(get_admin_user),
):
    # 조회 실패는 치명적이지 않음: null 반환, 폼은 빈 칸 유지
    return get_client().search_manga(title)


@router.get("/{manga_id}", response_model=MangaResponse)
def get_manga(manga_id: int, db: Session = Depends(get_db)):
    return catalog.get_manga_detail(db, manga_id)


@router.post("", response_model=MangaResponse, status_code=status.HTTP_201_CREATED, summary="작품 등록(관리자)")
def create_manga(
    payload: MangaCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return catalog.create_manga(db, current_user, payload)


@router.patch("/{manga_id}", response_model=MangaResponse, summary="작품 수정(관리자/등록자)")
def update_manga(
    manga_id: int,
    payload: MangaUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return catalog.update_manga(db, current_user, manga_id, payload)


@router.delete("/{manga_id}", status_code=status.HTTP_204_NO_CONTENT, summary="작품 삭제(관리자/등록자)")
def delete_manga(
    manga_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    catalog.delete_manga(db, current_user, manga_id)
