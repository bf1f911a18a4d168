from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models import MangaStatus


class MangaBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    cover_url: Optional[str] = Field(None, description="covers 버킷 object key")
    author: Optional[str] = None
    status: MangaStatus = MangaStatus.ONGOING
    rating: float = Field(0, description="0~10 (관례, 강제하지 않음)")


class MangaCreate(MangaBase):
    genres: List[str] = Field(default_factory=list)


class MangaUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    cover_url: Optional[str] = None
    author: Optional[str] = None
    status: Optional[MangaStatus] = None
    rating: Optional[float] = None
    genres: Optional[List[str]] = None


class MangaResponse(MangaBase):
    id: int
    genres: List[str] = Field(default_factory=list)
    chapter_count: int = 0
    cover_public_url: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MangaListResponse(BaseModel):
    total: int
    items: List[MangaResponse]


class HomeFeedResponse(BaseModel):
    featured: List[MangaResponse]
    trending: List[MangaResponse]
    recent: List[MangaResponse]


class MangaLookupResponse(BaseModel):
    title: str
    description: Optional[str] = None
    genres: List[str] = Field(default_factory=list)
    status: MangaStatus
    rating: float = 0
    cover: Optional[str] = None
    author: str = "Unknown"


class ChapterCreate(BaseModel):
    number: int = Field(..., ge=0)
    title: Optional[str] = None
    pages: List[str] = Field(default_factory=list, description="pages 버킷 object key (읽는 순서)")


class ChapterUpdate(BaseModel):
    title: Optional[str] = None
    pages: Optional[List[str]] = None


class ChapterResponse(BaseModel):
    id: int
    manga_id: int
    number: int
    title: Optional[str] = None
    pages: List[str] = Field(default_factory=list)
    page_urls: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class GenreResponse(BaseModel):
    id: int
    name: str
    model_config = ConfigDict(from_attributes=True)
