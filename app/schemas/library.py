from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models import LibraryStatus, MangaStatus


class LibraryUpsert(BaseModel):
    status: LibraryStatus = LibraryStatus.READING
    current_chapter: Optional[int] = Field(None, ge=0, description="생략 시 기존 값 유지 (없으면 1)")


class ProgressUpdate(BaseModel):
    current_chapter: int = Field(..., ge=0)


class LibraryEntryResponse(BaseModel):
    user_id: int
    manga_id: int
    status: LibraryStatus
    current_chapter: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class LibraryItem(LibraryEntryResponse):
    # user_library_view 와 같은 조인 결과
    manga_title: str
    cover_url: Optional[str] = None
    author: Optional[str] = None
    manga_status: MangaStatus
    rating: float = 0


class LibraryResponse(BaseModel):
    total: int
    items: List[LibraryItem]
