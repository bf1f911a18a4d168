from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.core.policies import require_self
from app.models import LibraryEntry, LibraryStatus, Manga, User
from app.services.catalog import get_manga


def _entry(db: Session, user_id: int, manga_id: int) -> Optional[LibraryEntry]:
    return (
        db.query(LibraryEntry)
        .filter(LibraryEntry.user_id == user_id, LibraryEntry.manga_id == manga_id)
        .first()
    )


def get_entry(db: Session, user: User, manga_id: int, owner_id: Optional[int] = None) -> LibraryEntry:
    owner_id = user.id if owner_id is None else owner_id
    require_self(user, owner_id)
    entry = _entry(db, owner_id, manga_id)
    if not entry:
        raise NotFound("Library entry")
    return entry


def upsert_entry(
    db: Session,
    user: User,
    manga_id: int,
    status: LibraryStatus,
    current_chapter: Optional[int] = None,
) -> LibraryEntry:
    """(user, manga)당 1행. 진행 챕터를 안 주면 기존 값, 없으면 1."""
    require_self(user, user.id)
    get_manga(db, manga_id)
    entry = _entry(db, user.id, manga_id)
    if entry is None:
        entry = LibraryEntry(
            user_id=user.id,
            manga_id=manga_id,
            status=status,
            current_chapter=current_chapter if current_chapter is not None else 1,
        )
        db.add(entry)
    else:
        entry.status = status
        if current_chapter is not None:
            entry.current_chapter = current_chapter
    db.commit()
    db.refresh(entry)
    return entry


def update_progress(db: Session, user: User, manga_id: int, current_chapter: int) -> LibraryEntry:
    entry = get_entry(db, user, manga_id)
    entry.current_chapter = current_chapter
    db.commit()
    db.refresh(entry)
    return entry


def remove_entry(db: Session, user: User, manga_id: int) -> None:
    require_self(user, user.id)
    (
        db.query(LibraryEntry)
        .filter(LibraryEntry.user_id == user.id, LibraryEntry.manga_id == manga_id)
        .delete(synchronize_session=False)
    )
    db.commit()


def list_entries(
    db: Session,
    user: User,
    status: Optional[LibraryStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[int, List[dict]]:
    require_self(user, user.id)
    q = (
        db.query(LibraryEntry, Manga)
        .join(Manga, Manga.id == LibraryEntry.manga_id)
        .filter(LibraryEntry.user_id == user.id)
    )
    if status is not None:
        q = q.filter(LibraryEntry.status == status)
    total = q.count()
    rows = q.order_by(LibraryEntry.updated_at.desc(), LibraryEntry.manga_id.desc()).offset(offset).limit(limit).all()
    items = []
    for entry, manga in rows:
        items.append(
            {
                "user_id": entry.user_id,
                "manga_id": entry.manga_id,
                "status": entry.status,
                "current_chapter": entry.current_chapter,
                "created_at": entry.created_at,
                "updated_at": entry.updated_at,
                "manga_title": manga.title,
                "cover_url": manga.cover_url,
                "author": manga.author,
                "manga_status": manga.status,
                "rating": manga.rating or 0,
            }
        )
    return total, items
