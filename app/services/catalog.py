import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import Conflict, NotFound
from app.core.policies import require_admin, require_manga_manager
from app.models import (
    DEFAULT_GENRES,
    Chapter,
    Genre,
    Manga,
    MangaGenre,
    MangaStatus,
    User,
)
from app.schemas.manga import ChapterCreate, ChapterUpdate, MangaCreate, MangaUpdate
from app.services.storage import public_url

logger = logging.getLogger(__name__)

SORTS = {
    "latest": Manga.created_at.desc(),
    "rating": Manga.rating.desc(),
    "title_asc": Manga.title.asc(),
    "title_desc": Manga.title.desc(),
}

TRENDING_WINDOW_DAYS = 7


def _chapter_counts(db: Session, manga_ids: Iterable[int]) -> Dict[int, int]:
    ids = list(manga_ids)
    if not ids:
        return {}
    rows = (
        db.query(Chapter.manga_id, func.count(Chapter.id))
        .filter(Chapter.manga_id.in_(ids))
        .group_by(Chapter.manga_id)
        .all()
    )
    return {manga_id: count for manga_id, count in rows}


def manga_to_dict(manga: Manga, chapter_count: int = 0) -> dict:
    return {
        "id": manga.id,
        "title": manga.title,
        "description": manga.description,
        "cover_url": manga.cover_url,
        "cover_public_url": public_url("covers", manga.cover_url),
        "author": manga.author,
        "status": manga.status,
        "rating": manga.rating or 0,
        "genres": manga.genre_names,
        "chapter_count": chapter_count,
        "created_by": manga.created_by,
        "created_at": manga.created_at,
        "updated_at": manga.updated_at,
    }


def _to_dicts(db: Session, mangas: List[Manga]) -> List[dict]:
    counts = _chapter_counts(db, (m.id for m in mangas))
    return [manga_to_dict(m, counts.get(m.id, 0)) for m in mangas]


def _base_query(db: Session):
    return db.query(Manga).options(selectinload(Manga.genre_links).selectinload(MangaGenre.genre))


def list_mangas(
    db: Session,
    status: Optional[MangaStatus] = None,
    genres: Optional[List[str]] = None,
    sort: str = "latest",
    limit: int = 50,
    offset: int = 0,
) -> Tuple[int, List[dict]]:
    q = _base_query(db)
    if status is not None:
        q = q.filter(Manga.status == status)
    if genres:
        # 선택한 장르 중 하나라도 가진 작품
        matching = (
            db.query(MangaGenre.manga_id)
            .join(Genre, Genre.id == MangaGenre.genre_id)
            .filter(Genre.name.in_(genres))
        )
        q = q.filter(Manga.id.in_(matching))
    total = q.count()
    rows = q.order_by(SORTS.get(sort, SORTS["latest"]), Manga.id.desc()).offset(offset).limit(limit).all()
    return total, _to_dicts(db, rows)


def home_feed(db: Session, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    featured = _base_query(db).order_by(Manga.rating.desc(), Manga.id.asc()).limit(3).all()

    since = now - timedelta(days=TRENDING_WINDOW_DAYS)
    recent_chapters = db.query(Chapter.manga_id).filter(Chapter.created_at >= since)
    trending = (
        _base_query(db)
        .filter(Manga.id.in_(recent_chapters))
        .order_by(Manga.created_at.desc(), Manga.id.desc())
        .limit(6)
        .all()
    )

    recent = _base_query(db).order_by(Manga.updated_at.desc(), Manga.id.desc()).limit(3).all()
    return {
        "featured": _to_dicts(db, featured),
        "trending": _to_dicts(db, trending),
        "recent": _to_dicts(db, recent),
    }


def get_manga(db: Session, manga_id: int) -> Manga:
    manga = _base_query(db).filter(Manga.id == manga_id).first()
    if not manga:
        raise NotFound("Manga")
    return manga


def get_manga_detail(db: Session, manga_id: int) -> dict:
    manga = get_manga(db, manga_id)
    return _to_dicts(db, [manga])[0]


def _resolve_genres(db: Session, names: Iterable[str]) -> List[Genre]:
    cleaned = []
    for name in names:
        name = name.strip()
        if name and name not in cleaned:
            cleaned.append(name)
    genres = []
    for name in cleaned:
        genre = db.query(Genre).filter(Genre.name == name).first()
        if not genre:
            genre = Genre(name=name)
            db.add(genre)
            db.flush()
        genres.append(genre)
    return genres


def _replace_genres(db: Session, manga: Manga, names: Iterable[str]) -> None:
    manga.genre_links.clear()
    db.flush()
    for genre in _resolve_genres(db, names):
        manga.genre_links.append(MangaGenre(genre_id=genre.id, genre=genre))


def create_manga(db: Session, user: User, payload: MangaCreate) -> dict:
    require_admin(user)
    data = payload.model_dump(exclude={"genres"})
    manga = Manga(**data, created_by=user.id)
    db.add(manga)
    try:
        db.flush()
        _replace_genres(db, manga, payload.genres)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("manga create failed")
        raise
    db.refresh(manga)
    logger.info("manga %s created by user %s", manga.id, user.id)
    return manga_to_dict(manga, 0)


def update_manga(db: Session, user: User, manga_id: int, payload: MangaUpdate) -> dict:
    manga = get_manga(db, manga_id)
    require_manga_manager(user, manga)
    changes = payload.model_dump(exclude_unset=True, exclude={"genres"})
    for key, value in changes.items():
        if key in ("title", "status", "rating") and value is None:
            continue
        setattr(manga, key, value)
    try:
        if payload.genres is not None:
            _replace_genres(db, manga, payload.genres)
        manga.updated_at = func.now()
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("manga %s update failed", manga_id)
        raise
    return get_manga_detail(db, manga_id)


def delete_manga(db: Session, user: User, manga_id: int) -> None:
    manga = get_manga(db, manga_id)
    require_manga_manager(user, manga)
    db.delete(manga)
    db.commit()
    logger.info("manga %s deleted by user %s", manga_id, user.id)


def list_genres(db: Session) -> List[Genre]:
    return db.query(Genre).order_by(Genre.name.asc()).all()


def seed_default_genres(db: Session) -> int:
    existing = {name for (name,) in db.query(Genre.name).all()}
    added = 0
    for name in DEFAULT_GENRES:
        if name not in existing:
            db.add(Genre(name=name))
            added += 1
    if added:
        db.commit()
    return added


# =========================
# Chapters
# =========================


def chapter_to_dict(chapter: Chapter) -> dict:
    pages = list(chapter.pages or [])
    return {
        "id": chapter.id,
        "manga_id": chapter.manga_id,
        "number": chapter.number,
        "title": chapter.title,
        "pages": pages,
        "page_urls": [public_url("pages", p) for p in pages],
        "created_at": chapter.created_at,
    }


def list_chapters(db: Session, manga_id: int) -> List[dict]:
    get_manga(db, manga_id)
    rows = db.query(Chapter).filter(Chapter.manga_id == manga_id).order_by(Chapter.number.asc()).all()
    return [chapter_to_dict(c) for c in rows]


def _get_chapter(db: Session, manga_id: int, number: int) -> Chapter:
    chapter = (
        db.query(Chapter)
        .filter(Chapter.manga_id == manga_id, Chapter.number == number)
        .first()
    )
    if not chapter:
        raise NotFound("Chapter")
    return chapter


def get_chapter(db: Session, manga_id: int, number: int) -> dict:
    return chapter_to_dict(_get_chapter(db, manga_id, number))


def create_chapter(db: Session, user: User, manga_id: int, payload: ChapterCreate) -> dict:
    manga = get_manga(db, manga_id)
    require_manga_manager(user, manga)
    chapter = Chapter(manga_id=manga.id, number=payload.number, title=payload.title, pages=list(payload.pages))
    db.add(chapter)
    # "최근 업데이트" 정렬을 위해 작품 updated_at 갱신
    manga.updated_at = func.now()
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(f"Chapter {payload.number} already exists")
    db.refresh(chapter)
    return chapter_to_dict(chapter)


def update_chapter(db: Session, user: User, manga_id: int, number: int, payload: ChapterUpdate) -> dict:
    manga = get_manga(db, manga_id)
    require_manga_manager(user, manga)
    chapter = _get_chapter(db, manga_id, number)
    if payload.title is not None:
        chapter.title = payload.title
    if payload.pages is not None:
        chapter.pages = list(payload.pages)
    db.commit()
    db.refresh(chapter)
    return chapter_to_dict(chapter)


def delete_chapter(db: Session, user: User, manga_id: int, number: int) -> None:
    manga = get_manga(db, manga_id)
    require_manga_manager(user, manga)
    chapter = _get_chapter(db, manga_id, number)
    db.delete(chapter)
    db.commit()
