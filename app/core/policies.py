"""Row-level access rules, checked in the service layer before each read/write.

Each function answers one question ("may this principal touch this row?")
and raises ``PolicyDenied`` when the answer is no. Routers never decide
authorization on their own; they only pass the caller down.
"""
from typing import Optional

from ..models import Manga, MangaReport, User
from .errors import AuthError, PolicyDenied


def is_admin(user: Optional[User]) -> bool:
    if user is None or user.profile is None:
        return False
    return bool(user.profile.is_admin)


def require_authenticated(user: Optional[User]) -> User:
    if user is None:
        raise AuthError()
    return user


def require_admin(user: Optional[User]) -> None:
    require_authenticated(user)
    if not is_admin(user):
        raise PolicyDenied()


def require_self(user: Optional[User], owner_id: Optional[int]) -> None:
    """Profiles, library entries, subscriptions, comment notifications, comment authorship."""
    require_authenticated(user)
    if owner_id is None or user.id != owner_id:
        raise PolicyDenied()


def can_manage_manga(user: Optional[User], manga: Manga) -> bool:
    if user is None:
        return False
    return is_admin(user) or (manga.created_by is not None and manga.created_by == user.id)


def require_manga_manager(user: Optional[User], manga: Manga) -> None:
    """Manga rows and their chapters / genre links: admin or the manga's creator."""
    require_authenticated(user)
    if not can_manage_manga(user, manga):
        raise PolicyDenied()


def require_report_reader(user: Optional[User], report: MangaReport) -> None:
    require_authenticated(user)
    if report.user_id != user.id and not is_admin(user):
        raise PolicyDenied()


# storage buckets: 아바타는 본인 폴더, 표지/페이지는 관리자 전용
OWNER_WRITABLE_BUCKETS = {"avatars"}
ADMIN_WRITABLE_BUCKETS = {"covers", "pages"}


def require_bucket_writer(user: Optional[User], bucket: str) -> None:
    require_authenticated(user)
    if bucket in OWNER_WRITABLE_BUCKETS:
        return
    if bucket in ADMIN_WRITABLE_BUCKETS and is_admin(user):
        return
    raise PolicyDenied()
