import pytest

from app.core.errors import AuthError, PolicyDenied
from app.core import policies
from app.models import Manga, MangaReport, Profile, User


def _user(user_id, admin=False):
    u = User(id=user_id, email=f"u{user_id}@example.com", password_hash="x")
    u.profile = Profile(user_id=user_id, is_admin=admin)
    return u


def test_anonymous_is_rejected():
    with pytest.raises(AuthError):
        policies.require_authenticated(None)
    with pytest.raises(AuthError):
        policies.require_admin(None)
    assert policies.is_admin(None) is False


def test_user_without_profile_is_not_admin():
    u = User(id=1, email="a@example.com", password_hash="x")
    assert policies.is_admin(u) is False


def test_require_self():
    policies.require_self(_user(1), 1)
    with pytest.raises(PolicyDenied):
        policies.require_self(_user(1), 2)
    with pytest.raises(PolicyDenied):
        policies.require_self(_user(1), None)


def test_manga_manager():
    manga = Manga(id=1, title="T", created_by=5)
    assert policies.can_manage_manga(_user(5), manga)
    assert policies.can_manage_manga(_user(9, admin=True), manga)
    assert not policies.can_manage_manga(_user(6), manga)
    assert not policies.can_manage_manga(None, manga)
    orphan = Manga(id=2, title="T", created_by=None)
    with pytest.raises(PolicyDenied):
        policies.require_manga_manager(_user(6), orphan)


def test_report_reader():
    report = MangaReport(id=1, user_id=3, manga_id=1, chapter=1)
    policies.require_report_reader(_user(3), report)
    policies.require_report_reader(_user(4, admin=True), report)
    with pytest.raises(PolicyDenied):
        policies.require_report_reader(_user(4), report)


def test_bucket_writer():
    policies.require_bucket_writer(_user(1), "avatars")
    policies.require_bucket_writer(_user(1, admin=True), "covers")
    with pytest.raises(PolicyDenied):
        policies.require_bucket_writer(_user(1), "pages")
