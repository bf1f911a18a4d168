import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, ValidationFailed
from app.core.policies import require_self
from app.models import Profile, User

logger = logging.getLogger(__name__)


def _default_username(db: Session, email: str) -> Optional[str]:
    candidate = (email or "").split("@")[0].strip() or None
    if candidate is None:
        return None
    taken = db.query(Profile.user_id).filter(Profile.username == candidate).first()
    # username은 unique: 이미 쓰이면 비워두고 사용자가 나중에 지정
    return None if taken else candidate


def ensure_profile(db: Session, user: User) -> Profile:
    """Return the user's profile, creating it on first use."""
    if user.profile is not None:
        return user.profile
    profile = Profile(user_id=user.id, username=_default_username(db, user.email), is_admin=False)
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        # 동시에 다른 요청이 먼저 만든 경우
        db.rollback()
    db.refresh(user)
    logger.info("profile created lazily for user %s", user.id)
    return user.profile


def get_own_profile(db: Session, user: User, profile_user_id: Optional[int] = None) -> Profile:
    require_self(user, profile_user_id if profile_user_id is not None else user.id)
    return ensure_profile(db, user)


def update_profile(
    db: Session,
    user: User,
    username: Optional[str] = None,
    avatar_key: Optional[str] = None,
) -> Profile:
    profile = get_own_profile(db, user)
    if username is not None:
        username = username.strip()
        if not username:
            raise ValidationFailed("Username must not be empty")
        if username != profile.username:
            exists = (
                db.query(Profile.user_id)
                .filter(Profile.username == username, Profile.user_id != user.id)
                .first()
            )
            if exists:
                raise Conflict("Username already taken")
            profile.username = username
    if avatar_key is not None:
        # 아바타는 본인 폴더("{user_id}/...") 아래 object만 허용
        if not avatar_key.startswith(f"{user.id}/"):
            raise ValidationFailed("Avatar must be stored under your own folder")
        profile.avatar_url = avatar_key
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Username already taken")
    db.refresh(profile)
    return profile
