from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.database import get_db
from app.models import Profile, User
from app.schemas.user import ProfileRead, ProfileUpdate
from app.services import profiles as profile_service
from app.services.storage import public_url

router = APIRouter(prefix="/profile", tags=["profile"])


def _to_read(profile: Profile) -> ProfileRead:
    return ProfileRead(
        user_id=profile.user_id,
        username=profile.username,
        avatar_url=profile.avatar_url,
        avatar_public_url=public_url("avatars", profile.avatar_url),
        is_admin=bool(profile.is_admin),
    )


@router.get("/me", response_model=ProfileRead, summary="내 프로필 (없으면 생성)")
def get_my_profile(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _to_read(profile_service.get_own_profile(db, current_user))


@router.patch("/me", response_model=ProfileRead, summary="username / 아바타 수정")
def update_my_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    profile = profile_service.update_profile(
        db,
        current_user,
        username=payload.username,
        avatar_key=payload.avatar_url,
    )
    return _to_read(profile)
