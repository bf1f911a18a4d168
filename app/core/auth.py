from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import User
from .errors import AuthError
from .policies import require_admin
from .security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)


def user_from_token(db: Session, token: str) -> User:
    payload = decode_token(token, expected_type="access")
    user_id = int(payload["sub"])  # type: ignore
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AuthError("User not found")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise AuthError()
    return user_from_token(db, credentials.credentials)


def get_admin_user(
    user: User = Depends(get_current_user),
) -> User:
    require_admin(user)
    return user
