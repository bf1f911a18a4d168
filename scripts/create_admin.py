from app.database import SessionLocal
from app.core.security import hash_password
from app.models import Profile, User
from app.services.profiles import ensure_profile

import sys


def ensure_admin(email: str, password: str = None):
    """관리자 플래그는 profiles.is_admin 하나뿐이라 API로는 올릴 수 없다."""
    db = SessionLocal()
    try:
        u = db.query(User).filter(User.email == email).first()
        if not u:
            if not password:
                print(f"[ERR] No user {email}; pass a password to create one")
                sys.exit(1)
            u = User(email=email, password_hash=hash_password(password))
            db.add(u)
            db.commit()
            db.refresh(u)
            print(f"[OK] Created user id={u.id} email={email}")
        profile: Profile = ensure_profile(db, u)
        if profile.is_admin:
            print(f"[OK] Already admin: {email}")
            return
        profile.is_admin = True
        db.commit()
        print(f"[OK] Promoted to admin: {email}")
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python scripts/create_admin.py <email> [password]")
        sys.exit(1)
    ensure_admin(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None)
