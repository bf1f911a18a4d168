import argparse
import sys
import time
from typing import List

from dotenv import load_dotenv
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.models import Manga, User
from app.schemas.manga import MangaCreate
from app.services import catalog
from app.services.manga_metadata import get_client


def import_title(db: Session, admin: User, title: str) -> str:
    fields = get_client().search_manga(title)
    if not fields:
        return "miss"
    exists = db.query(Manga.id).filter(func.lower(Manga.title) == fields["title"].lower()).first()
    if exists:
        return "skip"
    payload = MangaCreate(
        title=fields["title"],
        description=fields["description"],
        cover_url=fields["cover"],
        author=fields["author"],
        status=fields["status"],
        rating=fields["rating"],
        genres=fields["genres"],
    )
    catalog.create_manga(db, admin, payload)
    return "ok"


def main(argv: List[str]) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Jikan 검색 결과로 작품 일괄 등록")
    parser.add_argument("admin_email")
    parser.add_argument("titles", nargs="+")
    parser.add_argument("--sleep", type=float, default=1.0, help="Jikan rate limit 대비 요청 간격(초)")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        admin = db.query(User).filter(User.email == args.admin_email).first()
        if not admin:
            print(f"[ERR] No user {args.admin_email}")
            return 1
        for title in args.titles:
            result = import_title(db, admin, title)
            print(f"[{result.upper()}] {title}")
            time.sleep(args.sleep)
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
