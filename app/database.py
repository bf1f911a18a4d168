from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from .core.config import get_settings

# 동기 엔진 사용. 라우터는 threadpool에서 요청마다 세션 1개를 쓴다.
settings = get_settings()
DATABASE_URL = settings.database_url

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
	DATABASE_URL,
	echo=(settings.environment == "local" and settings.log_level.upper() == "DEBUG"),
	connect_args=_connect_args,
	pool_pre_ping=True,
	future=True,
)

if DATABASE_URL.startswith("sqlite"):

	@event.listens_for(engine, "connect")
	def _enable_sqlite_fks(dbapi_connection, connection_record):
		cursor = dbapi_connection.cursor()
		cursor.execute("PRAGMA foreign_keys=ON")
		cursor.close()


SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db() -> Generator[Session, None, None]:
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()
