# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .core.config import get_settings
from .core.events import get_event_bus
from .core.logging import configure_logging
from .api import admin_notifications as admin_notifications_router
from .api import auth as auth_router
from .api import chapters as chapters_router
from .api import comments as comments_router
from .api import genres as genres_router
from .api import library as library_router
from .api import manga as manga_router
from .api import notifications as notifications_router
from .api import profile as profile_router
from .api import realtime as realtime_router
from .api import reports as reports_router
from .api import upload as upload_router
from .schemas.error import ErrorResponse
from .database import SessionLocal, engine

settings = get_settings()
configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 로컬에서는 마이그레이션 없이 바로 띄울 수 있게 테이블 생성 + 장르 시드
    if settings.environment == "local":
        from .models import Base
        from .services.catalog import seed_default_genres

        Base.metadata.create_all(bind=engine)
        db = SessionLocal()
        try:
            added = seed_default_genres(db)
            if added:
                logger.info("seeded %d default genre(s)", added)
        finally:
            db.close()
    yield


app = FastAPI(title="Mangaverse API", version="0.1.0", lifespan=lifespan)

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
)

app.include_router(auth_router.router)
app.include_router(profile_router.router)
app.include_router(manga_router.router)
app.include_router(chapters_router.router)
app.include_router(genres_router.router)
app.include_router(library_router.router)
app.include_router(comments_router.router)
app.include_router(notifications_router.router)
app.include_router(reports_router.router)
app.include_router(admin_notifications_router.router)
app.include_router(upload_router.router)
app.include_router(realtime_router.router)


@app.get("/health", tags=["meta"])
def health():
    return {"status": "ok", "environment": settings.environment}


@app.get("/health/db", tags=["meta"])
def health_db():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "ok", "database": "reachable"}
    except SQLAlchemyError as e:
        return {"status": "error", "database": "unreachable", "detail": str(e)}


@app.get("/health/realtime", tags=["meta"])
def health_realtime():
    bus = get_event_bus()
    return {"status": "ok", "seq": bus.last_seq, "subscribers": bus.subscriber_count}


# Global error handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content=ErrorResponse(detail="Validation Error").model_dump())
