import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker

from app.main import app
from app.database import get_db
from app.models import Base, Profile
from app.services.catalog import seed_default_genres

# In-memory SQLite for tests (shared across threads/connections)
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=test_engine, autoflush=False, autocommit=False, future=True)

# Ensure all tables are created before tests run
Base.metadata.create_all(bind=test_engine)
_seed = TestingSessionLocal()
seed_default_genres(_seed)
_seed.close()


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db
_client = TestClient(app)


@pytest.fixture
def client():
    return _client


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def _register_and_login(email=None, password="pw123456"):
    email = email or f"user_{uuid.uuid4().hex[:8]}@example.com"
    r = _client.post("/auth/register", json={"email": email, "password": password})
    assert r.status_code == 201
    user_id = r.json()["id"]
    r = _client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200
    token = r.json()["access_token"]
    return {
        "id": user_id,
        "email": email,
        "password": password,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


def promote_to_admin(user_id: int) -> None:
    db = TestingSessionLocal()
    try:
        profile = db.query(Profile).filter(Profile.user_id == user_id).first()
        profile.is_admin = True
        db.commit()
    finally:
        db.close()


@pytest.fixture
def make_user():
    return _register_and_login


@pytest.fixture
def admin():
    user = _register_and_login()
    promote_to_admin(user["id"])
    return user


@pytest.fixture
def manga(admin):
    r = _client.post(
        "/manga",
        json={
            "title": f"Test Manga {uuid.uuid4().hex[:6]}",
            "description": "A test series",
            "author": "Tester",
            "genres": ["Action", "Drama"],
        },
        headers=admin["headers"],
    )
    assert r.status_code == 201
    return r.json()
