"""
Pytest fixtures shared across all test modules.
Uses an in-memory SQLite database with StaticPool so all connections
share a single in-memory DB. No real database or Redis required for tests.
"""

import os

# Set env vars BEFORE any parlor module is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-min-32-chars-long!!"
os.environ["ALGORITHM"] = "HS256"
os.environ["PASSCODE"] = "open-sesame"
os.environ["REDIS_URL"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Import parlor modules AFTER env vars are set
from parlor.database import Base, get_db  # noqa: E402
from parlor.main import app  # noqa: E402
from parlor.redis.sessions import clear_local_sessions  # noqa: E402

PASSCODE = "open-sesame"

# Single shared in-memory SQLite engine. StaticPool ensures all
# connections share the same DB instance.
engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    """Create tables and forget sessions before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    clear_local_sessions()
    yield
    Base.metadata.drop_all(bind=engine)
    clear_local_sessions()


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def login(client: TestClient, username="alice", passcode=PASSCODE):
    """Log in with a clean cookie jar and return the parsed body.

    The jar is emptied again afterwards so that several users can share one
    TestClient; requests then authenticate with explicit headers.
    """
    client.cookies.clear()
    resp = client.post("/login", json={"passcode": passcode, "username": username})
    client.cookies.clear()
    assert resp.status_code == 200, f"Login failed: {resp.text}"
    return resp.json()


def auth_headers(client: TestClient, username="alice"):
    token = login(client, username=username)["token"]
    return {"Authorization": f"Bearer {token}"}


def create_channel(client: TestClient, headers: dict, name="general") -> dict:
    resp = client.post("/api/channels", json={"name": name}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["channel"]
