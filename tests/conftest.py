"""
Shared pytest fixtures.

Uses a throwaway SQLite database so no Postgres is required for tests.
Every test gets its own user, which keeps rows from different tests apart
even though the tables live for the whole session.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_vitality.db")

from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.clock import Clock, get_clock
from app.db.base import Base, get_db
from app.main import app
from app.services.users import create_user

SQLITE_URL = "sqlite:///./test_vitality.db"

# Wednesday. Monday of the same week is 2026-03-09.
TODAY = date(2026, 3, 11)

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FixedClock(Clock):
    """Clock pinned to a given instant. `set_day` moves it to noon UTC of a day."""

    def __init__(self, instant: datetime):
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def set_day(self, day: date) -> None:
        self._instant = datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def clock():
    return FixedClock(datetime(TODAY.year, TODAY.month, TODAY.day, 12, tzinfo=timezone.utc))


@pytest.fixture()
def user(db):
    return create_user(db, name="tester", timezone="UTC")


@pytest.fixture()
def client(db, clock):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def api_user(client):
    """Create a user over HTTP and return the headers that act as them."""
    r = client.post("/users", json={"name": "api", "timezone": "UTC"})
    assert r.status_code == 201
    return {"X-User-Id": str(r.json()["id"])}
