from __future__ import annotations

import datetime as dt
import os
import tempfile
import uuid

import pytest
from fastapi.testclient import TestClient

# Settings are read at import time, so configure the environment first
os.environ.setdefault("ENV", "local")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_32_chars_minimum")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("GEOAPIFY_API_KEY", "test-geoapify-key")
os.environ.setdefault("SUPABASE_URL", "http://identity.test")
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="portal-storage-"))

from portal.auth.jwt import create_session_token  # noqa: E402
from portal.auth.principal import Principal, Role, RoleName  # noqa: E402
from portal.db import SessionLocal, engine  # noqa: E402
from portal.geo.geocoding import Coordinates, Geocoder, get_geocoder  # noqa: E402
from portal.main import app  # noqa: E402
from portal.models import Base, Event, MemberInfo, User, UserRole  # noqa: E402

Base.metadata.create_all(engine)

# Campus quad; the default event location in these tests
CAMPUS = Coordinates(lat=40.4237, lon=-86.9212)


class FakeGeocoder(Geocoder):
    def __init__(self, result: Coordinates | Exception = CAMPUS) -> None:
        self.result = result
        self.calls: list[str] = []

    def geocode(self, address: str) -> Coordinates:
        self.calls.append(address)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture
def geocoder() -> FakeGeocoder:
    fake = FakeGeocoder()
    app.dependency_overrides[get_geocoder] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_geocoder, None)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_db():
    # Ensure a clean slate for each test
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()
    app.dependency_overrides.clear()
    yield


def make_user(db, email: str = "member@example.com", *roles: Role) -> User:
    user = User(email=email, name=email.split("@")[0])
    db.add(user)
    db.flush()
    for role in roles:
        db.add(UserRole(user_id=user.id, role=role.name.value, company_name=role.company_name))
    db.commit()
    db.refresh(user)
    return user


def make_event(db, location: str | None = "Campus Quad", lat=None, lon=None, **kwargs) -> Event:
    event = Event(
        name=kwargs.pop("name", "General Meeting"),
        date=kwargs.pop("date", dt.date.today()),
        location=location,
        lat=lat,
        lon=lon,
        **kwargs,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def make_member_info(db, user: User, **fields) -> MemberInfo:
    info = MemberInfo(user_id=user.id, **fields)
    db.add(info)
    db.commit()
    db.refresh(info)
    return info


def token_for(user: User, role: Role | None = None) -> str:
    return create_session_token(user.id, user.email, role)


def auth_headers(user: User, role: Role | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {token_for(user, role)}"}


def principal_for(user: User, role: Role | None = None) -> Principal:
    return Principal(id=str(user.id), email=user.email, role=role, claims={"sub": str(user.id)})


MEMBER = Role(RoleName.GENERAL_MEMBER)
EBOARD = Role(RoleName.EBOARD)


def random_id() -> str:
    return str(uuid.uuid4())
