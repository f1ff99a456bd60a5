# tests/conftest.py
import os

# Settings are read at import time; configure them before importing the app.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_SECRET", "test-secret")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("APP_URL", "http://testserver")

import secrets
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from fridaygt.core.auth import create_session_token
from fridaygt.core.rate_limit import InMemoryRateLimitStore, get_rate_limit_store
from fridaygt.database import AUTH_SCHEMA, get_session
from fridaygt.main import app
from fridaygt.models.auth import AuthIdentity, AuthSession
from fridaygt.models.build import CarBuild
from fridaygt.models.catalog import (
    Car,
    Part,
    PartCategory,
    Track,
    TuningSection,
    TuningSetting,
)
from fridaygt.models.lap_time import LapTime
from fridaygt.models.user import User
from fridaygt.routers import admin_users as admin_users_router
from fridaygt.routers import auth as auth_router
from fridaygt.services.notification_service import NotificationService


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _configure_sqlite(dbapi_connection, connection_record):
        dbapi_connection.execute(f"ATTACH DATABASE ':memory:' AS {AUTH_SCHEMA}")
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="rate_store")
def rate_store_fixture():
    return InMemoryRateLimitStore()


@pytest.fixture(name="client")
def client_fixture(session: Session, rate_store: InMemoryRateLimitStore):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_rate_limit_store] = lambda: rate_store
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="outbox")
def outbox_fixture(monkeypatch):
    """Capture outgoing emails instead of talking to SMTP."""
    sent: list[dict] = []

    def fake_send(to_email: str, subject: str, text_body: str, html_body=None):
        sent.append({"to": to_email, "subject": subject, "body": text_body})

    notifications = NotificationService(sender=fake_send)
    monkeypatch.setattr(admin_users_router.service, "notifications", notifications)
    monkeypatch.setattr(auth_router.service, "notifications", notifications)
    return sent


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture(name="make_user")
def make_user_fixture(session: Session):
    def _make(
        email: str | None = None,
        role: str = "USER",
        gamertag: str | None = "",
        name: str | None = None,
    ) -> User:
        suffix = uuid.uuid4().hex[:8]
        if gamertag == "":
            gamertag = f"driver_{suffix}"
        user = User(
            email=email or f"driver-{suffix}@example.com",
            role=role,
            gamertag=gamertag,
            name=name,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(session: Session):
    """
    Open a server-side session for an email and return a Bearer header.

    Accepts either a User or a bare email (identity without app user).
    """

    def _headers(user_or_email) -> dict[str, str]:
        email = user_or_email if isinstance(user_or_email, str) else user_or_email.email
        identity = session.exec(
            select(AuthIdentity).where(AuthIdentity.email == email)
        ).first()
        if identity is None:
            identity = AuthIdentity(email=email, email_verified=datetime.now(timezone.utc))
            session.add(identity)
            session.commit()
            session.refresh(identity)
        expires = datetime.now(timezone.utc) + timedelta(days=1)
        auth_session = AuthSession(
            session_token=secrets.token_urlsafe(16),
            user_id=identity.id,
            expires=expires,
        )
        session.add(auth_session)
        session.commit()
        token = create_session_token(identity.id, email, auth_session.session_token, expires)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture(name="track")
def track_fixture(session: Session) -> Track:
    track = Track(name="Suzuka Circuit", slug="suzuka-circuit", location="Japan", category="CIRCUIT")
    session.add(track)
    session.commit()
    session.refresh(track)
    return track


@pytest.fixture(name="car")
def car_fixture(session: Session) -> Car:
    car = Car(
        name="GR86",
        slug="toyota-gr86",
        manufacturer="Toyota",
        category="N200",
        drive_type="FR",
    )
    session.add(car)
    session.commit()
    session.refresh(car)
    return car


@pytest.fixture(name="other_car")
def other_car_fixture(session: Session) -> Car:
    car = Car(
        name="Civic Type R",
        slug="honda-civic-type-r",
        manufacturer="Honda",
        category="N300",
        drive_type="FF",
    )
    session.add(car)
    session.commit()
    session.refresh(car)
    return car


@pytest.fixture(name="catalog_parts")
def catalog_parts_fixture(session: Session) -> dict:
    engine_cat = PartCategory(name="Engine", display_order=1)
    section = TuningSection(name="Suspension", display_order=1)
    session.add(engine_cat)
    session.add(section)
    session.commit()

    turbo = Part(category_id=engine_cat.id, name="Turbo Kit")
    retired = Part(category_id=engine_cat.id, name="Old Intake", is_active=False)
    ride_height = TuningSetting(section_id=section.id, name="Ride Height", unit="mm")
    for row in (turbo, retired, ride_height):
        session.add(row)
    session.commit()
    return {
        "category": engine_cat,
        "section": section,
        "turbo": turbo,
        "retired": retired,
        "ride_height": ride_height,
    }


@pytest.fixture(name="make_build")
def make_build_fixture(session: Session):
    def _make(user: User, car: Car, name: str = "Race Setup", is_public: bool = False) -> CarBuild:
        build = CarBuild(user_id=user.id, car_id=car.id, name=name, is_public=is_public)
        session.add(build)
        session.commit()
        session.refresh(build)
        return build

    return _make


@pytest.fixture(name="make_lap")
def make_lap_fixture(session: Session):
    def _make(user: User, track: Track, car: Car, time_ms: int, build: CarBuild | None = None) -> LapTime:
        lap = LapTime(
            user_id=user.id,
            track_id=track.id,
            car_id=car.id,
            build_id=build.id if build else None,
            build_name=build.name if build else None,
            time_ms=time_ms,
        )
        session.add(lap)
        session.commit()
        session.refresh(lap)
        return lap

    return _make
