"""
Shared pytest configuration for FieldLines tests.

Service tests run against an in-memory SQLite database (aiosqlite) so the
suite needs no running PostgreSQL. Route tests monkeypatch the services and
never touch the database.
"""

import os

# Must be set before fieldlines is imported: disables rate limiting and points
# the module-level engine at SQLite.
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENABLE_EMAIL", "false")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from fieldlines.database import db
from fieldlines.database.db import Base
from fieldlines.database.models import FieldTemplate, Sportsground, User
from fieldlines.services import auth_service, settings_service

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(autouse=True)
def no_redis(monkeypatch):
    """Settings reads go straight to the database; maintenance cache starts empty."""

    async def fake_get_redis_client():
        return None

    monkeypatch.setattr(settings_service, "get_redis_client", fake_get_redis_client, raising=True)
    monkeypatch.setattr(settings_service, "_maintenance_cache", None)
    yield


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Fresh in-memory database per test."""
    # StaticPool keeps the single in-memory connection alive across sessions
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        from fieldlines.database import models  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)

    test_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    original_async_session_local = db.AsyncSessionLocal
    db.AsyncSessionLocal = test_session_maker

    yield engine

    db.AsyncSessionLocal = original_async_session_local
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine):
    """Database session for one test; rolled back afterwards."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()


# ----------------------------------------------------------------------------
# Data helpers
# ----------------------------------------------------------------------------


async def make_user(session, email="owner@example.com", role="user", verified=True, password="password123"):
    user = User(
        email=email,
        password_hash=auth_service.hash_password(password),
        full_name=email.split("@")[0].title(),
        role=role,
        email_verified=verified,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


async def make_template(session, **overrides):
    values = {
        "sport": "soccer",
        "name": "11v11 Full Field",
        "min_length": 90.0,
        "max_length": 120.0,
        "min_width": 45.0,
        "max_width": 90.0,
        "default_length": 100.0,
        "default_width": 64.0,
        "interior_elements": {},
        "is_active": True,
    }
    values.update(overrides)
    template = FieldTemplate(**values)
    session.add(template)
    await session.flush()
    return template


async def make_sportsground(session, user_id, name="Riverside Park"):
    sportsground = Sportsground(
        user_id=user_id,
        name=name,
        address="1 River Rd, Springfield",
        latitude=-33.8688,
        longitude=151.2093,
        default_zoom=18,
    )
    session.add(sportsground)
    await session.flush()
    return sportsground


@pytest_asyncio.fixture
async def owner(db_session):
    return await make_user(db_session)


@pytest_asyncio.fixture
async def template(db_session):
    return await make_template(db_session)


@pytest_asyncio.fixture
async def sportsground(db_session, owner):
    return await make_sportsground(db_session, owner.id)


# ----------------------------------------------------------------------------
# Route test helpers
# ----------------------------------------------------------------------------


def make_user_dict(user_id=1, role="user", email="owner@example.com", suspended=False):
    return {
        "id": user_id,
        "email": email,
        "full_name": "Test Owner",
        "phone": None,
        "organization": None,
        "role": role,
        "email_verified": True,
        "suspended": suspended,
        "suspended_at": None,
        "last_login_at": None,
        "created_at": "2026-01-01T00:00:00+00:00",
    }


def make_client_with_auth(monkeypatch, role="user", user_id=1, maintenance=False):
    """TestClient whose bearer token resolves to a user with ``role``."""
    from fastapi.testclient import TestClient
    from fieldlines.api.main import app
    from fieldlines.services import user_service

    user = make_user_dict(user_id, role)

    def fake_verify_token(token):
        return {"user_id": user_id}

    async def fake_get_user_by_id(session, uid):
        return user if uid == user_id else None

    async def fake_is_maintenance_mode(session):
        return maintenance

    async def fake_get_maintenance_message(session):
        return "Back soon"

    monkeypatch.setattr(auth_service, "verify_token", fake_verify_token, raising=True)
    monkeypatch.setattr(user_service, "get_user_by_id", fake_get_user_by_id, raising=True)
    monkeypatch.setattr(settings_service, "is_maintenance_mode", fake_is_maintenance_mode, raising=True)
    monkeypatch.setattr(settings_service, "get_maintenance_message", fake_get_maintenance_message, raising=True)
    return TestClient(app), {"Authorization": "Bearer dummy"}
