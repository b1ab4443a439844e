"""Shared pytest fixtures for the task board.

- In-memory SQLite engine per test (StaticPool, foreign keys on)
- Session and Store bound to it
- User factories returning Actor sessions
- TestClient with get_db overridden
"""

import os

# Settings are read at import time, so configure before importing taskboard
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ADMIN_INVITE_CODE", "sprint-admin")

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from taskboard.core.security import create_access_token
from taskboard.database import build_engine, get_db, init_db
from taskboard.models import UserRole, UserStatus
from taskboard.services.identity import Actor
from taskboard.store import Store

TEST_PASSWORD = "secret123"


# ===========================================
# DATABASE FIXTURES
# ===========================================


@pytest.fixture
def engine():
    """Fresh in-memory database with all tables."""
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db) -> Store:
    return Store(db)


# ===========================================
# USER FACTORIES
# ===========================================


@pytest.fixture
def make_user(store):
    """Create a user directly in the store and return its Actor."""

    def _make(username: str, role: UserRole = UserRole.MEMBER,
              status: UserStatus = UserStatus.ACTIVE) -> Actor:
        user = store.register_user(username, TEST_PASSWORD, role, status)
        return Actor.from_user(user)

    return _make


@pytest.fixture
def admin(make_user) -> Actor:
    return make_user("admin", UserRole.ADMIN)


@pytest.fixture
def mod(make_user) -> Actor:
    return make_user("mod", UserRole.MOD)


@pytest.fixture
def alice(make_user) -> Actor:
    return make_user("alice")


@pytest.fixture
def bob(make_user) -> Actor:
    return make_user("bob")


# ===========================================
# BOARD FIXTURES
# ===========================================


@pytest.fixture
def group(store, admin):
    from taskboard.services.groups import create_group

    return create_group(store, admin, {"name": "Sprint 1"})


@pytest.fixture
def task(store, admin, group):
    """Task reviewed by alice."""
    from taskboard.services.tasks import create_task

    return create_task(store, admin, {
        "group_id": group.id,
        "task": "Build login page",
        "assign": "bob",
        "reviewer": "alice",
    })


@pytest.fixture
def audit_entries(store):
    """Callable returning every audit entry, oldest first."""

    def _entries(**filters):
        return store.list("audit_log", filters, order_by="created_at")

    return _entries


# ===========================================
# HTTP FIXTURES
# ===========================================


@pytest.fixture
def client(session_factory) -> Generator[TestClient, None, None]:
    from taskboard.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer header for an Actor."""

    def _headers(actor: Actor) -> dict[str, str]:
        token = create_access_token({"sub": str(actor.user_id)})
        return {"Authorization": f"Bearer {token}"}

    return _headers
