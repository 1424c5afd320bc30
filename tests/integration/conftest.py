"""Integration test fixtures.

Each test gets a fresh file-backed SQLite database under tmp_path with the
ORM schema (including the partial unique index on bureau roles) and the
default settings. A file is used rather than ``:memory:`` so that several
sessions, possibly on different threads, see the same data.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.db.base import get_db
from app.main import app
from app.models import Base, Member, MemberStatus
from app.services.settings import seed_default_settings

ADMIN_TOKEN = "test-admin-token"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'membership.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_default_settings(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def audit_dir(tmp_path, monkeypatch):
    """Keep audit files out of the project tree."""
    logs = tmp_path / "logs"
    monkeypatch.setattr("app.core.audit.LOGS_DIR", logs)
    return logs


@pytest.fixture
def make_member(db):
    """Insert a member directly, bypassing the services."""

    def _make(email: str, status: MemberStatus = MemberStatus.ACTIVE, **fields) -> Member:
        local = email.split("@")[0]
        values = {
            "first_name": local.title(),
            "last_name": "Test",
            "enrollment_track": "L3 Informatique",
        }
        values.update(fields)
        member = Member(email=email, status=status, **values)
        db.add(member)
        db.commit()
        db.refresh(member)
        return member

    return _make


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture
def client(session_factory, db, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_TOKEN", ADMIN_TOKEN)

    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
