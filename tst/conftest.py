"""Pytest configuration and fixtures for service tests."""

import os

# Must be set before src.shared.auth modules read them at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.app import create_app
from src.shared.auth.auth import create_access_token
from src.shared.auth.database import Base, User, get_db
from src.shared.clients.database import Client
from src.shared.integrations import database as _integrations  # noqa: F401

NOTION_ENV_VARS = ("NOTION_API_KEY", "NOTION_CLIENT_DATABASE_ID", "NOTION_TEAM_MEMBERS_DATABASE_ID")


@pytest.fixture(autouse=True)
def clean_notion_env(monkeypatch):
    """Keep a developer's .env from leaking Notion credentials into tests."""
    for name in NOTION_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(session_factory):
    """Fresh application (own limiter and cache) wired to the test database."""
    application = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(db_session):
    def _make_user(role="VIEWER", email=None):
        user = User(email=email or f"{role.lower()}@example.com", name=role.title(), role=role)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user("ADMIN")


@pytest.fixture
def engineer_user(make_user):
    return make_user("IT_ENGINEER")


@pytest.fixture
def viewer_user(make_user):
    return make_user("VIEWER")


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def engineer_headers(engineer_user):
    return auth_headers(engineer_user)


@pytest.fixture
def viewer_headers(viewer_user):
    return auth_headers(viewer_user)


@pytest.fixture
def test_client_row(db_session):
    """A client with no Notion link."""
    row = Client(name="Acme Corp", status="ACTIVE", default_cadence="MONTHLY")
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row
