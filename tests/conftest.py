"""Shared test fixtures."""

import os

# Keep test runs from writing log files; must be set before settings load.
os.environ["LOG_FILE_PATH"] = ""

import pytest
from fastapi.testclient import TestClient

from tasktrack.core.config import settings
from tasktrack.db.database import get_connection, init_db
from tasktrack.models.user import User, UserRole
from tasktrack.repositories.user_repository import UserRepository


@pytest.fixture
def database_url(tmp_path, monkeypatch) -> str:
    """Point the app at a fresh sqlite file with the schema applied."""
    url = f"sqlite:///{tmp_path / 'tasktrack.db'}"
    monkeypatch.setattr(settings, "DATABASE_URL", url)
    init_db()
    return url


@pytest.fixture
def conn(database_url):
    connection = get_connection()
    yield connection
    connection.close()


@pytest.fixture
def repo(conn) -> UserRepository:
    return UserRepository(conn)


@pytest.fixture
def client(database_url):
    """HTTP client for the full app, lifespan included."""
    from tasktrack.main import create_app

    with TestClient(create_app(), raise_server_exceptions=False) as c:
        yield c


def make_user(
    user_name: str = "alice",
    email: str = "alice@x.com",
    full_name: str = "Alice A",
    role: UserRole = UserRole.DEVELOPER,
    **kwargs,
) -> User:
    return User(user_name=user_name, email=email, full_name=full_name, role=role, **kwargs)
