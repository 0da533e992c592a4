"""Shared pytest fixtures.

Every test runs in its own temporary directory with a fresh SQLite
document store, low bcrypt cost and a fixed signing secret.
"""

import pytest
from fastapi.testclient import TestClient

from profman.config.app_config import clear_config_cache
from profman.core.security import create_access_token
from profman.core.users import UserService
from profman.db import SqliteDocumentStore, reset_store, set_store

ADMIN_PASSWORD = "Admin123"
PROFESSOR_PASSWORD = "Prof1234"
STUDENT_NUMBER = "20230001"

_ENV_VARS = (
    "PROFMAN_ENV",
    "CORS_ORIGIN",
    "JWT_SECRET",
    "JWT_EXPIRES_IN",
    "JWT_REFRESH_EXPIRES_IN",
    "PROFMAN_DB_BACKEND",
    "PROFMAN_DB_PATH",
    "DRIVE_CLIENT_ID",
    "DRIVE_CLIENT_SECRET",
    "DRIVE_REDIRECT_URI",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Fresh config from environment only, in an empty working directory."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PROFMAN_ENV", "test")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")
    monkeypatch.setenv("PROFMAN_DB_PATH", str(tmp_path / "profman.db"))
    clear_config_cache()
    yield
    clear_config_cache()
    reset_store()


@pytest.fixture
def store(tmp_path):
    """Temporary SQLite store installed as the global store."""
    document_store = SqliteDocumentStore(tmp_path / "test.db")
    set_store(document_store)
    return document_store


@pytest.fixture
def users(store):
    return UserService(store)


@pytest.fixture
def admin(users):
    return users.create_user("admin@profman.com", "Admin User", "admin", password=ADMIN_PASSWORD)


@pytest.fixture
def professor(users):
    return users.create_user(
        "prof.smith@university.edu", "John Smith", "professor", password=PROFESSOR_PASSWORD
    )


@pytest.fixture
def student(users):
    return users.create_user(
        "student1@university.edu",
        "Alice Johnson",
        "student",
        password=STUDENT_NUMBER,
        student_number=STUDENT_NUMBER,
    )


def auth_headers(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.to_dict())}"}


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def professor_headers(professor):
    return auth_headers(professor)


@pytest.fixture
def student_headers(student):
    return auth_headers(student)


@pytest.fixture
def app(store):
    from profman.web.api import create_app

    return create_app()


@pytest.fixture
def client(app):
    """Test client; server errors come back as 500 envelopes."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def headers_for():
    """Build bearer headers for any user record."""
    return auth_headers
