"""
Shared fixtures.

API tests run the real application against a throwaway SQLite file; the
TestClient is entered as a context manager so startup/shutdown hooks run and
HTTP requests and WebSocket sessions share one event loop.
"""

import os

os.environ.setdefault("SESSION_SECRET", "test-secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from authintegrate.config import Config  # noqa: E402
from authintegrate.database import DatabaseManager  # noqa: E402
from authintegrate.main import create_app  # noqa: E402
from authintegrate.seed import seed  # noqa: E402
from authintegrate.services.storage_service import StorageService  # noqa: E402
from factories import ADMIN, USER  # noqa: E402


@pytest.fixture
def settings(tmp_path) -> Config:
    return Config(
        DB_URL=f"sqlite:///{tmp_path / 'authintegrate.db'}",
        SESSION_SECRET="test-secret",
        HARDWARE_MODE="http",
    )


@pytest.fixture
def db(settings):
    manager = DatabaseManager(settings)
    manager.create_schema()
    yield manager
    manager.dispose()


@pytest.fixture
def storage(db) -> StorageService:
    return StorageService(db)


@pytest.fixture
def seeded_storage(db) -> StorageService:
    return seed(db=db)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        seed(db=app.state.services.db)
        yield test_client


@pytest.fixture
def admin_client(client):
    response = client.post("/api/auth/login", json=ADMIN)
    assert response.status_code == 200
    return client


@pytest.fixture
def user_client(client):
    response = client.post("/api/auth/login", json=USER)
    assert response.status_code == 200
    return client
