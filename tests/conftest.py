import os
import time
import uuid

# aegis.main builds a module-level app on import; keep it off the disk
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("APP_ENV", "test")

import pytest
from fastapi.testclient import TestClient

from aegis.config import Settings
from aegis.main import create_app

PASSWORD = "SecurePass123!"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        environment="test",
        database_url=f"sqlite:///{tmp_path / 'aegis-test.db'}",
        jwt_secret="test-secret",
    )


@pytest.fixture
def app(settings):
    app = create_app(settings)
    yield app
    app.state.context.close()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(app):
    session = app.state.context.session_factory()
    try:
        yield session
    finally:
        session.close()


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def start_of_second(offset: float = 0.05) -> None:
    """Sleep until just after the next whole second, so token timestamps are predictable."""
    time.sleep(1 - time.time() % 1 + offset)


@pytest.fixture
def signup(client):
    """Register a fresh account and return (token, user, password)."""

    def _signup(email=None, username=None, password=PASSWORD):
        suffix = uuid.uuid4().hex[:8]
        r = client.post("/api/signup", json={
            "email": email or f"user_{suffix}@example.com",
            "username": username or f"user_{suffix}",
            "password": password,
            "confirmPassword": password,
        })
        assert r.status_code == 201, r.text
        body = r.json()
        return body["token"], body["user"], password

    return _signup
