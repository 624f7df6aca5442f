from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from quill.app import create_app
from quill.config import Settings
from quill.infra.data_store import DataStore


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at an empty data directory under tmp_path."""
    return Settings(data_dir=tmp_path / "data", secret_key="test-secret", session_max_age=3600)


@pytest.fixture()
def store(settings: Settings) -> DataStore:
    return DataStore(settings.resolved_users_path, settings.resolved_posts_path)


@pytest.fixture()
def app(settings: Settings, store: DataStore):
    return create_app(settings, store=store)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


def signup(client: TestClient, username: str, email: str, password: str = "secret1") -> None:
    r = client.post(
        "/register",
        data={"username": username, "email": email, "password": password},
        follow_redirects=False,
    )
    assert r.status_code == 303, r.text


def login(client: TestClient, credential: str, password: str = "secret1") -> None:
    r = client.post("/login", data={"credential": credential, "password": password}, follow_redirects=False)
    assert r.status_code == 303, r.text


@pytest.fixture()
def alice(client):
    """Registered and logged-in user 'alice' on the shared client."""
    signup(client, "alice", "a@x.com")
    login(client, "alice")
    return client
