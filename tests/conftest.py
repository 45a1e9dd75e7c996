"""Shared fixtures: an in-memory LocalStore behind the app and sign-up helpers."""

import os
import tempfile

# Settings are read once at import; keep the suite off disk and off Firebase.
os.environ["DATA_DIR"] = ""
os.environ["FIREBASE_CREDENTIALS_PATH"] = ""
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="lacasa-uploads-"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app import dependencies  # noqa: E402
from app.crud.user import UserCRUD  # noqa: E402
from app.services.local_store import LocalStore  # noqa: E402
from app.services.storage import LocalFileStorage  # noqa: E402


@pytest.fixture
def store(tmp_path, monkeypatch):
    """A fresh store wired into the app's dependencies."""
    db = LocalStore()
    monkeypatch.setattr(dependencies, "_is_local_mode", True)
    monkeypatch.setattr(dependencies, "_db_client", db)
    monkeypatch.setattr(dependencies, "_storage", LocalFileStorage(str(tmp_path / "uploads"), 1024 * 1024))
    dependencies._message_limiter.requests.clear()
    return db


@pytest.fixture
def client(store):
    from app.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(store):
    """Create a profile directly, optionally overriding fields."""

    def _make(uid: str, display_name: str = None, **fields):
        users = UserCRUD(store)
        users.create_profile(uid, email=f"{uid}@example.com", display_name=display_name or uid.capitalize())
        if fields:
            users.update(uid, fields)
        return users.get_profile(uid)

    return _make


@pytest.fixture
def signup(client):
    """Sign up through the API and return the uid with bearer headers."""

    def _signup(email: str = "ana@example.com", password: str = "secret123", display_name: str = "Ana", **extra):
        response = client.post(
            "/api/v1/auth/signup",
            json={"email": email, "password": password, "display_name": display_name, **extra},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {
            "uid": data["profile"]["uid"],
            "token": data["token"],
            "headers": {"Authorization": f"Bearer {data['token']}"},
        }

    return _signup


@pytest.fixture
def promote(store):
    def _promote(uid: str, role: str = "admin"):
        return UserCRUD(store).set_role(uid, role)

    return _promote
