import os
import tempfile
import uuid
from pathlib import Path

import pytest

# The app reads its settings at import time, so point the database and the
# upload directory at a scratch folder before any test module imports it.
_TMP = Path(tempfile.mkdtemp(prefix="repairdesk-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["UPLOAD_DIR"] = str(_TMP / "uploads")
os.environ.setdefault("ENV", "dev")

from fastapi.testclient import TestClient  # noqa: E402

from repairdesk.main import app  # noqa: E402


@pytest.fixture(scope="session")
def client():
    return TestClient(app)


@pytest.fixture
def signup(client):
    """Register a fresh user and return `(token, user_json)`."""
    def _signup(role=None, **fields):
        body = {
            "email": f"{uuid.uuid4().hex[:10]}@example.com",
            "name": "Test User",
            "password": "secret",
            "contact": "0700000000",
            "address": "1 Main St",
        }
        if role is not None:
            body["role"] = role
        body.update(fields)
        r = client.post("/user", json=body)
        assert r.status_code == 201, r.text
        return r.json()["token"], r.json()["data"]
    return _signup


@pytest.fixture
def customer(signup):
    token, user = signup()
    return {"Authorization": f"Bearer {token}"}, user


@pytest.fixture
def admin(signup):
    token, user = signup(role="admin")
    return {"Authorization": f"Bearer {token}"}, user
