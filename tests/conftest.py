"""Shared test fixtures for the groupchat test suite.

Every test run uses a throwaway SQLite file. The key-value table is emptied
before each test, so tests never see each other's accounts or messages.
"""

import os
import tempfile

# Configure the app before anything imports it.
_TMP_DIR = tempfile.mkdtemp(prefix="groupchat-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'groupchat_test.db')}"
os.environ["ENVIRONMENT"] = "development"
os.environ["JWT_SECRET_KEY"] = "test-suite-secret-key-0123456789abcdef"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"
os.environ["LOG_FORMAT"] = "text"

import pytest
from fastapi.testclient import TestClient

from groupchat.core.auth import issue_token
from groupchat.database import SessionLocal, get_db
from groupchat.main import app
from groupchat.middleware.request_context import _rate_buckets
from groupchat.models import KVEntry
from groupchat.repositories import KeyValueStore


@pytest.fixture(autouse=True)
def _clean_store():
    """Empty the key-value table before each test.

    Runs before (not after) the test so a failing test leaves its data
    behind for inspection.
    """
    db = SessionLocal()
    try:
        db.query(KVEntry).delete()
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def store(db) -> KeyValueStore:
    return KeyValueStore(db)


@pytest.fixture()
def client(db):
    """TestClient with the DB dependency pinned to the per-test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    _rate_buckets.clear()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def token_service():
    return app.state.token_service


@pytest.fixture()
def auth_headers(token_service):
    """Factory for bearer headers carrying a valid token for *username*."""

    def _make(username: str = "ada", ttl_seconds: int = 3600) -> dict:
        token = issue_token(token_service, username, ttl_seconds)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def signup_and_login(client):
    """Factory: register *username* through the API and return a login token."""

    def _signup_and_login(username: str = "ada", password: str = "correct-horse") -> str:
        resp = client.post("/signup", json={"username": username, "password": password})
        assert resp.status_code == 201, resp.text
        resp = client.post("/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["token"]

    return _signup_and_login


@pytest.fixture(scope="session")
def rsa_private_key():
    """One 2048-bit RSA key for the whole run; generation is slow."""
    from cryptography.hazmat.primitives.asymmetric import rsa

    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_private_keys():
    """P-256, P-384 and P-521 keys keyed by curve name."""
    from cryptography.hazmat.primitives.asymmetric import ec

    return {
        curve.name: ec.generate_private_key(curve)
        for curve in (ec.SECP256R1(), ec.SECP384R1(), ec.SECP521R1())
    }
