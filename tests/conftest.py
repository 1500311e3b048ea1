# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Builds the app against an in-memory mongomock client and provides helpers
# for logged-in test clients.
# =============================================================================

import os

os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-secret-for-the-lostfound-test-suite")
os.environ.setdefault("ENVIRONMENT", "development")

import mongomock
import pytest

from lostfound import create_app

SECRET = "test-secret-for-the-lostfound-test-suite"


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "MONGO_CLIENT": mongomock.MongoClient(),
        "DB_NAME": "lostFoundTest",
        "ACCESS_TOKEN_SECRET": SECRET,
    })
    return app


@pytest.fixture
def db(app):
    return app.db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(app):
    """Return a test client holding a token cookie for ``email``."""
    def _login(email):
        c = app.test_client()
        resp = c.post("/login", json={"email": email})
        assert resp.status_code == 200
        return c
    return _login


@pytest.fixture
def post_payload():
    return {
        "title": "  Black Wallet ",
        "description": " Leather wallet with two cards ",
        "location": " Central Library ",
        "category": "Electronics",
        "thumbnail": "https://img.example.com/wallet.jpg",
        "postType": "Lost",
        "date": "2026-10-01T10:00:00Z",
        "name": "Alice",
    }


@pytest.fixture
def create_post(login, post_payload):
    """Create a post as ``email`` and return the stored document."""
    def _create(email, **overrides):
        c = login(email)
        body = dict(post_payload, **overrides)
        resp = c.post(f"/posts?email={email}", json=body)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["post"]
    return _create
