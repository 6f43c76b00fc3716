"""
conftest.py: shared pytest fixtures
Tests run against the in-memory store; no MongoDB is needed.
"""
import asyncio
import os
import tempfile

# Must be set before seodash.config is first imported (settings are cached)
os.environ["MONGO_URI"] = ""
os.environ["APP_SECRET_KEY"] = "test-secret"
os.environ["RATE_LIMIT_PER_MINUTE"] = "1000"
os.environ["REPORTS_DIR"] = tempfile.mkdtemp(prefix="seodash-reports-")

import pytest
from fastapi.testclient import TestClient

from seodash.main import app
from seodash.middleware import rate_limit
from seodash.utils import store
from seodash.utils.auth import create_access_token


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture(autouse=True)
def clean_state():
    store.reset_memory()
    rate_limit.reset()
    yield
    store.reset_memory()


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a user, as the hosted auth service would."""
    def _make(user_id: str = "user-1", email: str = None) -> dict:
        token = create_access_token({"sub": user_id, "email": email or f"{user_id}@example.com"})
        return {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture
def seed():
    """Insert a row straight into the store from a sync test."""
    def _seed(table: str, **row) -> dict:
        return asyncio.run(store.insert(table, row))
    return _seed


@pytest.fixture
def fetch():
    def _fetch(table: str, **query) -> list:
        return asyncio.run(store.find(table, query))
    return _fetch


@pytest.fixture
def admin_headers(auth_headers, seed):
    seed("user_roles", user_id="admin-1", role="admin")
    return auth_headers("admin-1")


@pytest.fixture
def seo_payload():
    return {
        "title": "a" * 45,
        "description": "xem " + "b" * 126,
        "headings": [{"level": 1, "text": "Main"}, {"level": 2, "text": "Sub"}],
        "pagespeed": {"mobile_score": 95, "desktop_score": 95},
        "images": {"total_images": 10, "missing_alt": 0, "keyword_matches": 5},
    }
