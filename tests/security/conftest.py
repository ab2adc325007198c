"""Webhook HTTP test fixtures.

Responsibilities:
- Builds the FastAPI app around an in-memory FakeUserStore
- Wraps it in TestClient (lifespan runs on enter, so the store is connected)
- Scoped to tests/security/ only

The global tests/conftest.py provides FakeUserStore, sign and order_body.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from plansync.config import Settings
from plansync.serve import create_app

SECRET = "test-webhook-secret"


@pytest.fixture
def make_settings():
    """Factory for Settings isolated from the environment and .env."""

    def _make(**overrides) -> Settings:
        values = {"webhook_secret": SECRET, "signature_header": "X-Signature"}
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def store(make_store):
    """Store injected into the app; empty and upserting by default."""
    return make_store()


@pytest.fixture
def make_client(make_settings, store):
    """Factory for a TestClient around create_app, closed at teardown."""
    clients: list[TestClient] = []

    def _make(store_override=None, **settings_overrides) -> TestClient:
        app = create_app(make_settings(**settings_overrides), store_override or store)
        c = TestClient(app, raise_server_exceptions=False)
        c.__enter__()
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    """Client for the default (upsert) policy."""
    return make_client()


@pytest.fixture
def strict_client(make_client):
    """Client for the require-existing policy (unknown emails -> 404)."""
    return make_client(create_missing_users=False)
