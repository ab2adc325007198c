"""Shared fixtures for the plansync test suite."""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any

import pytest

from plansync.errors import StoreError, StoreUnavailableError
from plansync.store import SetPlanResult

SECRET = "test-webhook-secret"


class FakeUserStore:
    """In-memory stand-in for UserStore with the same connect/set_plan/close surface."""

    def __init__(
        self,
        users: dict[str, int] | None = None,
        *,
        fail_connect: bool = False,
        fail_writes: bool = False,
    ) -> None:
        self.users: dict[str, int] = dict(users or {})
        self.writes: list[tuple[str, int, bool]] = []
        self.fail_connect = fail_connect
        self.fail_writes = fail_writes
        self.connected = False
        self.closed = False

    async def connect(self) -> None:
        if self.fail_connect:
            raise StoreUnavailableError("User store unreachable: ServerSelectionTimeoutError")
        self.connected = True

    async def close(self) -> None:
        self.connected = False
        self.closed = True

    async def set_plan(self, email: str, plan: int, *, upsert: bool) -> SetPlanResult:
        if not self.connected:
            raise StoreUnavailableError("User store is not connected")
        if self.fail_writes:
            raise StoreError("Plan update failed: AutoReconnect")
        self.writes.append((email, plan, upsert))
        if email in self.users:
            self.users[email] = plan
            return SetPlanResult(matched=1, created=False)
        if upsert:
            self.users[email] = plan
            return SetPlanResult(matched=0, created=True)
        return SetPlanResult(matched=0, created=False)


def sign_body(body: bytes, secret: str = SECRET) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def make_order_payload(
    email: str = "a@x.com",
    title: str = "Pro",
    event: str = "order.created",
) -> dict[str, Any]:
    return {
        "event": event,
        "data": {
            "payment": {"gateway": {"data": {"customer_email": email}}},
            "product_variants": [{"product_title": title}],
        },
    }


@pytest.fixture
def fake_store() -> FakeUserStore:
    """Connected, empty in-memory store."""
    store = FakeUserStore()
    store.connected = True
    return store


@pytest.fixture
def make_store():
    """Factory for FakeUserStore with custom users or failure modes."""
    return FakeUserStore


@pytest.fixture
def sign():
    """Hex HMAC-SHA256 signer keyed with the test secret by default."""
    return sign_body


@pytest.fixture
def order_payload():
    """Factory for order webhook payload dicts."""
    return make_order_payload


@pytest.fixture
def order_body():
    """Factory for compact JSON order webhook bodies."""

    def _make(**kwargs: Any) -> bytes:
        return json.dumps(make_order_payload(**kwargs), separators=(",", ":")).encode()

    return _make
