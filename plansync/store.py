"""MongoDB user store.

One AsyncMongoClient (and therefore one connection pool) per process, opened
by the app lifespan and handed to the processor. Requests never open or close
connections themselves.

Atomicity comes from MongoDB's single-document update: two webhooks racing
on the same email each issue one ``$set`` and the last one wins, with no
in-process locking.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pymongo import ASCENDING, AsyncMongoClient
from pymongo.errors import PyMongoError

from plansync.config import Settings
from plansync.errors import StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SetPlanResult:
    """Outcome of a single plan write."""

    matched: int
    created: bool

    @property
    def found(self) -> bool:
        """True when the write touched a record (existing or newly inserted)."""
        return self.matched > 0 or self.created


class UserStore:
    """Pooled MongoDB access to the users collection."""

    def __init__(
        self,
        uri: str,
        db_name: str,
        collection_name: str = "users",
        *,
        timeout_ms: int = 5000,
        max_pool_size: int = 50,
        client_factory: Callable[..., Any] = AsyncMongoClient,
    ) -> None:
        self._uri = uri
        self._db_name = db_name
        self._collection_name = collection_name
        self._timeout_ms = timeout_ms
        self._max_pool_size = max_pool_size
        self._client_factory = client_factory
        self._client: Any = None
        self._indexed = False

    @classmethod
    def from_settings(cls, settings: Settings) -> UserStore:
        return cls(
            settings.mongodb_uri,
            settings.db_name,
            settings.users_collection,
            timeout_ms=settings.store_timeout_ms,
            max_pool_size=settings.store_max_pool_size,
        )

    @property
    def connected(self) -> bool:
        return self._client is not None

    @property
    def collection(self) -> Any:
        if self._client is None:
            raise StoreUnavailableError("User store is not connected")
        return self._client[self._db_name][self._collection_name]

    async def connect(self) -> None:
        """Create the client pool, ping the server and ensure the email index.

        The client is kept even when the ping fails; pymongo reconnects on
        the next operation, so a store that comes up later is picked up.

        Raises:
            StoreUnavailableError: If the server cannot be reached.
        """
        if self._client is None:
            self._client = self._client_factory(
                self._uri,
                serverSelectionTimeoutMS=self._timeout_ms,
                connectTimeoutMS=self._timeout_ms,
                timeoutMS=self._timeout_ms,
                maxPoolSize=self._max_pool_size,
            )
        try:
            await self._client.admin.command("ping")
            await self._ensure_indexes()
        except PyMongoError as e:
            raise StoreUnavailableError(f"User store unreachable: {type(e).__name__}") from e
        logger.info(
            "User store connected: db=%s collection=%s", self._db_name, self._collection_name
        )

    async def _ensure_indexes(self) -> None:
        """Create the unique email index once; retried until it succeeds."""
        if self._indexed:
            return
        await self.collection.create_index(
            [("email", ASCENDING)], unique=True, name="email_unique"
        )
        self._indexed = True

    async def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.close()
        logger.info("User store closed")

    async def set_plan(self, email: str, plan: int, *, upsert: bool) -> SetPlanResult:
        """Set ``plan`` on the record keyed by ``email``.

        Args:
            email: Unique user email
            plan: Plan tier to store
            upsert: Create the record when no user has this email

        Raises:
            StoreError: If the store is unreachable or the write fails.
        """
        try:
            # Startup may have run before the server was reachable
            await self._ensure_indexes()
            result = await self.collection.update_one(
                {"email": email},
                {"$set": {"plan": int(plan)}},
                upsert=upsert,
            )
        except PyMongoError as e:
            raise StoreError(f"Plan update failed: {type(e).__name__}") from e
        return SetPlanResult(
            matched=result.matched_count,
            created=result.upserted_id is not None,
        )
