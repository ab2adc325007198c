"""FastAPI app factory and server entry point.

The lifespan owns the store: it connects once at startup, injects the store
into the OrderEventProcessor, and closes it on shutdown.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from plansync import __version__
from plansync.config import Settings, get_settings
from plansync.errors import StoreUnavailableError
from plansync.store import UserStore
from plansync.webhooks.handlers import register_webhook_routes
from plansync.webhooks.processor import OrderEventProcessor

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=_LOG_FORMAT)


def create_app(settings: Settings | None = None, store: UserStore | None = None) -> FastAPI:
    """Build the webhook app.

    Args:
        settings: Settings to use (defaults to the environment)
        store: Store to inject (defaults to a UserStore built from settings)
    """
    settings = settings or get_settings()
    store = store or UserStore.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not settings.webhook_secret:
            logger.warning("WEBHOOK_SECRET not set, every webhook will be rejected")
        try:
            await store.connect()
        except StoreUnavailableError as e:
            if settings.require_store_on_startup:
                logger.error("User store required at startup: %s", e.message)
                await store.close()
                raise
            logger.warning("Starting without user store: %s", e.message)

        app.state.settings = settings
        app.state.processor = OrderEventProcessor(
            store, create_missing_users=settings.create_missing_users
        )
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(title="plansync", version=__version__, lifespan=lifespan)
    register_webhook_routes(app, settings.webhook_path)
    return app


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Server starting on port %d", settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
