"""Webhook HTTP handlers: FastAPI routes for the order webhook.

The POST handler:
1. Reads the raw body (needed for HMAC verification)
2. Verifies the signature header against those exact bytes
3. Decodes JSON and hands the payload to the OrderEventProcessor
4. Translates the ProcessResult into a JSON response

Security contract:
- Never return error details to the webhook caller (info disclosure)
- 400 for signature failures, before any store access
- Every failure is caught here; nothing propagates to the server
- One WEBHOOK_AUDIT log line per request
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from plansync.config import Settings
from plansync.errors import PayloadValidationError
from plansync.webhooks.events import decode_body
from plansync.webhooks.processor import (
    OrderEventProcessor,
    OutcomeStatus,
    ProcessResult,
    redact_email,
)
from plansync.webhooks.verification import verify_webhook

logger = logging.getLogger(__name__)


def _log_webhook(result: ProcessResult, elapsed_ms: float) -> None:
    """Audit log for webhook activity."""
    logger.info(
        "WEBHOOK_AUDIT event=%s email=%s status=%s elapsed_ms=%.1f",
        result.event or "unknown",
        redact_email(result.email) or "unknown",
        result.status.value,
        elapsed_ms,
    )


def _respond(result: ProcessResult) -> JSONResponse:
    return JSONResponse(
        {"status": result.status.value, "message": result.message},
        status_code=result.http_status,
    )


async def _handle_order_webhook(request: Request) -> JSONResponse:
    """Verify, process and answer one order webhook."""
    start = time.time()
    settings: Settings = request.app.state.settings
    processor: OrderEventProcessor = request.app.state.processor

    # Raw bytes, captured before any parsing
    body = await request.body()

    logger.debug(
        "Incoming webhook: method=%s path=%s length=%d signed=%s",
        request.method,
        request.url.path,
        len(body),
        settings.signature_header in request.headers,
    )

    if not verify_webhook(
        body, request.headers, settings.signature_header, settings.webhook_secret
    ):
        result = ProcessResult(OutcomeStatus.INVALID_SIGNATURE)
    else:
        try:
            result = await processor.process(decode_body(body))
        except PayloadValidationError as e:
            logger.info("Rejected webhook body: %s", e.message)
            result = ProcessResult(OutcomeStatus.INVALID_PAYLOAD)
        except Exception:
            logger.exception("Unexpected error processing webhook")
            result = ProcessResult(OutcomeStatus.INTERNAL_ERROR)

    _log_webhook(result, (time.time() - start) * 1000)
    return _respond(result)


def register_webhook_routes(app: FastAPI, path: str = "/webhook") -> None:
    """Register the webhook liveness and receive routes on the FastAPI app.

    The handlers read ``settings`` and ``processor`` from ``app.state``,
    which the app lifespan populates.
    """

    @app.get(path, response_class=PlainTextResponse)
    async def webhook_liveness():
        """Liveness acknowledgement, no auth and no side effects."""
        return "Webhook accessible"

    @app.post(path)
    async def order_webhook(request: Request):
        """Receive order webhooks (signature-verified)."""
        return await _handle_order_webhook(request)

    logger.info("Webhook routes registered: GET/POST %s", path)
