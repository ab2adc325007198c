"""Webhook signature verification: constant-time HMAC over the raw body.

Security contract:
- The HMAC is computed over the exact bytes received on the wire. Callers
  must pass ``await request.body()``, never a re-serialized parse result.
- Comparison uses hmac.compare_digest() (constant-time, no timing attacks)
- Missing secret -> verification always fails (fail-closed)
- Missing or malformed signature header -> verification fails, never raises
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
from collections.abc import Mapping

logger = logging.getLogger(__name__)

# Lowercase or uppercase hex SHA-256 digest
_HEX_SHA256 = re.compile(r"[0-9a-fA-F]{64}")


def compute_signature(body: bytes, secret: str) -> str:
    """Return the hex HMAC-SHA256 of ``body`` keyed with ``secret``."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, signature: str | None, secret: str) -> bool:
    """Verify a hex HMAC-SHA256 signature against the raw request body.

    Args:
        body: Raw request body bytes
        signature: Claimed signature from the request header (hex digest)
        secret: Shared webhook secret

    Returns:
        True if the signature matches
    """
    if not secret:
        logger.warning("WEBHOOK_SECRET not set, rejecting webhook")
        return False
    if not signature:
        return False

    claimed = signature.strip()
    if not _HEX_SHA256.fullmatch(claimed):
        return False

    expected = compute_signature(body, secret)
    return hmac.compare_digest(expected, claimed.lower())


def verify_webhook(
    body: bytes, headers: Mapping[str, str], header_name: str, secret: str
) -> bool:
    """Verify a webhook using the signature carried in ``header_name``.

    ``headers`` may be a Starlette ``Headers`` (case-insensitive) or a plain
    dict; plain dicts are searched case-insensitively as well.
    """
    signature = headers.get(header_name)
    if signature is None:
        wanted = header_name.lower()
        signature = next(
            (v for k, v in headers.items() if k.lower() == wanted), None
        )
    return verify_signature(body, signature, secret)
