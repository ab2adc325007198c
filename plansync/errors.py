"""Error taxonomy for the webhook pipeline.

Signature failures are not exceptions: the verifier returns False and the
handler answers 400. Everything below is caught at the request boundary and
translated into a response; none of it escapes to the server.
"""

from __future__ import annotations


class PlanSyncError(Exception):
    """Base exception for plansync errors."""

    __slots__ = ("message",)

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PayloadValidationError(PlanSyncError):
    """Raised when a webhook body is not JSON or lacks required fields."""

    __slots__ = ()


class StoreError(PlanSyncError):
    """Raised when the user store cannot be reached or a write fails."""

    __slots__ = ()


class StoreUnavailableError(StoreError):
    """Raised when the store is not connected or fails its ping."""

    __slots__ = ()
