"""Webhook payload models.

Only the fields the pipeline reads are declared; everything else the
platform sends is accepted and ignored.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from plansync.errors import PayloadValidationError

ORDER_CREATED = "order.created"


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class GatewayData(_Lenient):
    customer_email: str = Field(min_length=1)


class Gateway(_Lenient):
    data: GatewayData


class Payment(_Lenient):
    gateway: Gateway


class ProductVariant(_Lenient):
    product_title: str


class OrderData(_Lenient):
    """The ``data`` block of an order.created event."""

    payment: Payment
    product_variants: list[ProductVariant] = Field(min_length=1)

    @property
    def customer_email(self) -> str:
        return self.payment.gateway.data.customer_email

    @property
    def product_title(self) -> str:
        """Title of the first purchased variant; later variants are ignored."""
        return self.product_variants[0].product_title


class WebhookEvent(_Lenient):
    """Envelope of every webhook: an event tag plus an opaque data block.

    ``data`` is only validated further once the event is known to be
    order.created, so unrelated events with other shapes are still ignorable.
    """

    event: str
    data: Any = None

    @property
    def is_order_created(self) -> bool:
        return self.event == ORDER_CREATED

    def order(self) -> OrderData:
        """Validate ``data`` as an order block.

        Raises:
            PayloadValidationError: If a required field is missing or malformed.
        """
        try:
            return OrderData.model_validate(self.data)
        except ValidationError as e:
            raise PayloadValidationError(_describe(e)) from e


def decode_body(body: bytes) -> Any:
    """Decode a raw request body as JSON.

    Raises:
        PayloadValidationError: If the body is not valid UTF-8 JSON.
    """
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise PayloadValidationError("Body is not valid JSON") from e
    except RecursionError as e:
        raise PayloadValidationError("Body is nested too deeply") from e


def parse_event(payload: Any) -> WebhookEvent:
    """Validate the envelope of a decoded webhook payload.

    Raises:
        PayloadValidationError: If the payload is not an object with a string ``event``.
    """
    if not isinstance(payload, dict):
        raise PayloadValidationError("Payload must be a JSON object")
    try:
        return WebhookEvent.model_validate(payload)
    except ValidationError as e:
        raise PayloadValidationError(_describe(e)) from e


def _describe(error: ValidationError) -> str:
    """Summarize a pydantic error as dotted field paths, without input values."""
    fields = sorted({".".join(str(p) for p in err["loc"]) or "<root>" for err in error.errors()})
    return "Invalid or missing fields: " + ", ".join(fields)
