"""Order event processor: turns a verified webhook into a plan write.

Steps:
1. Only ``order.created`` proceeds; anything else is ignored (200)
2. Extract buyer email and the first product title (400 if missing)
3. Resolve the title to a plan tier (unknown titles -> FREE)
4. Set the tier on the user record in a single store write

The store is injected at construction. Exactly one write happens per valid
order.created event and none on any other path. Writes are a ``$set``, so a
redelivered event leaves the same final plan.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from plansync.errors import PayloadValidationError, StoreError
from plansync.webhooks.events import parse_event
from plansync.webhooks.plans import PLAN_MAP, PlanTier, resolve_plan

if TYPE_CHECKING:
    from plansync.store import SetPlanResult

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    IGNORED = "ignored"
    UPDATED = "updated"
    NOT_FOUND = "not-found"
    INVALID_SIGNATURE = "invalid-signature"
    INVALID_PAYLOAD = "invalid-payload"
    INTERNAL_ERROR = "internal-error"


_HTTP_STATUS: dict[OutcomeStatus, int] = {
    OutcomeStatus.IGNORED: 200,
    OutcomeStatus.UPDATED: 200,
    OutcomeStatus.NOT_FOUND: 404,
    OutcomeStatus.INVALID_SIGNATURE: 400,
    OutcomeStatus.INVALID_PAYLOAD: 400,
    OutcomeStatus.INTERNAL_ERROR: 500,
}

# Response messages carry no request-specific detail
_MESSAGES: dict[OutcomeStatus, str] = {
    OutcomeStatus.IGNORED: "Event ignored",
    OutcomeStatus.UPDATED: "Plan updated successfully",
    OutcomeStatus.NOT_FOUND: "User not found",
    OutcomeStatus.INVALID_SIGNATURE: "Invalid signature",
    OutcomeStatus.INVALID_PAYLOAD: "Invalid payload",
    OutcomeStatus.INTERNAL_ERROR: "Internal Server Error",
}


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """What happened to one webhook, plus the context used for audit logging."""

    status: OutcomeStatus
    event: str = ""
    email: str | None = None
    plan: int | None = None
    created: bool = False

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self.status]

    @property
    def message(self) -> str:
        return _MESSAGES[self.status]


class PlanStore(Protocol):
    """The single store operation the processor needs."""

    async def set_plan(self, email: str, plan: int, *, upsert: bool) -> SetPlanResult:
        """Set ``plan`` for ``email``."""
        ...


def redact_email(email: str | None) -> str:
    """Show only the domain of an email for logs."""
    if not email:
        return ""
    if "@" in email:
        return "***@" + email.rsplit("@", 1)[1]
    return "***"


class OrderEventProcessor:
    """Processes verified order webhooks against a plan store.

    Args:
        store: Store used for the plan write
        create_missing_users: Upsert unknown emails (True) or report them
            as not found without writing anything (False)
        plan_map: Product title -> tier table
    """

    def __init__(
        self,
        store: PlanStore,
        *,
        create_missing_users: bool = True,
        plan_map: Mapping[str, PlanTier] = PLAN_MAP,
    ) -> None:
        self._store = store
        self._create_missing_users = create_missing_users
        self._plan_map = plan_map

    async def process(self, payload: Any) -> ProcessResult:
        """Process a decoded webhook payload.

        Never raises for payload or store problems; those become
        INVALID_PAYLOAD and INTERNAL_ERROR results.
        """
        try:
            event = parse_event(payload)
        except PayloadValidationError as e:
            logger.info("Rejected webhook envelope: %s", e.message)
            return ProcessResult(OutcomeStatus.INVALID_PAYLOAD)

        if not event.is_order_created:
            logger.info("Ignoring webhook event %r", event.event)
            return ProcessResult(OutcomeStatus.IGNORED, event=event.event)

        try:
            order = event.order()
        except PayloadValidationError as e:
            logger.info("Rejected %s payload: %s", event.event, e.message)
            return ProcessResult(OutcomeStatus.INVALID_PAYLOAD, event=event.event)

        email = order.customer_email
        plan = resolve_plan(order.product_title, self._plan_map)
        if order.product_title not in self._plan_map:
            logger.info(
                "Unknown product %r, defaulting to plan %d", order.product_title, int(plan)
            )

        try:
            written = await self._store.set_plan(
                email, int(plan), upsert=self._create_missing_users
            )
        except StoreError:
            logger.exception("Error updating plan for %s", redact_email(email))
            return ProcessResult(
                OutcomeStatus.INTERNAL_ERROR, event=event.event, email=email, plan=int(plan)
            )

        if not written.found:
            logger.info("User %s not found, plan not set", redact_email(email))
            return ProcessResult(
                OutcomeStatus.NOT_FOUND, event=event.event, email=email, plan=int(plan)
            )

        if written.created:
            logger.info(
                "User %s not found and created with plan level %d",
                redact_email(email),
                int(plan),
            )
        else:
            logger.info("User %s set to plan level %d", redact_email(email), int(plan))

        return ProcessResult(
            OutcomeStatus.UPDATED,
            event=event.event,
            email=email,
            plan=int(plan),
            created=written.created,
        )
