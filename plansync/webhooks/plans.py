"""Product title -> plan tier mapping.

The table is closed and read-only: adding a tier means editing PLAN_MAP and
bumping PLAN_MAP_VERSION, never touching the lookup logic.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import IntEnum
from types import MappingProxyType


class PlanTier(IntEnum):
    """Subscription tiers as stored in the user record's ``plan`` field."""

    FREE = 0
    STARTER = 1
    PRO = 2
    ENTERPRISE = 3


PLAN_MAP_VERSION = 1

PLAN_MAP: Mapping[str, PlanTier] = MappingProxyType(
    {
        "Free": PlanTier.FREE,
        "Starter": PlanTier.STARTER,
        "Pro": PlanTier.PRO,
        "Enterprise": PlanTier.ENTERPRISE,
    }
)

DEFAULT_TIER = PlanTier.FREE


def resolve_plan(
    product_title: str, plan_map: Mapping[str, PlanTier] = PLAN_MAP
) -> PlanTier:
    """Return the tier for a product title, FREE when the title is unknown.

    Matching is exact and case-sensitive ("pro" is not "Pro").
    """
    return plan_map.get(product_title, DEFAULT_TIER)
