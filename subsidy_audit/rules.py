"""Reason codes derived from upstream risk flags.

The flags themselves are computed by deterministic rules in the analytical store;
this module only names them.
"""
from __future__ import annotations

from typing import List

from .entities import RiskFlags

HIGH_RECENT_ACTIVITY = "high_recent_activity"
MULTIPLE_DEALERS = "multiple_dealers"
CROSS_DISTRICT = "cross_district"
HIGH_LIFETIME_USAGE = "high_lifetime_usage"
NORMAL = "normal"

# Order is part of the contract: activity, dealers, district, lifetime.
FLAG_ORDER = [
    ("high_recent_activity", HIGH_RECENT_ACTIVITY),
    ("multiple_dealers", MULTIPLE_DEALERS),
    ("cross_district", CROSS_DISTRICT),
    ("high_lifetime_usage", HIGH_LIFETIME_USAGE),
]

REASON_CODES = frozenset(code for _, code in FLAG_ORDER) | {NORMAL}


def derive_reason_codes(flags: RiskFlags) -> List[str]:
    reasons = [code for attr, code in FLAG_ORDER if getattr(flags, attr)]
    if not reasons:
        reasons.append(NORMAL)
    return reasons
