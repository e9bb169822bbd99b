"""Officer action rules for the audit ledger."""
from __future__ import annotations

from typing import Optional

from .errors import ValidationError
from .validation import ALLOWED_RISK_LEVELS

REVIEWED = "REVIEWED"
FLAGGED = "FLAGGED"
CLEARED = "CLEARED"
NOTE_ADDED = "NOTE_ADDED"

VALID_ACTIONS = [REVIEWED, FLAGGED, CLEARED, NOTE_ADDED]

# Actions that pin the resulting status regardless of caller input.
FORCED_STATUS = {
    CLEARED: "LOW",
}

# Actions that need a non-empty note on top of officer identity.
REQUIRES_NOTES = {NOTE_ADDED}


def check_preconditions(action: str, officer_name: Optional[str], notes: Optional[str]) -> str:
    """Validate an action request and return the normalized action name."""
    normalized = (action or "").strip().upper()
    if normalized not in VALID_ACTIONS:
        raise ValidationError(f"action must be one of {', '.join(VALID_ACTIONS)}")
    if not (officer_name or "").strip():
        raise ValidationError("officer_name is required")
    if normalized in REQUIRES_NOTES and not (notes or "").strip():
        raise ValidationError("notes are required for NOTE_ADDED")
    return normalized


def resolve_new_status(action: str, previous_status: str, explicit_status: Optional[str] = None) -> str:
    status = None
    if explicit_status and explicit_status.strip():
        status = explicit_status.strip().upper()
        if status not in ALLOWED_RISK_LEVELS:
            raise ValidationError(f"new_status must be one of {', '.join(ALLOWED_RISK_LEVELS)}")
    if action in FORCED_STATUS:
        return FORCED_STATUS[action]
    return status or previous_status
