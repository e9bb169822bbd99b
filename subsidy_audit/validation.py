"""Closed-allowlist sanitizers for every value that can reach a generation prompt."""
from __future__ import annotations

import re
import unicodedata
from typing import Iterable, List, Optional

from .config import DEFAULT_LANGUAGE, OUTPUT_BLOCKED_PHRASES, SUPPORTED_LANGUAGES
from .errors import ValidationError
from .rules import NORMAL, REASON_CODES

ALLOWED_RISK_LEVELS = ("HIGH", "MEDIUM", "LOW")
UNKNOWN_RISK = "UNKNOWN"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_BENEFICIARY_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def sanitize_risk_level(raw) -> str:
    if not isinstance(raw, str):
        return UNKNOWN_RISK
    normalized = raw.upper().strip()
    if normalized in ALLOWED_RISK_LEVELS:
        return normalized
    return UNKNOWN_RISK


def sanitize_reason_codes(raw) -> List[str]:
    """Keep only tokens that match the allowlist exactly after cleaning.

    Control characters are removed and act as token boundaries, so
    ``"HIGH_RECENT_ACTIVITY\\n<script>"`` yields ``high_recent_activity`` while
    the ``<script>`` token is rejected whole. Unrecognized tokens are dropped,
    never substituted. An empty result becomes ``["normal"]``.
    """
    if not isinstance(raw, (list, tuple)):
        return [NORMAL]

    sanitized = []
    for code in raw:
        if not isinstance(code, str):
            continue
        for token in _CONTROL_CHARS.split(code.lower()):
            token = token.strip()
            if token in REASON_CODES:
                sanitized.append(token)
    return sanitized or [NORMAL]


def sanitize_language(raw: Optional[str]) -> str:
    if raw and raw in SUPPORTED_LANGUAGES:
        return raw
    return DEFAULT_LANGUAGE


def validate_beneficiary_id(raw) -> str:
    value = raw.strip() if isinstance(raw, str) else ""
    if not value:
        raise ValidationError("beneficiary_id is required")
    if not _BENEFICIARY_ID.match(value):
        raise ValidationError("beneficiary_id is malformed")
    return value


def find_blocked_phrases(text: str, phrases: Iterable[str] = OUTPUT_BLOCKED_PHRASES) -> List[str]:
    # Substring match so inflections ("fraudulent", "intentional") are caught too.
    lowered = unicodedata.normalize("NFC", (text or "").lower())
    return [p for p in phrases if unicodedata.normalize("NFC", p.lower()) in lowered]
