"""Case explanation: deterministic reasons plus an optional polished narrative."""
from __future__ import annotations

from typing import Dict

from .entities import CaseRow
from .llm import ExplanationGenerator
from .rules import derive_reason_codes
from .templates import risk_badge, static_explanations
from .validation import sanitize_language, sanitize_risk_level


async def build_case_explanation(case: CaseRow, language: str, generator: ExplanationGenerator) -> Dict[str, object]:
    """``reasons`` is authoritative; ``narrative`` only rephrases the same codes."""
    language = sanitize_language(language)
    reason_codes = derive_reason_codes(case.flags)
    reasons = static_explanations(reason_codes, language)
    narrative = await generator.generate(case.risk_level, reason_codes, language)

    return {
        "beneficiary_id": case.beneficiary_id,
        "risk_level": case.risk_level or "UNKNOWN",
        "risk_badge": risk_badge(sanitize_risk_level(case.risk_level), language),
        "mean_squared_error": case.mean_squared_error,
        "language": language,
        "flags": case.flags.to_dict(),
        "reason_codes": reason_codes,
        "reasons": reasons,
        "narrative": narrative,
    }
