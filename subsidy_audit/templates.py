"""Pre-approved, per-language explanation sentences.

These are the ground truth the generation service may rephrase but never extend.
"""
from __future__ import annotations

from typing import Dict, Iterable, List

from .config import DEFAULT_LANGUAGE

REASON_TEMPLATES: Dict[str, Dict[str, str]] = {
    "en": {
        "high_recent_activity": "Unusually high number of LPG refills detected in the last 30 days",
        "multiple_dealers": "Refills recorded from multiple dealers in short time period",
        "cross_district": "LPG refills detected across different districts",
        "high_lifetime_usage": "Higher-than-expected lifetime refill count compared to regional norms",
        "normal": "Refill behavior aligns with historical and regional norms",
    },
    "hi": {
        "high_recent_activity": "पिछले 30 दिनों में असामान्य रूप से अधिक एलपीजी रिफिल पाए गए",
        "multiple_dealers": "कम समय में एकाधिक डीलरों से रिफिल दर्ज किए गए",
        "cross_district": "विभिन्न जिलों से एलपीजी रिफिल पाए गए",
        "high_lifetime_usage": "क्षेत्रीय मानकों की तुलना में अपेक्षा से अधिक जीवनकाल रिफिल संख्या",
        "normal": "रिफिल व्यवहार ऐतिहासिक और क्षेत्रीय मानकों के अनुरूप है",
    },
    "hinglish": {
        "high_recent_activity": "Pichhle 30 dinon mein unusually zyada LPG refills detect hui hain",
        "multiple_dealers": "Multiple dealers se short time mein refills recorded hain",
        "cross_district": "Alag-alag districts se LPG refills detect hui hain",
        "high_lifetime_usage": "Regional norms ki tulna mein lifetime refill count zyada hai",
        "normal": "Refill behavior historical aur regional norms ke according hai",
    },
}

RISK_BADGES: Dict[str, Dict[str, str]] = {
    "en": {
        "HIGH": "High Risk – Review Recommended",
        "MEDIUM": "Medium Risk – Monitor",
        "LOW": "Low Risk – Normal",
    },
    "hi": {
        "HIGH": "उच्च जोखिम – समीक्षा आवश्यक",
        "MEDIUM": "मध्यम जोखिम – निगरानी",
        "LOW": "कम जोखिम – सामान्य",
    },
    "hinglish": {
        "HIGH": "High Risk – Audit Review Recommended",
        "MEDIUM": "Medium Risk – Monitoring Required",
        "LOW": "Low Risk – Normal Pattern",
    },
}

LANGUAGE_LABELS = {
    "en": "English (formal, administrative)",
    "hi": "Hindi (formal, government style)",
    "hinglish": "Hinglish (simple Hindi + English mix)",
}


def lookup(language: str, reason_code: str) -> str:
    templates = REASON_TEMPLATES.get(language) or REASON_TEMPLATES[DEFAULT_LANGUAGE]
    return templates.get(reason_code) or templates["normal"]


def static_explanations(reason_codes: Iterable[str], language: str = DEFAULT_LANGUAGE) -> List[str]:
    return [lookup(language, code) for code in reason_codes]


def fallback_text(reason_codes: Iterable[str], language: str = DEFAULT_LANGUAGE) -> str:
    return "\n".join(static_explanations(reason_codes, language))


def risk_badge(risk_level: str, language: str = DEFAULT_LANGUAGE) -> str:
    badges = RISK_BADGES.get(language) or {}
    return badges.get(risk_level) or RISK_BADGES[DEFAULT_LANGUAGE].get(risk_level) or "Unknown Risk"


def language_label(language: str) -> str:
    return LANGUAGE_LABELS.get(language) or LANGUAGE_LABELS[DEFAULT_LANGUAGE]
