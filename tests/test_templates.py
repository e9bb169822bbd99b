from subsidy_audit.rules import REASON_CODES
from subsidy_audit.templates import REASON_TEMPLATES, fallback_text, lookup, risk_badge, static_explanations
from subsidy_audit.validation import find_blocked_phrases


def test_every_language_covers_every_code():
    for language, templates in REASON_TEMPLATES.items():
        assert set(templates) == set(REASON_CODES), language


def test_templates_pass_the_output_filter():
    for templates in REASON_TEMPLATES.values():
        for sentence in templates.values():
            assert find_blocked_phrases(sentence) == []


def test_missing_language_falls_back_to_default():
    assert lookup("fr", "cross_district") == REASON_TEMPLATES["en"]["cross_district"]


def test_missing_code_falls_back_to_normal():
    assert lookup("hi", "unheard_of") == REASON_TEMPLATES["hi"]["normal"]


def test_fallback_text_joins_lines():
    codes = ["high_recent_activity", "multiple_dealers"]
    assert fallback_text(codes, "hinglish") == "\n".join(static_explanations(codes, "hinglish"))


def test_risk_badge_fallbacks():
    assert risk_badge("HIGH", "hi") == "उच्च जोखिम – समीक्षा आवश्यक"
    assert risk_badge("LOW", "fr") == "Low Risk – Normal"
    assert risk_badge("UNKNOWN", "en") == "Unknown Risk"
