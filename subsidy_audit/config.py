import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

DB_URL = os.getenv("DB_URL", f"sqlite:///{(BASE_DIR / 'subsidy_audit.db').as_posix()}")
AUDIT_AUTO_PROVISION = os.getenv("AUDIT_AUTO_PROVISION", "true").lower() == "true"

GENERATION_API_KEY = os.getenv("GENERATION_API_KEY", "")
GENERATION_API_URL = os.getenv(
    "GENERATION_API_URL",
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-1.5-flash:generateContent",
)
GENERATION_TIMEOUT_S = float(os.getenv("GENERATION_TIMEOUT_S", "10"))
GENERATION_TEMPERATURE = float(os.getenv("GENERATION_TEMPERATURE", "0.3"))
GENERATION_MAX_TOKENS = int(os.getenv("GENERATION_MAX_TOKENS", "200"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES = ("en", "hi", "hinglish")

# Terms the generation service is instructed never to use.
PROHIBITED_PHRASES = ["suspicious", "fraud", "illegal", "criminal"]

# Same terms as they appear in Hindi and Hinglish narratives.
LOCALIZED_PROHIBITED_PHRASES = [
    "धोखाधड़ी",
    "संदिग्ध",
    "अवैध",
    "आपराधिक",
    "dhokha",
    "ghotala",
    "gair-kanooni",
    "gairkanooni",
]

# Output filter: instruction blocklist plus phrases implying inferred intent or model reasoning.
OUTPUT_BLOCKED_PHRASES = (
    PROHIBITED_PHRASES + LOCALIZED_PROHIBITED_PHRASES + ["intent", "prediction", "model thinks"]
)

AUDIT_DEFAULT_LIMIT = 50
AUDIT_MAX_LIMIT = 200
EXPORT_DEFAULT_LIMIT = 500
EXPORT_MAX_LIMIT = 5000
TREND_DEFAULT_DAYS = 30
TREND_MAX_DAYS = 90
SPIKE_LIMIT = 20
RECENT_JOBS_LIMIT = 10
