import os

from app.core.env import load_env

load_env()

GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

# the generation endpoint is the only uncontrolled third party; keep it short
GEMINI_TIMEOUT_S = float(os.getenv("GEMINI_TIMEOUT_S", "8"))
GEMINI_MAX_OUTPUT_TOKENS_CAP = int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS_CAP", "2048"))

RECOMMENDATION_LIMIT = int(os.getenv("RECOMMENDATION_LIMIT", "5"))
REPRESENTATIVE_DOSAGE_POLICIES = ("first_seen", "most_used")

def _choice(name: str, default: str, allowed) -> str:
    value = os.getenv(name, default).strip().lower() or default
    if value not in allowed:
        raise ValueError(f"{name} must be one of {', '.join(allowed)}; got {value!r}")
    return value

REPRESENTATIVE_DOSAGE = _choice("REPRESENTATIVE_DOSAGE", "first_seen", REPRESENTATIVE_DOSAGE_POLICIES)
PREFERENCE_HISTORY_LIMIT = int(os.getenv("PREFERENCE_HISTORY_LIMIT", "10"))
PATTERN_WRITE_ATTEMPTS = int(os.getenv("PATTERN_WRITE_ATTEMPTS", "3"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
