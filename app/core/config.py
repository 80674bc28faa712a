"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    """Float from env; blank or unparsable values fall back to default with a warning."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("[config] %s=%r is not a number; using %s", name, raw, default)
        return default


# Gemini (from env). GOOGLE_API_KEY wins; GEMINI_API_KEY is accepted as an alias.
GOOGLE_API_KEY: str = (
    os.getenv("GOOGLE_API_KEY", "").strip() or os.getenv("GEMINI_API_KEY", "").strip()
)
DEFAULT_GEMINI_MODEL: str = "gemini-2.5-flash"
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL).strip() or DEFAULT_GEMINI_MODEL
GEMINI_API_BASE: str = (
    os.getenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta").strip().rstrip("/")
    or "https://generativelanguage.googleapis.com/v1beta"
)

# API timeout (seconds), covers connect + response
LLM_API_TIMEOUT: float = 60.0

# Decoding parameters sent with every generateContent call
GENERATION_TEMPERATURE: float = 0.9
GENERATION_TOP_P: int = 1
GENERATION_TOP_K: int = 1
GENERATION_MAX_OUTPUT_TOKENS: int = 2048

# Sessions
SESSION_ID_LENGTH: int = 10
# Idle seconds before a session is dropped. 0 keeps sessions for the process lifetime.
SESSION_TTL_SECONDS: float = _env_float("SESSION_TTL_SECONDS", 0.0)

MISSING_API_KEY_MESSAGE: str = "Set GOOGLE_API_KEY or GEMINI_API_KEY in your .env or environment"
