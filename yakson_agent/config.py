"""Environment-driven settings for the Yakson agent.

Values are read once at import time. `main.py` loads `.env` before importing
anything that reads from here.
"""
from __future__ import annotations

import os


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

LOG_LEVEL = os.getenv("YAKSON_LOG_LEVEL", "INFO").upper()

FETCH_TIMEOUT_MS = max(500, _int_env("YAKSON_FETCH_TIMEOUT_MS", 5000))
FETCH_RETRIES = max(0, _int_env("YAKSON_FETCH_RETRIES", 2))

# Video lookups run under tighter budgets than commerce pages.
OEMBED_TIMEOUT_MS = 1500
VIDEO_HTML_TIMEOUT_MS = 2000

CACHE_TTL_S = 6 * 60 * 60
FALLBACK_CACHE_TTL_S = 30 * 60
CACHE_MAX_ENTRIES = 500


def gemini_api_key() -> str | None:
    return os.environ.get("GEMINI_API_KEY") or None


def cors_allow_origins() -> list[str]:
    raw = os.getenv("YAKSON_CORS_ORIGINS", "").strip()
    if not raw:
        return ["http://localhost:3000"]
    return [o.strip() for o in raw.split(",") if o.strip()]
