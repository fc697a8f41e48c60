from __future__ import annotations

import os


def int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Timing ----------------------------------------------------------------------
SECONDS_PER_QUESTION = int_env("SECONDS_PER_QUESTION", 60)
# slack on top of the allotted time for network latency / auto-submit
TIME_GRACE_SECONDS = int_env("TIME_GRACE_SECONDS", 30)

# --- Question bank -----------------------------------------------------------------
DEGREES = ("Bpharm", "Dpharm", "Both")
ANSWER_LETTERS = ("A", "B", "C", "D")
MAX_SAMPLE_SIZE = 200

# --- Result cache (seconds) --------------------------------------------------------
REDIS_URL = os.getenv("REDIS_URL", "")
CACHE_PREFIX = os.getenv("CACHE_PREFIX", "gpat-cache")
CACHE_TTL_HISTORY = int_env("CACHE_TTL_HISTORY", 300)
CACHE_TTL_DETAIL = int_env("CACHE_TTL_DETAIL", 3600)
CACHE_TTL_STATS = int_env("CACHE_TTL_STATS", 3600)
CACHE_TTL_FILTERS = int_env("CACHE_TTL_FILTERS", 3600)
# how long to wait before trying an unreachable Redis again
REDIS_RETRY_SECONDS = int_env("REDIS_RETRY_SECONDS", 30)

# --- HTTP ----------------------------------------------------------------------------
_DEFAULT_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", _DEFAULT_ORIGINS).split(",") if o.strip()
]
