"""Environment configuration helpers.

All settings come from environment variables. Blank values and unfilled
template placeholders are treated as unset.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_DB_PATH = Path("data/reelboard.db")
DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")
DEFAULT_HTTP_TIMEOUT = 120.0


def _normalize(value: str | None) -> str:
    """Strip whitespace and quotes; reject placeholder strings."""
    v = str(value or "").strip()
    if len(v) >= 2 and v[0] == v[-1] and v[0] in {'"', "'"}:
        v = v[1:-1].strip()
    low = v.lower()
    if low in {"none", "null", ""}:
        return ""
    if low.startswith(("your_", "your-", "replace_me", "changeme")):
        return ""
    return v


def get_env(name: str, default: str = "") -> str:
    """Return a normalized environment value, or default when unset."""
    return _normalize(os.getenv(name)) or default


def get_db_path() -> Path:
    """Database file path (REELBOARD_DB_PATH).

    The special value ``:memory:`` is returned as-is.
    """
    return Path(get_env("REELBOARD_DB_PATH", str(DEFAULT_DB_PATH)))


def get_cors_origins() -> list[str]:
    """Comma-separated CORS origins (REELBOARD_CORS_ORIGINS)."""
    raw = get_env("REELBOARD_CORS_ORIGINS")
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def get_http_timeout() -> float:
    """Vendor HTTP timeout in seconds (REELBOARD_HTTP_TIMEOUT)."""
    raw = get_env("REELBOARD_HTTP_TIMEOUT")
    try:
        return float(raw) if raw else DEFAULT_HTTP_TIMEOUT
    except ValueError:
        return DEFAULT_HTTP_TIMEOUT
