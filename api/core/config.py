"""
Environment-backed settings.

Values are read on every call so tests and long-running processes pick up
changes to the environment without a reload.
"""

from __future__ import annotations

import os

DEFAULT_PUBLIC_URL = "http://localhost:8000"


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def database_url() -> str:
    return _env_str("DATABASE_URL")


def pool_min_size() -> int:
    return _env_int("DB_POOL_MIN_SIZE", 1)


def pool_max_size() -> int:
    return max(pool_min_size(), _env_int("DB_POOL_MAX_SIZE", 5))


def command_timeout() -> float:
    return _env_float("DB_COMMAND_TIMEOUT", 30.0)


def access_log_enabled() -> bool:
    return os.environ.get("ACCESS_LOG_ON", "").strip() == "1"


def public_base_url() -> str:
    """
    Base URL the bootstrap step calls back into for `/api/init-db`.
    """
    url = _env_str("PUBLIC_URL")
    if not url:
        vercel = _env_str("VERCEL_URL")
        if vercel:
            # VERCEL_URL is a bare host name.
            url = vercel if "://" in vercel else f"https://{vercel}"
    return (url or DEFAULT_PUBLIC_URL).rstrip("/")


def bootstrap_timeout_s() -> float:
    return _env_float("BOOTSTRAP_TIMEOUT_S", 10.0)
