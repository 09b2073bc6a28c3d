"""
Environment-backed settings shared across features.

Every setting has a local-development default. Malformed numeric values fall
back to the default instead of failing startup.
"""

from __future__ import annotations

import os


def env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def request_timeout_s() -> float:
    """
    Deadline applied to each store call made on behalf of a request.
    """
    return env_float("REQUEST_TIMEOUT_S", 10.0)


def log_level() -> str:
    return env_str("LOG_LEVEL", "INFO").upper()
