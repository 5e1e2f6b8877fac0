"""
Environment helpers for the Pengines client
"""

import os
from typing import Optional

from .exceptions import ConfigurationError


def parse_env_bool(key: str, default: bool = False) -> bool:
    """Generic environment boolean parser"""
    value = os.getenv(key, "").lower().strip()
    return value in ("true", "1", "yes", "on") if value else default


def parse_env_int(key: str) -> Optional[int]:
    """Integer environment variable, or None when unset"""
    value = os.getenv(key, "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer, got '{value}'") from e


def parse_env_float(key: str) -> Optional[float]:
    """Float environment variable, or None when unset"""
    value = os.getenv(key, "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be a number, got '{value}'") from e
