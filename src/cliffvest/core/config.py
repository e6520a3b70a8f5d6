"""
cliffvest configuration

Settings are read from environment variables at import time. Malformed
values raise ConfigurationError rather than silently falling back.
"""

from __future__ import annotations

import os

from .exceptions import ConfigurationError

DAY = 24 * 60 * 60

# Hard schedule limits
MAX_PERIOD_SIZE = 360 * DAY
MAX_VESTING_PERIODS = 120
MAX_LABEL_BYTES = 31


def get_int_env(env_var: str, default: int) -> int:
    """Read an integer environment variable, raising on garbage."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"{env_var} must be an integer, got {raw!r}",
            details={"env_var": env_var},
        ) from exc


def get_bool_env(env_var: str, default: bool = False) -> bool:
    raw = os.getenv(env_var, "").strip().lower()
    if not raw:
        return default
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(
        f"{env_var} must be a boolean flag, got {raw!r}",
        details={"env_var": env_var},
    )


ENVIRONMENT = os.getenv("CLIFFVEST_ENV", "development").strip() or "development"

LOG_LEVEL = os.getenv("CLIFFVEST_LOG_LEVEL", "INFO").strip().upper() or "INFO"
if LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
    raise ConfigurationError(f"CLIFFVEST_LOG_LEVEL is not a log level: {LOG_LEVEL!r}")

LOG_JSON = get_bool_env("CLIFFVEST_LOG_JSON", False)
LOG_FILE = os.getenv("CLIFFVEST_LOG_FILE", "").strip()

DEFAULT_PERIOD_SIZE = get_int_env("CLIFFVEST_DEFAULT_PERIOD_SIZE", 30 * DAY)
if not 0 < DEFAULT_PERIOD_SIZE <= MAX_PERIOD_SIZE:
    raise ConfigurationError(
        f"CLIFFVEST_DEFAULT_PERIOD_SIZE must be in (0, {MAX_PERIOD_SIZE}], got {DEFAULT_PERIOD_SIZE}"
    )
