"""Logging configuration read straight from the environment.

The telemetry module configures structlog on first use, which can happen while
``wildcard_bridge.config.settings`` is still importing. These helpers read the
two values logging needs without touching the settings singleton, and must not
import telemetry.
"""

from __future__ import annotations

import os

from wildcard_bridge.config.validators import validate_log_format, validate_log_level


def get_bootstrap_log_level(default: str = "INFO") -> str:
    """Return APP_LOG_LEVEL, validated, or ``default`` if unset or invalid."""
    try:
        return validate_log_level(os.getenv("APP_LOG_LEVEL", default))
    except ValueError:
        return validate_log_level(default)


def get_bootstrap_log_format(default: str = "console") -> str:
    """Return the console log format from APP_LOG_FORMAT (``json`` or ``console``)."""
    try:
        return validate_log_format(os.getenv("APP_LOG_FORMAT", default))
    except ValueError:
        return default
