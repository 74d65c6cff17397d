"""Unified configuration management for Wildcard Bridge.

This module provides a single source of truth for all configuration,
integrating environment variables, .env files, and defaults.
"""

from wildcard_bridge.config.env_loader import Environment, get_environment
from wildcard_bridge.config.settings import AppConfig, get_settings, load_app_config

# Singleton instance
settings = get_settings()

__all__ = [
    "settings",
    "AppConfig",
    "get_settings",
    "load_app_config",
    "Environment",
    "get_environment",
]
