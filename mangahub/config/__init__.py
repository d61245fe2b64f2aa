"""
Configuration Management.

Centralized configuration using Pydantic Settings.

Configuration sources (in order of precedence):
1. Environment variables
2. .env file
3. Default values

Example:
    from mangahub.config import get_settings

    settings = get_settings()
    timeout = settings.request_timeout_seconds
"""

from mangahub.config.settings import DEFAULT_USER_AGENTS, Settings, get_settings

__all__ = [
    "DEFAULT_USER_AGENTS",
    "Settings",
    "get_settings",
]
