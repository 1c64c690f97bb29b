"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Usage:
    from logline.core.settings.loader import get_request_log_settings

    settings = get_request_log_settings()  # First call: loads and validates
    settings = get_request_log_settings()  # Subsequent calls: returns cached instance

Testing:
    In tests, clear the caches to force reload:
    clear_all_caches()

    Or override with custom values:
    settings = RequestLogSettings(format="json", ...)
"""

from __future__ import annotations

from functools import lru_cache

from .logs import LoggingSettings
from .request_log import RequestLogSettings


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_request_log_settings() -> RequestLogSettings:
    """Get cached request logging settings.

    Returns:
        Validated and frozen RequestLogSettings instance.
    """
    return RequestLogSettings()


def clear_all_caches() -> None:
    """Clear all settings caches (useful for testing)."""
    get_logging_settings.cache_clear()
    get_request_log_settings.cache_clear()
