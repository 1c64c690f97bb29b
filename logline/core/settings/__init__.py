"""Pydantic Settings v2 configuration.

Settings are split by concern and read from the environment:
- RequestLogSettings: middleware options (REQUEST_LOG_ prefix)
- LoggingSettings: log sink configuration (LOG_ prefix)

Import settings via cached loaders:
    from logline.core.settings import get_request_log_settings
"""

from __future__ import annotations

from .loader import clear_all_caches, get_logging_settings, get_request_log_settings
from .logs import LoggingSettings
from .request_log import DEFAULT_FILTERED_VARIABLES, RequestLogSettings

__all__ = [
    "DEFAULT_FILTERED_VARIABLES",
    "LoggingSettings",
    "RequestLogSettings",
    "clear_all_caches",
    "get_logging_settings",
    "get_request_log_settings",
]
