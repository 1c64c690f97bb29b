"""Request logging middleware settings."""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import Field, computed_field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LineFormat = Literal["string", "json", "map"]

DEFAULT_FILTERED_VARIABLES = ("password", "passwordConfirmation", "idToken", "refreshToken")


class RequestLogSettings(BaseSettings):
    """Options for the single-line request logger.

    Environment variables use REQUEST_LOG_ prefix.
    Example: REQUEST_LOG_FORMAT=json, REQUEST_LOG_IGNORED_PATHS='["/health"]'

    Two legacy keyword options are accepted when constructing the model
    directly: ``json=True`` selects the json format when ``format`` is not
    given, and ``include_datadog_fields`` is read as ``include_vendor_fields``.

    Settings are frozen; every request reads the same validated instance.
    """

    # ──────────────────────────────────────────────────────────────
    # Emission
    # ──────────────────────────────────────────────────────────────

    level: LogLevel = Field(
        default="INFO",
        description="Level at which request lines are logged",
    )

    format: LineFormat = Field(
        default="string",
        description="Output shape of the line: string, json or map",
    )

    # ──────────────────────────────────────────────────────────────
    # Filtering and sampling
    # ──────────────────────────────────────────────────────────────

    ignored_paths: list[str] = Field(
        default_factory=list,
        description="Exact request paths that are not logged when they succeed",
    )

    success_log_sampling_ratio: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Fraction of successful (< 300) requests that are logged",
    )

    # ──────────────────────────────────────────────────────────────
    # GraphQL
    # ──────────────────────────────────────────────────────────────

    include_variables: bool = Field(
        default=False,
        description="Attach filtered GraphQL variables to the line",
    )

    filter_variables: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FILTERED_VARIABLES),
        description="GraphQL variable names whose values are replaced with [FILTERED]",
    )

    include_unnamed_queries: bool = Field(
        default=False,
        description="Attach the raw query text when no operation name can be resolved",
    )

    max_body_bytes: int = Field(
        default=65_536,
        ge=0,
        le=10_485_760,
        description="Maximum request body size captured for GraphQL inspection",
    )

    # ──────────────────────────────────────────────────────────────
    # Vendor compatibility
    # ──────────────────────────────────────────────────────────────

    include_vendor_fields: bool = Field(
        default=False,
        description="Add Datadog-style http.* keys to json and map lines",
    )

    @model_validator(mode="before")
    @classmethod
    def _resolve_legacy_options(cls, data: Any) -> Any:
        """Translate the legacy ``json`` and ``include_datadog_fields`` options."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        legacy_json = data.pop("json", None)
        if legacy_json is True and "format" not in data:
            data["format"] = "json"
        if "include_datadog_fields" in data:
            data.setdefault("include_vendor_fields", data.pop("include_datadog_fields"))
        return data

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("format", mode="before")
    @classmethod
    def normalize_format(cls, v: Any) -> Any:
        """Normalize the output format name to lowercase."""
        if isinstance(v, str):
            return v.lower()
        return v

    @computed_field
    @property
    def level_int(self) -> int:
        """Get numeric log level for use with logging module."""
        return getattr(logging, self.level, logging.INFO)

    model_config = SettingsConfigDict(
        env_prefix="REQUEST_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
