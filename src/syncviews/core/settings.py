"""Settings for syncviews.

One validated, cached settings object read from ``SYNCVIEWS_*`` environment
variables (or a ``.env`` file).

Fields
──────
log_level        : structlog level used by :func:`configure_from_settings`
log_format       : ``json``, ``console`` or ``auto`` (JSON unless on a tty)
service_name     : value of the ``service.name`` log field
trace_reactions  : log every view reaction at DEBUG

Examples:
    >>> from syncviews.core.settings import get_settings
    >>> get_settings().trace_reactions
    False

Tags:
    settings, configuration, pydantic, environment, syncviews

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from syncviews.core.errors import InvalidConfigError

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_LOG_FORMATS = {"json", "console", "auto"}


class SyncViewSettings(BaseSettings):
    """syncviews configuration.

    All fields can be set via ``SYNCVIEWS_*`` environment variables, e.g.
    ``SYNCVIEWS_TRACE_REACTIONS=true``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SYNCVIEWS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="auto")
    service_name: str = Field(default="syncviews")

    # ── Views ────────────────────────────────────────────────────
    trace_reactions: bool = Field(
        default=False,
        description="Log every source event a view reacts to at DEBUG level",
    )

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got {value!r}")
        return level

    @field_validator("log_format")
    @classmethod
    def _validate_log_format(cls, value: str) -> str:
        fmt = value.lower()
        if fmt not in _LOG_FORMATS:
            raise ValueError(f"log_format must be one of {sorted(_LOG_FORMATS)}, got {value!r}")
        return fmt


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, SyncViewSettings] = {}


def get_settings(*, _force_reload: bool = False) -> SyncViewSettings:
    """Load, validate, and cache a :class:`SyncViewSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    try:
        settings = SyncViewSettings()
    except ValidationError as exc:
        first = exc.errors()[0]
        key = ".".join(str(part) for part in first["loc"])
        raise InvalidConfigError(key, first.get("input"), first["msg"]) from exc
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["SyncViewSettings", "get_settings", "clear_settings_cache"]
