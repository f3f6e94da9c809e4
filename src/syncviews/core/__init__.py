"""syncviews core -- domain-agnostic primitives shared by records, collections and views.

Architecture::

    errors.py        Structured error hierarchy (SyncViewError and friends)
    logging.py       structlog configuration and get_logger()
    settings.py      pydantic-settings configuration (SYNCVIEWS_ prefix)
    events.py        Synchronous Events mixin (on/off/listen_to/trigger)
    identifiers.py   Process-unique client ids (stdlib-only)
"""

from syncviews.core.errors import (
    ConfigError,
    ConversionError,
    CorrespondenceError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    MissingComparatorError,
    SyncViewError,
    categorize_error,
)
from syncviews.core.events import ALL_EVENTS, Events, Subscription
from syncviews.core.identifiers import unique_id
from syncviews.core.logging import configure_logging, get_logger
from syncviews.core.settings import SyncViewSettings, clear_settings_cache, get_settings

__all__ = [
    "ALL_EVENTS",
    "ConfigError",
    "ConversionError",
    "CorrespondenceError",
    "ErrorCategory",
    "ErrorContext",
    "Events",
    "InvalidConfigError",
    "MissingComparatorError",
    "Subscription",
    "SyncViewError",
    "SyncViewSettings",
    "categorize_error",
    "clear_settings_cache",
    "configure_logging",
    "get_logger",
    "get_settings",
    "unique_id",
]
