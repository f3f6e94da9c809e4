"""
Structured error types for syncviews.

Provides a small hierarchy of typed errors carrying a category, a structured
context and an optional chained cause. Views are a synchronous derivation
layer, so none of these errors is ever retried: they surface immediately at
the source mutation that triggered them and the affected view should be
treated as unreliable until it is reconstructed.

Manifesto:
    - **Typed hierarchy:** one error type per failure the sync engine can detect
    - **Fail loudly:** a correspondence miss is a programmer error, not a
      recoverable condition
    - **Rich context:** errors carry view and record identities for logging
    - **Caller exceptions pass through:** a predicate or conversion function
      that raises is never wrapped

Architecture:
    ::

        ┌───────────────────────────────────────────────────────────┐
        │                      SyncViewError                         │
        │              (category, context, cause)                    │
        ├───────────────────────────────────────────────────────────┤
        │  ConversionError        CorrespondenceError               │
        │  (CONVERSION,           (CORRESPONDENCE,                  │
        │   also a TypeError)      also a LookupError)              │
        │                                                           │
        │  MissingComparatorError ConfigError                       │
        │  (ORDERING)             (CONFIG)                          │
        │                              │                            │
        │                         InvalidConfigError                │
        └───────────────────────────────────────────────────────────┘

Examples:
    >>> error = CorrespondenceError("no derived record for c12")
    >>> error.with_context(view="mc3", source_cid="c12").context.view
    'mc3'
    >>> error.category.value
    'CORRESPONDENCE'

Guardrails:
    ❌ DON'T: Wrap exceptions raised by caller-supplied predicates or mappers
    ✅ DO: Let them propagate to the caller of the source mutation

    ❌ DON'T: Catch CorrespondenceError to keep a view alive
    ✅ DO: Rebuild the view from its source

Tags:
    error-handling, exception-hierarchy, error-context, syncviews

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and logging."""

    CONVERSION = "CONVERSION"          # Conversion result of the wrong shape
    CORRESPONDENCE = "CORRESPONDENCE"  # Source/derived identity table out of sync
    ORDERING = "ORDERING"              # Sorting without a comparator
    CONFIG = "CONFIG"                  # Invalid settings
    VALIDATION = "VALIDATION"          # Bad arguments from caller code
    INTERNAL = "INTERNAL"              # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"                # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Typed fields cover the identities involved in a synchronization step;
    anything else goes into ``metadata``.

    Attributes:
        view: ``cid`` of the view that was reacting
        view_type: Class name of that view
        event: Source event being processed (``add``, ``change``, ...)
        source_cid: ``cid`` of the source record involved
        record_cid: ``cid`` of the derived record involved
        metadata: Additional key-value pairs
    """

    view: str | None = None
    view_type: str | None = None
    event: str | None = None
    source_cid: str | None = None
    record_cid: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["view", "view_type", "event", "source_cid", "record_cid"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SyncViewError(Exception):
    """
    Base exception for all syncviews errors.

    Subclasses set ``default_category``. Every instance carries:

    - **category:** ErrorCategory for classification
    - **context:** ErrorContext with view/record identities
    - **cause:** Optional underlying exception, chained as ``__cause__``
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SyncViewError:
        """
        Add context to this error (fluent API).

        Usage:
            raise CorrespondenceError("lookup miss").with_context(
                view=self.cid, source_cid=record.cid
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# SYNCHRONIZATION ERRORS
# =============================================================================


class ConversionError(SyncViewError, TypeError):
    """
    A conversion produced something that cannot be stored in a collection.

    Conversion functions must return either an attribute mapping or a
    :class:`~syncviews.records.Record`. Also a ``TypeError`` so callers
    that expect the built-in type failure keep working.
    """

    default_category = ErrorCategory.CONVERSION


class CorrespondenceError(SyncViewError, LookupError):
    """
    A mapped view could not resolve the derived record of a source record.

    Only happens when a view has been desynchronized from its source, usually
    by calling its mutation methods directly.
    """

    default_category = ErrorCategory.CORRESPONDENCE


class MissingComparatorError(SyncViewError):
    """``sort()`` was called on a collection that has no comparator."""

    default_category = ErrorCategory.ORDERING


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(SyncViewError):
    """Configuration error."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid value for {key}: {value!r}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: BaseException) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, SyncViewError):
        return error.category
    if isinstance(error, TypeError):
        return ErrorCategory.CONVERSION
    if isinstance(error, LookupError):
        return ErrorCategory.CORRESPONDENCE
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SyncViewError",
    "ConversionError",
    "CorrespondenceError",
    "MissingComparatorError",
    "ConfigError",
    "InvalidConfigError",
    "categorize_error",
]
