"""
Normalization of predicate and mapper arguments.

Views accept their predicate or conversion function in several forms. This
module turns each of them into a plain one-argument callable:

=====================  ==============================================
argument               resulting callable
=====================  ==============================================
``None``               identity
callable               the callable itself
``"name"``             ``obj["name"]`` (``None`` when absent)
``["a", "b"]``         ``obj["a"]["b"]`` (``None`` when any step is absent)
``{"x": 10}``          ``True`` when every given key is present and equal
=====================  ==============================================

:func:`record_iteratee` adds the one asymmetry views depend on: callables
receive the whole record (so they can call record methods), while shorthand
forms are applied to ``record.attributes``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

__all__ = ["identity", "iteratee", "matcher", "property_getter", "record_iteratee"]


def identity(value: Any) -> Any:
    return value


def _lookup(obj: Any, key: Any) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    if isinstance(key, str):
        return getattr(obj, key, None)
    return None


def property_getter(path: str | Sequence[Any]) -> Callable[[Any], Any]:
    """Return a getter for a key, or for a deep path given as a list of keys."""
    if isinstance(path, str):
        return lambda obj: _lookup(obj, path)

    steps = tuple(path)

    def get_path(obj: Any) -> Any:
        for step in steps:
            if obj is None:
                return None
            obj = _lookup(obj, step)
        return obj

    return get_path


def matcher(attrs: Mapping[str, Any]) -> Callable[[Any], bool]:
    """Return a predicate that checks ``obj`` contains all of ``attrs``."""
    expected = dict(attrs)

    def matches(obj: Any) -> bool:
        if not isinstance(obj, Mapping):
            return False
        return all(key in obj and obj[key] == value for key, value in expected.items())

    return matches


def iteratee(value: Any) -> Callable[[Any], Any]:
    """Turn a function, property path or attribute matcher into a callable."""
    if value is None:
        return identity
    if callable(value):
        return value
    if isinstance(value, Mapping):
        return matcher(value)
    if isinstance(value, (str, list, tuple)):
        return property_getter(value)
    raise TypeError(f"Cannot build an iteratee from {type(value).__name__}: {value!r}")


def record_iteratee(value: Any) -> Callable[[Any], Any]:
    """Like :func:`iteratee`, but shorthand forms read ``record.attributes``."""
    if callable(value):
        return value
    wrapped = iteratee(value)
    return lambda record: wrapped(record.attributes)
