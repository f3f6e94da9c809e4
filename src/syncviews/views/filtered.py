"""
Live filtered view of a collection.

:class:`FilteredView` holds exactly the records of its source that match a
predicate, and keeps holding exactly those while the source changes. Records
are shared by reference: the view contains the very same record objects as
its source.

Examples:
    >>> from syncviews.collection import Collection
    >>> source = Collection([{"id": 1, "x": 1}, {"id": 2}, {"id": 3, "x": 3}])
    >>> with_x = FilteredView(source, "x")
    >>> with_x.pluck("id")
    [1, 3]
    >>> _ = source.get(2).set("x", 2)
    >>> with_x.pluck("id")
    [1, 2, 3]

The predicate may be a function receiving the whole record, an attribute
name (truthiness of that attribute), a deep path such as ``["a", "b"]``, or
a mapping of attributes that must all be present and equal.

Do not add to or remove from a filtered view directly; mutate its source.
"""

from __future__ import annotations

from typing import Any

from syncviews.collection import Collection, Comparator
from syncviews.core.logging import get_logger
from syncviews.iteratees import record_iteratee
from syncviews.records import Record
from syncviews.views.proxy import ProxyMixin

__all__ = ["FilteredView"]

logger = get_logger(__name__)


class FilteredView(ProxyMixin, Collection):
    """Synchronized, read-only subset of an underlying collection.

    Without a ``comparator`` argument the view uses the source's comparator,
    looked up on every access, and mirrors the source order. With one, or
    with a ``comparator`` declared on a subclass, it keeps its own order.

    Attributes:
        criterion: The predicate exactly as given
        matches: The predicate normalized to a one-argument callable
    """

    def __init__(self, underlying: Collection, criterion: Any, **options: Any) -> None:
        self._underlying = underlying
        self._own_comparator: Comparator | None = None
        self.criterion = criterion
        self.matches = record_iteratee(criterion)
        options.setdefault("record_class", underlying.record_class)
        if options.get("comparator") is None and not self.owns_order:
            # keep the source order of the initial subset
            options.setdefault("sort", False)
        super().__init__(underlying.filter(self.matches), **options)
        self._subscribe()

    @property
    def comparator(self) -> Comparator | None:  # type: ignore[override]
        if self._own_comparator is not None:
            return self._own_comparator
        return self._underlying.comparator

    @comparator.setter
    def comparator(self, value: Comparator | None) -> None:
        self._own_comparator = value

    @property
    def owns_order(self) -> bool:
        if type(self).comparator is FilteredView.comparator:
            return self._own_comparator is not None
        # a subclass declared ``comparator`` as a plain class attribute
        return self.comparator is not None

    # ── Reactions to the underlying collection ───────────────────
    # Not for client use.

    def proxy_add(self, record: Record, collection: Collection, options: dict[str, Any]) -> None:
        if self.matches(record):
            self._insert(record, options)

    def proxy_remove(self, record: Record, collection: Collection, options: dict[str, Any]) -> None:
        if self._trace and self._tracks(record):
            logger.debug("filtered_view.remove", view=repr(self), record=record.cid)
        self.remove(record, **self._forwarded(options))

    def proxy_reset(self, collection: Collection, options: dict[str, Any]) -> None:
        forwarded = self._forwarded(options)
        if not self.owns_order:
            forwarded["sort"] = False
        if self._trace:
            logger.debug("filtered_view.reset", view=repr(self), source_size=len(self._underlying))
        self.reset(self._underlying.filter(self.matches), **forwarded)

    def proxy_sort(self, collection: Collection, options: dict[str, Any]) -> None:
        if self.owns_order:
            return
        self._realign(self._forwarded(options))

    def proxy_change(self, record: Record, options: dict[str, Any]) -> None:
        # attributes changed, so membership must be re-evaluated
        if self.matches(record):
            if not self._tracks(record):
                self._insert(record, options)
        elif self._tracks(record):
            if self._trace:
                logger.debug("filtered_view.evict", view=repr(self), record=record.cid)
            self.remove(record, **self._forwarded(options))

    # ── Internals ────────────────────────────────────────────────

    def _insert(self, record: Record, options: dict[str, Any]) -> None:
        forwarded = self._forwarded(options)
        if not self.owns_order:
            forwarded["at"] = self._mirrored_index(record)
            forwarded["sort"] = False
        if self._trace:
            logger.debug("filtered_view.add", view=repr(self), record=record.cid, at=forwarded.get("at"))
        self.add(record, **forwarded)

    def _tracks(self, source_record: Record) -> bool:
        return self._by_id.get(source_record.cid) is source_record

    def _counterpart_cid(self, source_record: Record) -> str | None:
        return source_record.cid
