"""
Shared machinery of views that proxy an underlying collection.

A view holds a direct reference to its upstream collection in
``_underlying``. The upstream may itself be a view, so views can be chained
(a filtered view of a mapped view of a collection). :attr:`ProxyMixin.underlying`
resolves the innermost source through any number of layers.

Manifesto:
    - **Declared subscriptions:** each view type states once, in
      ``subscriptions``, which upstream event goes to which handler
    - **Read-only proxies:** views never write back to their source; the
      inherited mutation methods exist for the reactions, not for clients
    - **Mirror by default:** a view without its own comparator follows the
      current order of its source

Architecture:
    ::

        ProxyMixin
        ├── subscriptions          event name → handler method name
        ├── underlying             innermost source collection
        ├── owns_order             has an own comparator
        ├── _mirrored_index(r)     insert position that mirrors source order
        └── _realign(options)      reorder to source order, emit "sort"

Tags:
    proxy, views, subscriptions, ordering, syncviews

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable

from syncviews.core.logging import get_logger
from syncviews.core.settings import get_settings

if TYPE_CHECKING:
    from syncviews.collection import Collection
    from syncviews.records import Record

__all__ = ["HasUnderlying", "ProxyMixin"]

logger = get_logger(__name__)

# Options that describe the upstream mutation and must not steer the view's own.
_UPSTREAM_ONLY = frozenset(
    {"at", "index", "add", "remove", "merge", "sort", "changes", "previous_records", "unset", "convert"}
)


@runtime_checkable
class HasUnderlying(Protocol):
    """Anything that proxies an underlying collection."""

    @property
    def underlying(self) -> Collection: ...


class ProxyMixin(ABC):
    """Mixin for collections that act as a proxy to an underlying collection.

    Subclasses must set ``_underlying`` before subscribing and must provide a
    handler method for every entry in :attr:`subscriptions`.
    """

    subscriptions: ClassVar[Mapping[str, str]] = {
        "add": "proxy_add",
        "remove": "proxy_remove",
        "reset": "proxy_reset",
        "sort": "proxy_sort",
        "change": "proxy_change",
    }

    _underlying: Collection
    _trace: bool = False

    @property
    def underlying(self) -> Collection:
        """The innermost source collection, even through several proxy layers."""
        deep = self._underlying
        if isinstance(deep, HasUnderlying):
            deeper = deep.underlying
            if deeper is not None:
                return deeper
        return deep

    @property
    def owns_order(self) -> bool:
        """Whether this view keeps its own order instead of mirroring the source."""
        return self.comparator is not None  # type: ignore[attr-defined]

    def _subscribe(self) -> None:
        self._trace = get_settings().trace_reactions
        self.listen_to(  # type: ignore[attr-defined]
            self._underlying,
            {event: getattr(self, handler) for event, handler in self.subscriptions.items()},
        )

    @abstractmethod
    def _tracks(self, source_record: Record) -> bool:
        """Whether ``source_record`` currently has a counterpart in this view."""

    @abstractmethod
    def _counterpart_cid(self, source_record: Record) -> str | None:
        """Cid of the record in this view that stands for ``source_record``."""

    def _mirrored_index(self, source_record: Record) -> int:
        """Count the source records before ``source_record`` that this view tracks."""
        position = 0
        for member in self._underlying.records:
            if member is source_record:
                break
            if self._tracks(member):
                position += 1
        return position

    def _realign(self, options: dict[str, Any]) -> None:
        """Reorder to the source's current order and emit ``sort``.

        Works without a comparator: the position of each source record is
        the sort key of its counterpart.
        """
        order = {
            self._counterpart_cid(member): position
            for position, member in enumerate(self._underlying.records)
        }
        self.records.sort(key=lambda record: order[record.cid])  # type: ignore[attr-defined]
        if self._trace:
            logger.debug("view.realign", view=repr(self), size=len(order))
        self.trigger("sort", self, options)  # type: ignore[attr-defined]

    @staticmethod
    def _forwarded(options: Mapping[str, Any] | None) -> dict[str, Any]:
        """Copy upstream event options, dropping the ones about the upstream mutation."""
        return {key: value for key, value in (options or {}).items() if key not in _UPSTREAM_ONLY}
