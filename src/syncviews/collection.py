"""
Ordered, identity-indexed collections of records.

:class:`Collection` is the source side of every view and also the base class
of both view types, so a view can itself be the source of another view.

Events emitted (all synchronously, in this order for a single call):

=============================================  ==================================
event and payload                              emitted by
=============================================  ==================================
``add(record, collection, options)``           ``add``/``set``/``push``/``unshift``
``remove(record, collection, options)``        ``remove``/``remove_one``/``set``
``sort(collection, options)``                  ``sort``, or an insert that sorted
``update(collection, options)``                any call that added/removed/merged
``reset(collection, options)``                 ``reset`` (one event, no add/remove)
``change(record, options)``                    a member record changed
``change:<attr>(record, value, options)``      a member record attribute changed
=============================================  ==================================

``remove`` options carry ``index``, the position the record occupied.
``update`` options carry ``changes`` with ``added``, ``removed`` and
``merged`` lists. ``reset`` options carry ``previous_records``.

Mutation options are keyword arguments: ``at`` (insert position), ``sort``
(``False`` suppresses the automatic sort), ``merge``, ``add``, ``remove``
(``set`` semantics) and ``silent`` (no events).

Examples:
    >>> people = Collection([{"id": 1, "name": "James"}], comparator="name")
    >>> alfred = people.add({"id": 2, "name": "Alfred"})
    >>> people.pluck("name")
    ['Alfred', 'James']
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Hashable, Iterator, Mapping, Sequence
from typing import Any, Union

from syncviews.core.errors import ConversionError, MissingComparatorError
from syncviews.core.events import ALL_EVENTS, Events
from syncviews.iteratees import record_iteratee
from syncviews.records import Record

__all__ = ["Collection", "Comparator"]

Comparator = Union[str, Callable[[Record], Any], Callable[[Record, Record], int]]


def _positional_arity(func: Callable[..., Any]) -> int:
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        # builtins without a signature are used as key functions
        return 1
    return sum(
        1
        for param in params
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD)
        and param.default is param.empty
    )


def _sort_key(comparator: Comparator) -> Callable[[Record], Any]:
    """Build a ``list.sort`` key from an attribute name, key function or cmp function."""
    if isinstance(comparator, str):
        # records without the attribute sort last
        return lambda record: (record.get(comparator) is None, record.get(comparator))
    if _positional_arity(comparator) >= 2:
        return functools.cmp_to_key(comparator)
    return comparator


def _as_list(items: Any) -> tuple[list[Any], bool]:
    if isinstance(items, (list, tuple)):
        return list(items), False
    return [items], True


class Collection(Events):
    """An ordered set of records, indexed by ``cid`` and by domain ``id``.

    Attributes:
        records: Members in collection order
        record_class: Class used to build records from attribute mappings
        comparator: Optional ordering rule (attribute name, key function or
            two-argument cmp function)
    """

    record_class: type[Record] = Record
    comparator: Comparator | None = None

    def __init__(
        self,
        records: Sequence[Any] | None = None,
        *,
        record_class: type[Record] | None = None,
        comparator: Comparator | None = None,
        **options: Any,
    ) -> None:
        super().__init__()
        if record_class is not None:
            self.record_class = record_class
        if comparator is not None:
            self.comparator = comparator
        self._reset()
        if records is not None:
            self.reset(records, **{**options, "silent": True})

    # ── Enumeration ──────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __getitem__(self, index: int) -> Record:
        return self.records[index]

    def __contains__(self, obj: Any) -> bool:
        return self.get(obj) is not None

    def at(self, index: int) -> Record | None:
        """Record at ``index`` (negative counts from the end), or ``None``."""
        if index < 0:
            index += len(self.records)
        if 0 <= index < len(self.records):
            return self.records[index]
        return None

    def index_of(self, record: Record) -> int | None:
        for index, member in enumerate(self.records):
            if member is record:
                return index
        return None

    def slice(self, start: int | None = None, end: int | None = None) -> list[Record]:
        return self.records[start:end]

    # ── Lookup ───────────────────────────────────────────────────

    def model_id(self, attrs: Mapping[str, Any], id_attribute: str | None = None) -> Any:
        """Domain id contained in an attribute mapping."""
        return attrs.get(id_attribute or self.record_class.id_attribute)

    def get(self, obj: Any) -> Record | None:
        """Find a member by record, ``cid``, domain ``id`` or attribute mapping."""
        if obj is None:
            return None
        if isinstance(obj, Record):
            found = self._by_id.get(obj.cid)
            if found is not None:
                return found
            key = self.model_id(obj.attributes, obj.id_attribute)
        elif isinstance(obj, Mapping):
            key = self.model_id(obj)
        else:
            key = obj
        if key is None or not isinstance(key, Hashable):
            return None
        return self._by_id.get(key)

    def has(self, obj: Any) -> bool:
        return self.get(obj) is not None

    # ── Mutation ─────────────────────────────────────────────────

    def add(self, items: Any, **options: Any) -> Any:
        """Add one record/mapping or a list of them. Existing members are not merged."""
        return self.set(items, **{"merge": False, **options, "add": True, "remove": False})

    def remove(self, items: Any, **options: Any) -> Any:
        """Remove one or more members; returns what was actually removed."""
        items, singular = _as_list(items)
        removed = [record for record, _ in self._remove_and_notify(items, options)]
        if singular:
            return removed[0] if removed else None
        return removed

    def remove_one(self, item: Any, **options: Any) -> int | None:
        """Remove a single member and return the index it occupied.

        Returns ``None`` when nothing was removed.
        """
        removed = self._remove_and_notify([item], options)
        if not removed:
            return None
        return removed[0][1]

    def set(self, items: Any, **options: Any) -> Any:
        """Smart update: add new records, merge existing ones, remove absent ones.

        ``add``, ``merge`` and ``remove`` options (all ``True`` by default)
        switch the three behaviours individually.
        """
        if items is None:
            return None
        options = {"add": True, "remove": True, "merge": True, **options}
        items, singular = _as_list(items)

        at = options.get("at")
        if at is not None:
            at = int(at)
            if at < 0:
                at += len(self.records) + 1
            at = min(max(at, 0), len(self.records))
            options["at"] = at

        set_records: list[Record] = []
        to_add: list[Record] = []
        to_merge: list[Record] = []
        to_remove: list[Record] = []
        seen: set[str] = set()

        add, merge, remove = options["add"], options["merge"], options["remove"]
        sort = False
        sortable = self.comparator is not None and at is None and options.get("sort", True) is not False
        sort_attr = self.comparator if isinstance(self.comparator, str) else None

        for i, item in enumerate(items):
            existing = self.get(item)
            if existing is not None:
                if merge and item is not existing:
                    existing.set(self._merge_attributes(item), **options)
                    to_merge.append(existing)
                    if sortable and not sort:
                        sort = existing.has_changed(sort_attr)
                if existing.cid not in seen:
                    seen.add(existing.cid)
                    set_records.append(existing)
                items[i] = existing
            elif add:
                record = items[i] = self._prepare_record(item, options)
                to_add.append(record)
                self._add_reference(record, options)
                seen.add(record.cid)
                set_records.append(record)

        if remove:
            to_remove = [record for record in self.records if record.cid not in seen]
            if to_remove:
                self._detach(to_remove, options)

        order_changed = False
        replace = not sortable and add and remove
        if set_records and replace:
            order_changed = len(self.records) != len(set_records) or any(
                current is not wanted for current, wanted in zip(self.records, set_records)
            )
            self.records[:] = set_records
        elif to_add:
            if sortable:
                sort = True
            position = len(self.records) if at is None else at
            self.records[position:position] = to_add

        if sort:
            self.sort(silent=True)

        if not options.get("silent"):
            for offset, record in enumerate(to_add):
                if at is not None:
                    options["index"] = at + offset
                record.trigger("add", record, self, options)
            if sort or order_changed:
                self.trigger("sort", self, options)
            if to_add or to_remove or to_merge:
                options["changes"] = {"added": to_add, "removed": to_remove, "merged": to_merge}
                self.trigger("update", self, options)

        return items[0] if singular else items

    def reset(self, items: Any = None, **options: Any) -> Any:
        """Replace all members at once, emitting a single ``reset`` event."""
        for record in self.records:
            self._remove_reference(record, options)
        options["previous_records"] = self.records
        self._reset()
        added = self.add(items if items is not None else [], **{**options, "silent": True})
        if not options.get("silent"):
            self.trigger("reset", self, options)
        return added

    def sort(self, **options: Any) -> Collection:
        """Sort by :attr:`comparator` and emit ``sort``."""
        if self.comparator is None:
            raise MissingComparatorError(
                f"Cannot sort {type(self).__name__} without a comparator"
            )
        self.records.sort(key=_sort_key(self.comparator))
        if not options.get("silent"):
            self.trigger("sort", self, options)
        return self

    def push(self, item: Any, **options: Any) -> Any:
        return self.add(item, **{**options, "at": len(self.records)})

    def pop(self, **options: Any) -> Record | None:
        record = self.at(-1)
        if record is not None:
            self.remove(record, **options)
        return record

    def unshift(self, item: Any, **options: Any) -> Any:
        return self.add(item, **{**options, "at": 0})

    def shift(self, **options: Any) -> Record | None:
        record = self.at(0)
        if record is not None:
            self.remove(record, **options)
        return record

    # ── Queries ──────────────────────────────────────────────────

    def filter(self, predicate: Any) -> list[Record]:
        """Members matching a predicate, property name or attribute matcher."""
        matches = record_iteratee(predicate)
        return [record for record in self.records if matches(record)]

    def find(self, predicate: Any) -> Record | None:
        matches = record_iteratee(predicate)
        return next((record for record in self.records if matches(record)), None)

    def where(self, attrs: Mapping[str, Any]) -> list[Record]:
        return self.filter(dict(attrs))

    def find_where(self, attrs: Mapping[str, Any]) -> Record | None:
        return self.find(dict(attrs))

    def pluck(self, attr: str) -> list[Any]:
        return [record.get(attr) for record in self.records]

    def map(self, func: Any) -> list[Any]:
        func = record_iteratee(func)
        return [func(record) for record in self.records]

    def to_dicts(self) -> list[dict[str, Any]]:
        return [record.to_dict() for record in self.records]

    # ── Internals ────────────────────────────────────────────────

    def _reset(self) -> None:
        self.records: list[Record] = []
        self._by_id: dict[Hashable, Record] = {}

    def _prepare_record(self, item: Any, options: dict[str, Any]) -> Record:
        if isinstance(item, Record):
            return item
        if isinstance(item, Mapping):
            return self.record_class(item)
        raise ConversionError(
            f"{type(self).__name__} can only store records or attribute mappings, "
            f"got {type(item).__name__}: {item!r}"
        )

    def _merge_attributes(self, item: Any) -> Mapping[str, Any]:
        return item.attributes if isinstance(item, Record) else item

    def _remove_records(self, items: list[Any], options: dict[str, Any]) -> list[tuple[Record, int]]:
        members = [member for member in map(self.get, items) if member is not None]
        return self._detach(members, options)

    def _remove_and_notify(self, items: list[Any], options: dict[str, Any]) -> list[tuple[Record, int]]:
        removed = self._remove_records(items, options)
        if removed and not options.get("silent"):
            options["changes"] = {
                "added": [],
                "removed": [record for record, _ in removed],
                "merged": [],
            }
            self.trigger("update", self, options)
        return removed

    def _detach(self, members: list[Record], options: dict[str, Any]) -> list[tuple[Record, int]]:
        """Remove members, returning each with the index it occupied."""
        removed: list[tuple[Record, int]] = []
        for record in members:
            index = self.index_of(record)
            if index is None:
                continue
            del self.records[index]
            self._unindex(record)
            if not options.get("silent"):
                options["index"] = index
                record.trigger("remove", record, self, options)
            removed.append((record, index))
            self._remove_reference(record, options)
        return removed

    def _add_reference(self, record: Record, options: dict[str, Any]) -> None:
        self._by_id[record.cid] = record
        key = self.model_id(record.attributes, record.id_attribute)
        if key is not None:
            self._by_id[key] = record
        record.on(ALL_EVENTS, self._on_record_event, listener=self)

    def _remove_reference(self, record: Record, options: dict[str, Any]) -> None:
        self._unindex(record)
        record.off(ALL_EVENTS, self._on_record_event, listener=self)

    def _unindex(self, record: Record) -> None:
        if self._by_id.get(record.cid) is record:
            del self._by_id[record.cid]
        key = self.model_id(record.attributes, record.id_attribute)
        if key is not None and self._by_id.get(key) is record:
            del self._by_id[key]

    def _on_record_event(self, event: str, record: Record, *args: Any) -> None:
        """Re-emit events of member records on the collection."""
        if event in ("add", "remove"):
            if not args or args[0] is not self:
                return
        elif self._by_id.get(record.cid) is not record:
            # delivered from a snapshot taken before the record left
            return
        elif event == f"change:{record.id_attribute}":
            self._reindex(record)
        self.trigger(event, record, *args)

    def _reindex(self, record: Record) -> None:
        previous_id = record.previous(record.id_attribute)
        if previous_id is not None and self._by_id.get(previous_id) is record:
            del self._by_id[previous_id]
        if record.id is not None:
            self._by_id[record.id] = record

    def __repr__(self) -> str:
        return f"{type(self).__name__}(len={len(self.records)})"
