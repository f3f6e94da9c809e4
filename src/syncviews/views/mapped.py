"""
Live mapped view of a collection.

:class:`MappedView` holds one derived record for every record of its source,
produced by a conversion function, and keeps that correspondence exact while
the source changes.

Manifesto:
    - **Totality:** ``len(view) == len(source)`` after every source event
    - **Two answers to a change:** a conversion that returns a full
      :class:`~syncviews.records.Record` *replaces* the derived record at the
      same position; a conversion that returns an attribute mapping *updates*
      the existing derived record in place, touching only the attributes
      whose value or presence changed
    - **Shared records stay intact:** a record returned by the conversion may
      also live elsewhere, so its attributes are never overwritten by a
      replacement

Architecture:
    ::

        source record r ──convert──▶ derived record d
                │                         │
                │   _cid_map[r.cid] = d.cid
                └──── d.origins[view.cid] = r.cid

    A mapping returned by the conversion carries the reverse annotation under
    :data:`ORIGINS_KEY` until the record is built from it; the annotation
    never reaches ``attributes``. Several mapped views may share one derived
    record, each under its own ``cid`` in ``origins``.

Examples:
    >>> from syncviews.collection import Collection
    >>> butlers = Collection([{"id": 1, "name": "James"}, {"id": 2, "name": "Alfred"}])
    >>> names = MappedView(butlers, lambda r: {"id": r.id, "upper": r.get("name").upper()})
    >>> names.pluck("upper")
    ['JAMES', 'ALFRED']
    >>> names.get_corresponding(butlers.get(2)).get("upper")
    'ALFRED'

Guardrails:
    ❌ DON'T: add to or remove from a mapped view directly
    ✅ DO: mutate the source; the view follows

    ❌ DON'T: convert two source records to the same domain id
    ✅ DO: keep the conversion injective on ids

Tags:
    views, mapped, projection, correspondence, syncviews

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from syncviews.collection import Collection
from syncviews.core.errors import ConversionError, CorrespondenceError, ErrorContext
from syncviews.core.identifiers import unique_id
from syncviews.core.logging import get_logger
from syncviews.iteratees import record_iteratee
from syncviews.records import Record, diff_attributes
from syncviews.views.proxy import ProxyMixin

__all__ = ["ORIGINS_KEY", "MappedView"]

logger = get_logger(__name__)

ORIGINS_KEY = "_origins"
"""Reserved key under which a converted mapping carries its origin annotation."""


class MappedView(ProxyMixin, Collection):
    """Synchronized, read-only projection of an underlying collection.

    By default derived records stay in the same relative order as their
    source records. Pass (or declare) a ``comparator`` to sort differently.

    Attributes:
        cid: Process-unique id of this view, key of ``Record.origins``
        convert: The conversion normalized to a one-argument callable
    """

    cid_prefix: ClassVar[str] = "mc"

    def __init__(self, underlying: Collection, conversion: Any = None, **options: Any) -> None:
        self._underlying = underlying
        self.convert = record_iteratee(conversion)
        self._cid_map: dict[str, str] = {}
        self.cid = unique_id(self.cid_prefix)
        super().__init__(list(underlying.records), **options)
        self._subscribe()

    # ── Correspondence ───────────────────────────────────────────

    def corresponding_cid(self, source_record: Record) -> str | None:
        """``cid`` of the derived record corresponding to ``source_record``."""
        return self._cid_map.get(source_record.cid)

    def get_corresponding(self, source_record: Record) -> Record | None:
        """The derived record corresponding to ``source_record``, if any."""
        derived_cid = self.corresponding_cid(source_record)
        if derived_cid is None:
            return None
        return self._by_id.get(derived_cid)

    def preprocess(self, source_record: Record) -> Record | dict[str, Any]:
        """Convert a source record and annotate the result with its origin.

        Raises:
            ConversionError: If the conversion returns neither a record nor a mapping
        """
        mapped = self.convert(source_record)
        if isinstance(mapped, Record):
            mapped.origins[self.cid] = source_record.cid
            return mapped
        if isinstance(mapped, Mapping):
            origins = dict(mapped.get(ORIGINS_KEY) or {})
            origins[self.cid] = source_record.cid
            return {**mapped, ORIGINS_KEY: origins}
        raise ConversionError(
            f"Conversion must return a record or a mapping, got {type(mapped).__name__}",
            context=ErrorContext(
                view=self.cid,
                view_type=type(self).__name__,
                source_cid=source_record.cid,
            ),
        )

    # ── Insertion ────────────────────────────────────────────────

    def set(self, items: Any, **options: Any) -> Any:
        """Insert source records, converting them unless ``convert=False``."""
        if items is None:
            return None
        convert = options.pop("convert", True)
        if convert is not False:
            if isinstance(items, (list, tuple)):
                items = [self.preprocess(item) for item in items]
            else:
                items = self.preprocess(items)
        return super().set(items, **options)

    # ── Reactions to the underlying collection ───────────────────
    # Not for client use.

    def proxy_add(self, record: Record, collection: Collection, options: dict[str, Any]) -> None:
        forwarded = self._forwarded(options)
        if not self.owns_order:
            forwarded["at"] = self._mirrored_index(record)
            forwarded["sort"] = False
        if self._trace:
            logger.debug("mapped_view.add", view=self.cid, record=record.cid, at=forwarded.get("at"))
        self.add(record, **forwarded)

    def proxy_remove(self, record: Record, collection: Collection, options: dict[str, Any]) -> None:
        if self._trace:
            logger.debug("mapped_view.remove", view=self.cid, record=record.cid)
        self.remove(record, **self._forwarded(options))

    def proxy_reset(self, collection: Collection, options: dict[str, Any]) -> None:
        forwarded = self._forwarded(options)
        if not self.owns_order:
            forwarded["sort"] = False
        if self._trace:
            logger.debug("mapped_view.reset", view=self.cid, source_size=len(self._underlying))
        self.reset(list(self._underlying.records), **forwarded)

    def proxy_sort(self, collection: Collection, options: dict[str, Any]) -> None:
        if self.owns_order:
            return
        self._realign(self._forwarded(options))

    def proxy_change(self, record: Record, options: dict[str, Any]) -> None:
        old = self.get_corresponding(record)
        if old is None:
            raise self._correspondence_miss(record, "change")
        new = self.preprocess(record)

        # the conversion returned the very same record
        if new is old:
            return

        if isinstance(new, Record):
            # old or new may also live elsewhere, so swap rather than copy
            if self._trace:
                logger.debug("mapped_view.replace", view=self.cid, record=record.cid, old=old.cid, new=new.cid)
            position = self.remove_one(record)
            self.add(new, at=position, convert=False)
            return

        attrs = {key: value for key, value in new.items() if key != ORIGINS_KEY}
        removed = diff_attributes(attrs, old.attributes)
        added = diff_attributes(old.attributes, attrs)
        stale = removed.keys() - added.keys()
        if self._trace:
            logger.debug(
                "mapped_view.update",
                view=self.cid,
                record=record.cid,
                derived=old.cid,
                unset=sorted(stale),
                changed=sorted(added),
            )
        if stale:
            old.set(dict.fromkeys(stale), unset=True)
        old.set(attrs)

    # ── Collection hooks ─────────────────────────────────────────

    def _prepare_record(self, item: Any, options: dict[str, Any]) -> Record:
        if isinstance(item, Mapping) and ORIGINS_KEY in item:
            attrs = dict(item)
            origins = attrs.pop(ORIGINS_KEY)
            record = super()._prepare_record(attrs, options)
            record.origins.update(origins)
            return record
        return super()._prepare_record(item, options)

    def _merge_attributes(self, item: Any) -> Mapping[str, Any]:
        if isinstance(item, Mapping):
            return {key: value for key, value in item.items() if key != ORIGINS_KEY}
        return super()._merge_attributes(item)

    def _remove_records(self, items: list[Any], options: dict[str, Any]) -> list[tuple[Record, int]]:
        # removal always receives source records
        derived: list[Record] = []
        for item in items:
            match = self.get_corresponding(item)
            if match is None:
                raise self._correspondence_miss(item, "remove")
            derived.append(match)
        return self._detach(derived, options)

    def _add_reference(self, record: Record, options: dict[str, Any]) -> None:
        source_cid = record.origins.get(self.cid)
        if source_cid is None:
            raise CorrespondenceError(
                f"Record {record.cid} carries no origin for mapped view {self.cid}",
                context=ErrorContext(view=self.cid, view_type=type(self).__name__, record_cid=record.cid),
            )
        self._cid_map[source_cid] = record.cid
        super()._add_reference(record, options)

    def _remove_reference(self, record: Record, options: dict[str, Any]) -> None:
        source_cid = record.origins.pop(self.cid, None)
        if source_cid is not None and self._cid_map.get(source_cid) == record.cid:
            del self._cid_map[source_cid]
        super()._remove_reference(record, options)

    def _tracks(self, source_record: Record) -> bool:
        return source_record.cid in self._cid_map

    def _counterpart_cid(self, source_record: Record) -> str | None:
        return self.corresponding_cid(source_record)

    def _correspondence_miss(self, source_record: Any, event: str) -> CorrespondenceError:
        source_cid = getattr(source_record, "cid", None)
        logger.warning("mapped_view.correspondence_miss", view=self.cid, event_name=event, source=source_cid)
        return CorrespondenceError(
            f"No derived record in {self.cid} corresponds to source record {source_cid}",
            context=ErrorContext(
                view=self.cid,
                view_type=type(self).__name__,
                event=event,
                source_cid=source_cid,
            ),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(cid={self.cid!r}, len={len(self.records)})"
