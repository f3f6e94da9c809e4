"""
Identity-bearing records with observable attributes.

A :class:`Record` is the unit stored in collections and views. It has two
identities:

* ``cid``: a process-unique client id assigned at construction, never
  changes, used for every internal lookup;
* ``id``: the domain identifier, read from the ``id_attribute`` attribute,
  which may be missing or change over time.

Attribute changes go through :meth:`Record.set`, which emits one
``change:<attr>`` event per attribute whose value or presence actually
changed, followed by a single ``change`` event. Collections re-emit these
events for their members, which is how views learn about in-place changes.

Manifesto:
    - **Surgical notifications:** setting an attribute to its current value
      is silent
    - **Coalesced changes:** ``set()`` calls made from inside change handlers
      are folded into the outer ``change`` loop
    - **Bookkeeping stays out of attributes:** the mapped-view correspondence
      annotation lives in ``origins``, never in ``attributes``

Examples:
    >>> record = Record({"id": 1, "name": "James"})
    >>> record.set("name", "Jim").get("name")
    'Jim'
    >>> record.changed
    {'name': 'Jim'}

Tags:
    record, model, attributes, change-events, syncviews

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from syncviews.core.events import Events
from syncviews.core.identifiers import unique_id

__all__ = ["MISSING", "Record", "diff_attributes"]


class _Missing:
    """Sentinel for an attribute that is not present."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def diff_attributes(base: Mapping[str, Any], other: Mapping[str, Any]) -> dict[str, Any]:
    """Return the entries of ``other`` whose value or presence differs from ``base``."""
    return {
        key: value
        for key, value in other.items()
        if base.get(key, MISSING) != value
    }


class Record(Events):
    """A mutable attribute mapping with a stable client identity.

    Attributes:
        cid: Process-unique client id
        attributes: Current attribute values
        changed: Attributes changed by the most recent :meth:`set`
        origins: Reverse correspondence annotation maintained by mapped views
            (mapped view ``cid`` → source record ``cid``)
    """

    id_attribute: ClassVar[str] = "id"
    cid_prefix: ClassVar[str] = "c"
    defaults: ClassVar[Mapping[str, Any]] = {}

    def __init__(self, attributes: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self.cid = unique_id(self.cid_prefix)
        self.attributes: dict[str, Any] = {}
        self.changed: dict[str, Any] = {}
        self.origins: dict[str, str] = {}
        self._previous_attributes: dict[str, Any] = {}
        self._changing = False
        self._pending: dict[str, Any] | None = None
        self.set({**self.defaults, **(attributes or {})}, silent=True)
        self.changed = {}

    # ── Reading ──────────────────────────────────────────────────

    @property
    def id(self) -> Any:
        return self.attributes.get(self.id_attribute)

    def get(self, attr: str, default: Any = None) -> Any:
        return self.attributes.get(attr, default)

    def has(self, attr: str) -> bool:
        """Whether ``attr`` is present and not ``None``."""
        return self.attributes.get(attr) is not None

    def pick(self, *attrs: str) -> dict[str, Any]:
        return {key: self.attributes[key] for key in attrs if key in self.attributes}

    def to_dict(self) -> dict[str, Any]:
        return dict(self.attributes)

    # ── Writing ──────────────────────────────────────────────────

    def set(
        self,
        key: str | Mapping[str, Any],
        value: Any = MISSING,
        *,
        unset: bool = False,
        silent: bool = False,
        **options: Any,
    ) -> Record:
        """Update attributes and emit change events.

        Accepts either ``set("name", value)`` or ``set({"name": value})``.
        With ``unset=True`` the given keys are removed instead. Extra keyword
        arguments are passed along as the ``options`` of the change events.
        """
        if isinstance(key, Mapping):
            attrs = dict(key)
        else:
            attrs = {key: value}
        options = {**options, "unset": unset, "silent": silent}

        changes: list[str] = []
        changing = self._changing
        self._changing = True

        if not changing:
            self._previous_attributes = dict(self.attributes)
            self.changed = {}

        current = self.attributes
        previous = self._previous_attributes

        for attr, val in attrs.items():
            new = MISSING if unset else val
            if current.get(attr, MISSING) != new:
                changes.append(attr)
            if previous.get(attr, MISSING) != new:
                self.changed[attr] = None if new is MISSING else new
            else:
                self.changed.pop(attr, None)
            if unset:
                current.pop(attr, None)
            else:
                current[attr] = val

        if not silent:
            if changes:
                self._pending = options
            for attr in changes:
                self.trigger(f"change:{attr}", self, current.get(attr), options)

        # nested set() from a change handler: the outer call emits "change"
        if changing:
            return self

        if not silent:
            while self._pending is not None:
                pending = self._pending
                self._pending = None
                self.trigger("change", self, pending)
        self._pending = None
        self._changing = False
        return self

    def unset(self, attr: str, **options: Any) -> Record:
        return self.set({attr: None}, unset=True, **options)

    def clear(self, **options: Any) -> Record:
        return self.set(dict.fromkeys(self.attributes), unset=True, **options)

    # ── Change tracking ──────────────────────────────────────────

    def has_changed(self, attr: str | None = None) -> bool:
        if attr is None:
            return bool(self.changed)
        return attr in self.changed

    def changed_attributes(self, diff: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Return the changed attributes, or the entries of ``diff`` that would change.

        Without ``diff``, this is a copy of :attr:`changed`. With ``diff``,
        the result holds the entries of ``diff`` whose value differs from the
        current attributes (or from the attributes before the change that is
        currently being applied).
        """
        if diff is None:
            return dict(self.changed)
        base = self._previous_attributes if self._changing else self.attributes
        return diff_attributes(base, diff)

    def previous(self, attr: str) -> Any:
        return self._previous_attributes.get(attr)

    def previous_attributes(self) -> dict[str, Any]:
        return dict(self._previous_attributes)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(cid={self.cid!r}, attributes={self.attributes!r})"
