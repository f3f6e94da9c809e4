"""
syncviews - live filtered and mapped views over observable collections.

A :class:`~syncviews.collection.Collection` of
:class:`~syncviews.records.Record` objects emits an event for every
mutation. :class:`~syncviews.views.FilteredView` and
:class:`~syncviews.views.MappedView` subscribe to those events and keep a
derived collection continuously in sync: no polling, no re-scanning.

Examples:
    >>> from syncviews import Collection, FilteredView, MappedView
    >>> staff = Collection([{"id": 1, "name": "James", "years": 40}])
    >>> veterans = FilteredView(staff, lambda r: r.get("years", 0) > 20)
    >>> names = MappedView(veterans, lambda r: r.pick("id", "name"))
    >>> names.pluck("name")
    ['James']
"""

from syncviews.collection import Collection
from syncviews.core.errors import (
    ConversionError,
    CorrespondenceError,
    MissingComparatorError,
    SyncViewError,
)
from syncviews.records import Record
from syncviews.views import FilteredView, HasUnderlying, MappedView

__version__ = "0.1.0"

__all__ = [
    "Collection",
    "ConversionError",
    "CorrespondenceError",
    "FilteredView",
    "HasUnderlying",
    "MappedView",
    "MissingComparatorError",
    "Record",
    "SyncViewError",
]
