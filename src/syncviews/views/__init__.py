"""Live views over a source collection."""

from syncviews.views.filtered import FilteredView
from syncviews.views.mapped import ORIGINS_KEY, MappedView
from syncviews.views.proxy import HasUnderlying, ProxyMixin

__all__ = ["ORIGINS_KEY", "FilteredView", "HasUnderlying", "MappedView", "ProxyMixin"]
