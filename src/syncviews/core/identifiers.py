"""
Process-unique client identifiers.

Records and mapped views need an identity that is stable for the lifetime of
the object, distinct from any domain ``id`` attribute, and cheap to use as a
dictionary key. A monotonically increasing counter with a short prefix
(``c1``, ``c2``, ``mc3``) is all that is required.

Tags:
    identifiers, cid, syncviews, stdlib-only
"""

import itertools

_counter = itertools.count(1)


def unique_id(prefix: str = "") -> str:
    """Return a new identifier, unique within this process."""
    return f"{prefix}{next(_counter)}"
