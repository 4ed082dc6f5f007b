"""Default ordering for folder listings and the navigation tree.

Ordering rules, applied in sequence:
    1. Folders before files
    2. Numeric ``sortorder`` ascending; nodes with one before nodes without
    3. Dated before undated; more recent first
    4. Case-insensitive display name

The comparator works on any object exposing ``is_folder``, ``frontmatter``,
``dates`` and ``display_name`` (TrieNode and ListingEntry both do).
"""

import math
from functools import cmp_to_key
from typing import Any, Callable, Optional

from .models import SORT_ORDER_KEY, Comparator


def coerce_sort_order(value: Any) -> Optional[float]:
    """Return a finite numeric sort order, or None for anything else.

    Booleans, strings and non-finite numbers are treated as absent.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def sort_order_of(item: Any) -> Optional[float]:
    frontmatter = getattr(item, "frontmatter", None) or {}
    return coerce_sort_order(frontmatter.get(SORT_ORDER_KEY))


def _date_of(item: Any, date_type: str):
    dates = getattr(item, "dates", None)
    if dates is None:
        return None
    return dates.get(date_type)


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def by_sort_order_and_alphabetical(date_type: str = "modified") -> Comparator:
    """Build the default comparator.

    Args:
        date_type: Which date (created, modified, published) orders dated nodes

    Returns:
        A cmp-style function returning negative, zero or positive
    """

    def compare(a: Any, b: Any) -> int:
        if a.is_folder != b.is_folder:
            return -1 if a.is_folder else 1

        order_a = sort_order_of(a)
        order_b = sort_order_of(b)
        if order_a is not None and order_b is not None:
            if order_a != order_b:
                return _cmp(order_a, order_b)
        elif order_a is not None:
            return -1
        elif order_b is not None:
            return 1

        date_a = _date_of(a, date_type)
        date_b = _date_of(b, date_type)
        if date_a is not None and date_b is not None:
            if date_a != date_b:
                # Most recent first
                return _cmp(date_b, date_a)
        elif date_a is not None:
            return -1
        elif date_b is not None:
            return 1

        return _cmp(str(a.display_name).casefold(), str(b.display_name).casefold())

    return compare


def sort_key(comparator: Comparator) -> Callable[[Any], Any]:
    """Adapt a cmp-style comparator for ``sorted``/``list.sort``."""
    return cmp_to_key(comparator)
