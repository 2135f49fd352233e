"""Page arithmetic for the filtered result list."""

from __future__ import annotations

import math
from typing import Sequence, TypeVar

T = TypeVar("T")


def page_bounds(total_items: int, page_size: int) -> int:
    """Return the number of pages, never less than one."""

    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return max(1, math.ceil(max(0, total_items) / page_size))


def clamp_page(page: int, total_items: int, page_size: int) -> int:
    return min(max(1, page), page_bounds(total_items, page_size))


def slice_page(items: Sequence[T], page: int, page_size: int) -> list[T]:
    """Return the items shown on ``page``; out-of-range pages yield an empty list."""

    if page < 1 or page_size < 1:
        return []
    start = (page - 1) * page_size
    return list(items[start : start + page_size])
