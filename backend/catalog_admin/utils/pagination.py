import math
from typing import Optional, Tuple


def compute_total_pages(total_items: int, page_size: int) -> int:
    safe_total = max(0, int(total_items))
    safe_page_size = max(1, int(page_size))
    return math.ceil(safe_total / safe_page_size)


def clamp_limit(limit: Optional[int], *, default: int, maximum: int) -> int:
    if limit is None:
        return max(1, int(default))
    return max(1, min(int(limit), int(maximum)))


def page_offset(page: Optional[int], page_size: int) -> Tuple[int, int]:
    """Return ``(page, offset)`` with page floored at 1. Pages past the end are allowed."""
    safe_page = max(1, int(page or 1))
    return safe_page, (safe_page - 1) * max(1, int(page_size))
