# streamrokuo_admin/pagination.py
import math
from typing import Tuple

PAGE_SIZE = 20


def total_pages(total: int, page_size: int = PAGE_SIZE) -> int:
    return max(1, math.ceil(max(total, 0) / page_size))


def has_prev(page: int) -> bool:
    return page > 0


def has_next(page: int, total: int, page_size: int = PAGE_SIZE) -> bool:
    return (page + 1) * page_size < total


def page_range(page: int, page_size: int = PAGE_SIZE) -> Tuple[int, int]:
    """Inclusive row range for a zero-based page."""
    start = page * page_size
    return start, start + page_size - 1


def can_goto(page: int, total: int, page_size: int = PAGE_SIZE) -> bool:
    return 0 <= page < total_pages(total, page_size)
