"""File size measurement against a KB budget."""

import math
import os
from typing import Optional


def size_bytes(path: str) -> Optional[int]:
    """Size of the file at path, or None if it does not exist."""
    try:
        return os.path.getsize(path)
    except OSError:
        return None


def size_kb(num_bytes: int) -> int:
    """Bytes to whole KB, rounding halves up."""
    return int(math.floor(num_bytes / 1024 + 0.5))


def within_budget(num_bytes: Optional[int], target_kb: int) -> bool:
    """True when a produced file fits the budget. Budgets compare in rounded KB."""
    if num_bytes is None:
        return False
    return size_kb(num_bytes) <= target_kb
