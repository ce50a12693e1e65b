"""Application-level storage helpers to avoid infra coupling."""
from __future__ import annotations

import math
import mimetypes

MIB = 1024 * 1024

# (upper bound of file size, part size)
_PART_SIZE_TIERS: tuple[tuple[int, int], ...] = (
    (100 * MIB, 10 * MIB),
    (1024 * MIB, 25 * MIB),
    (10 * 1024 * MIB, 100 * MIB),
)


def guess_content_type(filename: str) -> str:
    ctype, _ = mimetypes.guess_type(filename)
    return ctype or "application/octet-stream"


def calculate_part_size(file_size: int, *, min_part_size: int = 5 * MIB, max_parts: int = 10_000) -> int:
    """Pick a part size that grows with the file.

    Stays at or above ``min_part_size`` and keeps the part count at or below
    ``max_parts``.
    """
    tiered = 250 * MIB
    for bound, size in _PART_SIZE_TIERS:
        if file_size <= bound:
            tiered = size
            break
    floor_for_count = math.ceil(file_size / max_parts) if file_size else 0
    return max(min_part_size, tiered, floor_for_count)


def part_count(file_size: int, part_size: int) -> int:
    if file_size <= 0:
        return 1
    return math.ceil(file_size / part_size)
