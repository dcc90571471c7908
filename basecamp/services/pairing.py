"""
Greedy accountability-partner matching.

Pure functions over already-fetched rows; the service in
``partnerships`` does the I/O around them.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TypeVar

from basecamp.models import Enrollment, Partnership

T = TypeVar("T")


def paired_student_ids(partnerships: Iterable[Partnership]) -> set[str]:
    """Every student appearing as either member of a partnership."""
    paired: set[str] = set()
    for partnership in partnerships:
        paired.update(partnership.members)
    return paired


def unpaired(enrollments: Iterable[Enrollment], paired: set[str]) -> list[Enrollment]:
    """Enrollments whose student has no partner yet, order preserved."""
    return [enrollment for enrollment in enrollments if enrollment.user_id not in paired]


def consecutive_pairs(items: Sequence[T]) -> tuple[list[tuple[T, T]], T | None]:
    """
    Pair (0, 1), (2, 3), ... and return the odd one out, if any.

    >>> consecutive_pairs(["a", "b", "c"])
    ([('a', 'b')], 'c')
    """
    pairs = [(items[i], items[i + 1]) for i in range(0, len(items) - 1, 2)]
    leftover = items[-1] if len(items) % 2 else None
    return pairs, leftover
