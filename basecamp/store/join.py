"""
In-process joins for rows fetched separately.

The store does not always resolve nested selects (views, ambiguous foreign
keys), so some reads fetch related tables in parallel and stitch them
together here: build a lookup map keyed by id, then attach.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


def index_by(rows: Iterable[dict[str, Any]], key: str = "id") -> dict[Any, dict[str, Any]]:
    """Map ``row[key]`` -> row. Rows missing the key are skipped; later rows win."""
    return {row[key]: row for row in rows if row.get(key) is not None}


def attach(
    rows: Iterable[dict[str, Any]],
    lookup: dict[Any, dict[str, Any]],
    foreign_key: str,
    as_field: str,
) -> list[dict[str, Any]]:
    """
    Return copies of ``rows`` with ``lookup[row[foreign_key]]`` under ``as_field``.

    Unmatched foreign keys attach None.
    """
    joined = []
    for row in rows:
        copy = dict(row)
        copy[as_field] = lookup.get(row.get(foreign_key))
        joined.append(copy)
    return joined


def group_count(rows: Iterable[dict[str, Any]], field: str) -> list[dict[str, Any]]:
    """Count rows per ``field`` value in first-seen order, skipping empty values."""
    counts: dict[Any, int] = {}
    for row in rows:
        value = row.get(field)
        if value:
            counts[value] = counts.get(value, 0) + 1
    return [{"value": value, "count": count} for value, count in counts.items()]
