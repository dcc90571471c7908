"""
PostgREST query description.

A Query records the table, projection, filters, ordering and limit of a
read (or the row filter of an update/delete) and encodes them as
PostgREST query-string parameters:

    Query("weeks").select("*,lessons(*)").eq("track_id", t).order("order_index")
    -> [("select", "*,lessons(*)"), ("track_id", "eq.<t>"), ("order", "order_index.asc")]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

# Characters that force a value inside in.(...) or or=(...) to be quoted
_RESERVED = set(',.:()" ')


@dataclass(frozen=True)
class Filter:
    """One column filter: ``column=operator.value``."""

    column: str
    operator: str  # "eq", "neq", "gt", "gte", "lt", "lte", "in", "is", "or"
    value: Any

    def encode(self) -> tuple[str, str]:
        if self.operator == "or":
            return "or", f"({self.value})"
        if self.operator == "in":
            inner = ",".join(quote_value(v) for v in self.value)
            return self.column, f"in.({inner})"
        return self.column, f"{self.operator}.{format_value(self.value)}"


def format_value(value: Any) -> str:
    """Render a Python value the way PostgREST expects it in a filter."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def quote_value(value: Any) -> str:
    """Format a list member, double-quoting it when it holds reserved characters."""
    text = format_value(value)
    if any(ch in _RESERVED for ch in text):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


@dataclass
class Query:
    """Chainable description of a PostgREST request against one table."""

    table: str
    columns: str = "*"
    filters: list[Filter] = field(default_factory=list)
    ordering: list[tuple[str, bool]] = field(default_factory=list)
    row_limit: int | None = None

    # ========================================
    # Projection
    # ========================================

    def select(self, columns: str) -> Query:
        # Embedded selects are written multi-line for readability
        self.columns = "".join(columns.split())
        return self

    # ========================================
    # Filters
    # ========================================

    def eq(self, column: str, value: Any) -> Query:
        self.filters.append(Filter(column, "eq", value))
        return self

    def neq(self, column: str, value: Any) -> Query:
        self.filters.append(Filter(column, "neq", value))
        return self

    def gte(self, column: str, value: Any) -> Query:
        self.filters.append(Filter(column, "gte", value))
        return self

    def lte(self, column: str, value: Any) -> Query:
        self.filters.append(Filter(column, "lte", value))
        return self

    def in_(self, column: str, values: list[Any] | tuple[Any, ...]) -> Query:
        self.filters.append(Filter(column, "in", tuple(values)))
        return self

    def is_(self, column: str, value: bool | None) -> Query:
        self.filters.append(Filter(column, "is", value))
        return self

    def or_(self, expression: str) -> Query:
        """Raw PostgREST disjunction, e.g. ``student1_id.eq.x,student2_id.eq.x``."""
        self.filters.append(Filter("", "or", expression))
        return self

    # ========================================
    # Ordering & paging
    # ========================================

    def order(self, column: str, ascending: bool = True) -> Query:
        self.ordering.append((column, ascending))
        return self

    def limit(self, count: int) -> Query:
        self.row_limit = count
        return self

    # ========================================
    # Encoding
    # ========================================

    def filter_params(self) -> list[tuple[str, str]]:
        """Row filters only (what PATCH and DELETE accept)."""
        return [f.encode() for f in self.filters]

    def to_params(self) -> list[tuple[str, str]]:
        """Full parameter list for a GET."""
        params: list[tuple[str, str]] = [("select", self.columns)]
        params.extend(self.filter_params())
        if self.ordering:
            params.append(
                (
                    "order",
                    ",".join(
                        f"{column}.{'asc' if ascending else 'desc'}"
                        for column, ascending in self.ordering
                    ),
                )
            )
        if self.row_limit is not None:
            params.append(("limit", str(self.row_limit)))
        return params
