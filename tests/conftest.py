"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests,
including an in-memory stand-in for the PostgREST store.
"""
import itertools
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from basecamp.backend import Backend  # noqa: E402
from basecamp.cache import DataCache  # noqa: E402
from basecamp.errors import NOT_FOUND_CODE, NotFoundError, StoreError  # noqa: E402
from basecamp.services.accounts import AuthUser  # noqa: E402
from basecamp.store.query import format_value  # noqa: E402
from config import Settings  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (HTTP API over a fake store)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# ========================================
# Fake store
# ========================================


def _matches(row, column, operator, value):
    if "." in column:
        # Filters on embedded resources are resolved by the real store only
        return True
    actual = row.get(column)
    if operator == "eq":
        return format_value(actual) == format_value(value)
    if operator == "neq":
        return format_value(actual) != format_value(value)
    if operator == "gte":
        return actual is not None and format_value(actual) >= format_value(value)
    if operator == "lte":
        return actual is not None and format_value(actual) <= format_value(value)
    if operator == "in":
        return format_value(actual) in {format_value(v) for v in value}
    if operator == "is":
        return actual is value or (value is None and actual is None)
    raise AssertionError(f"FakeStore does not support operator {operator!r}")


def _matches_or(row, expression):
    for clause in expression.split(","):
        column, operator, value = clause.split(".", 2)
        if _matches(row, column, operator, value):
            return True
    return False


class FakeStore:
    """
    In-memory store with the StoreClient call surface.

    Filters (eq, neq, gte, lte, in, is, or) and ordering are evaluated
    against plain dict rows. Embedded selects are not resolved: seed rows
    with the embedded objects a test needs.
    """

    def __init__(self, tables=None):
        self.tables = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.calls = []
        self.read_errors = set()
        self.insert_error = None  # callable(table, row) -> bool
        self.closed = False
        self._ids = itertools.count(1)

    def rows(self, table):
        return self.tables.setdefault(table, [])

    def _filter(self, query):
        if query.table in self.read_errors:
            raise StoreError(f"relation {query.table} unavailable", status_code=503)
        rows = []
        for row in self.rows(query.table):
            keep = True
            for f in query.filters:
                if f.operator == "or":
                    keep = _matches_or(row, f.value)
                else:
                    keep = _matches(row, f.column, f.operator, f.value)
                if not keep:
                    break
            if keep:
                rows.append(row)
        return rows

    async def select(self, query, single=False):
        self.calls.append(("select", query.table))
        rows = [dict(row) for row in self._filter(query)]
        for column, ascending in reversed(query.ordering):
            rows.sort(
                key=lambda r: (r.get(column) is None, format_value(r.get(column))),
                reverse=not ascending,
            )
        if query.row_limit is not None:
            rows = rows[: query.row_limit]
        if single:
            if len(rows) != 1:
                raise NotFoundError("no rows", status_code=406, code=NOT_FOUND_CODE)
            return rows[0]
        return rows

    async def select_one(self, query):
        try:
            return await self.select(query, single=True)
        except NotFoundError:
            return None

    async def count(self, query):
        self.calls.append(("count", query.table))
        return len(self._filter(query))

    async def insert(self, table, values, returning="*", single=False):
        self.calls.append(("insert", table))
        batch = values if isinstance(values, list) else [values]
        created = []
        for value in batch:
            if self.insert_error and self.insert_error(table, value):
                raise StoreError("insert rejected", status_code=409, code="23505")
            row = {"id": f"{table}-{next(self._ids)}", **value}
            self.rows(table).append(row)
            created.append(dict(row))
        return created[0] if single else created

    async def update(self, query, values, single=False):
        self.calls.append(("update", query.table))
        if not query.filters:
            raise StoreError("Refusing to update without a row filter")
        matched = self._filter(query)
        for row in matched:
            row.update(values)
        updated = [dict(row) for row in matched]
        if single:
            if len(updated) != 1:
                raise NotFoundError("no rows", status_code=406, code=NOT_FOUND_CODE)
            return updated[0]
        return updated

    async def upsert(self, table, values, on_conflict=None, returning="*", single=False):
        self.calls.append(("upsert", table))
        keys = on_conflict.split(",") if on_conflict else ["id"]
        for row in self.rows(table):
            if all(row.get(k) == values.get(k) for k in keys):
                row.update(values)
                return dict(row) if single else [dict(row)]
        return await self.insert(table, values, single=single)

    async def delete(self, query):
        self.calls.append(("delete", query.table))
        if not query.filters:
            raise StoreError("Refusing to delete without a row filter")
        matched = self._filter(query)
        self.tables[query.table] = [r for r in self.rows(query.table) if r not in matched]

    async def close(self):
        self.closed = True


class FakeAuth:
    """Auth provider that records sign-ups and hands out predictable ids."""

    def __init__(self):
        self.sign_ups = []

    async def sign_up(self, email, password, full_name):
        self.sign_ups.append(email)
        return AuthUser(id=f"user-{len(self.sign_ups)}", email=email, full_name=full_name)


# ========================================
# Fixtures
# ========================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings():
    """Settings with a dummy store so nothing reads the real environment."""
    return Settings(
        _env_file=None,
        supabase_url="https://example.supabase.co",
        supabase_anon_key="anon-key",
        pairing_timeout_seconds=5,
    )


@pytest.fixture
def clock():
    """Manually advanced clock for cache expiry."""

    class Clock:
        now = 1000.0

        def __call__(self):
            return self.now

        def advance(self, seconds):
            self.now += seconds

    return Clock()


@pytest.fixture
def sample_tables():
    """Two tracks, one cohort, five students enrolled in the frontend track."""
    students = [
        {"id": f"s{i}", "full_name": f"Student {i}", "email": f"s{i}@example.com", "role": "student"}
        for i in range(1, 6)
    ]
    return {
        "tracks": [
            {"id": "t-frontend", "name": "Frontend", "description": "HTML, CSS, JS"},
            {"id": "t-backend", "name": "Backend", "description": "APIs and databases"},
        ],
        "cohorts": [
            {"id": "c-2026", "name": "Cohort 2026", "start_date": "2026-01-10",
             "end_date": "2026-06-30", "status": "Active"},
        ],
        "profiles": students,
        "student_enrollments": [
            {
                "id": f"e{i}",
                "user_id": f"s{i}",
                "track_id": "t-frontend",
                "cohort_id": "c-2026",
                "progress_percentage": 0,
                "enrolled_at": f"2026-01-1{i}T09:00:00+00:00",
                "profile": students[i - 1],
            }
            for i in range(1, 6)
        ],
        "accountability_partners": [],
    }


@pytest.fixture
def store(sample_tables):
    return FakeStore(sample_tables)


@pytest.fixture
def fake_auth():
    return FakeAuth()


@pytest.fixture
def backend(store, settings, fake_auth):
    return Backend(store, cache=DataCache(), settings=settings, auth=fake_auth)
