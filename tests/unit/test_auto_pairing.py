"""
Unit tests for accountability-partner auto-pairing.

Run against the in-memory FakeStore from conftest.
"""

import asyncio

import pytest

from basecamp.cache import keys
from basecamp.errors import (
    InsufficientStudentsError,
    NoPartnershipsCreatedError,
    NotEnoughUnpairedError,
    PairingError,
    PairingTimeoutError,
    ValidationError,
)
from basecamp.services.pairing import consecutive_pairs


def _pairs(partnerships):
    return [(p.student1_id, p.student2_id) for p in partnerships]


def _enroll(store, count, track="t-frontend", cohort="c-2026"):
    store.tables["student_enrollments"] = [
        {"id": f"e{i}", "user_id": f"s{i}", "track_id": track, "cohort_id": cohort}
        for i in range(1, count + 1)
    ]


class TestConsecutivePairs:
    """Pure pairing helper."""

    @pytest.mark.parametrize(
        "items,expected_pairs,leftover",
        [
            ([], [], None),
            (["a"], [], "a"),
            (["a", "b"], [("a", "b")], None),
            (["a", "b", "c"], [("a", "b")], "c"),
            (["a", "b", "c", "d"], [("a", "b"), ("c", "d")], None),
        ],
    )
    def test_pairs_in_order(self, items, expected_pairs, leftover):
        pairs, odd = consecutive_pairs(items)
        assert pairs == expected_pairs
        assert odd == leftover


class TestAutoPair:
    """Greedy pairing through the service."""

    @pytest.mark.asyncio
    async def test_five_students_make_two_pairs(self, backend, store):
        """S1..S5 with no partnerships -> {S1,S2}, {S3,S4}; S5 unpaired."""
        created = await backend.partnerships.auto_pair("t-frontend", "c-2026")

        assert _pairs(created) == [("s1", "s2"), ("s3", "s4")]
        stored = store.tables["accountability_partners"]
        assert len(stored) == 2
        assert all(p["track_id"] == "t-frontend" and p["cohort_id"] == "c-2026" for p in stored)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [2, 4, 6, 8])
    async def test_even_count_pairs_everyone_once(self, backend, store, count):
        _enroll(store, count)

        created = await backend.partnerships.auto_pair("t-frontend", "c-2026")

        members = [m for p in created for m in p.members]
        assert len(created) == count // 2
        assert sorted(members) == sorted(f"s{i}" for i in range(1, count + 1))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [3, 5, 7])
    async def test_odd_count_leaves_exactly_one_unpaired(self, backend, store, count):
        _enroll(store, count)

        created = await backend.partnerships.auto_pair("t-frontend", "c-2026")

        members = {m for p in created for m in p.members}
        assert len(created) == (count - 1) // 2
        assert {f"s{i}" for i in range(1, count + 1)} - members == {f"s{count}"}

    @pytest.mark.asyncio
    async def test_already_partnered_students_are_excluded(self, backend, store):
        store.tables["accountability_partners"] = [
            {"id": "p1", "student1_id": "s2", "student2_id": "s4",
             "track_id": "t-frontend", "cohort_id": "c-2026"},
        ]

        created = await backend.partnerships.auto_pair("t-frontend", "c-2026")

        assert _pairs(created) == [("s1", "s3")]
        new_members = {m for p in created for m in p.members}
        assert not new_members & {"s2", "s4"}

    @pytest.mark.asyncio
    async def test_partnerships_in_other_cohorts_do_not_exclude(self, backend, store):
        _enroll(store, 2)
        store.tables["accountability_partners"] = [
            {"id": "p1", "student1_id": "s1", "student2_id": "s2",
             "track_id": "t-frontend", "cohort_id": "c-2025"},
        ]

        created = await backend.partnerships.auto_pair("t-frontend", "c-2026")

        assert _pairs(created) == [("s1", "s2")]


class TestAutoPairErrors:
    """Failure modes and their messages."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 1])
    async def test_fewer_than_two_enrolled(self, backend, store, count):
        _enroll(store, count)

        with pytest.raises(InsufficientStudentsError, match="No students found"):
            await backend.partnerships.auto_pair("t-frontend", "c-2026")
        assert store.tables["accountability_partners"] == []

    @pytest.mark.asyncio
    async def test_everyone_already_paired(self, backend, store):
        _enroll(store, 3)
        store.tables["accountability_partners"] = [
            {"id": "p1", "student1_id": "s1", "student2_id": "s2",
             "track_id": "t-frontend", "cohort_id": "c-2026"},
        ]

        with pytest.raises(NotEnoughUnpairedError, match="Not enough unpaired students"):
            await backend.partnerships.auto_pair("t-frontend", "c-2026")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("track,cohort", [("", "c-2026"), ("t-frontend", ""), (None, None)])
    async def test_missing_ids_rejected_before_store_calls(self, backend, store, track, cohort):
        with pytest.raises(ValidationError):
            await backend.partnerships.auto_pair(track, cohort)
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_failed_insert_is_skipped(self, backend, store):
        _enroll(store, 6)
        store.insert_error = lambda table, row: row.get("student1_id") == "s3"

        created = await backend.partnerships.auto_pair("t-frontend", "c-2026")

        assert _pairs(created) == [("s1", "s2"), ("s5", "s6")]

    @pytest.mark.asyncio
    async def test_all_inserts_failing(self, backend, store):
        store.insert_error = lambda table, row: True

        with pytest.raises(NoPartnershipsCreatedError, match="Failed to create any partnerships"):
            await backend.partnerships.auto_pair("t-frontend", "c-2026")

    @pytest.mark.asyncio
    async def test_roster_read_failure_becomes_pairing_error(self, backend, store):
        store.read_errors.add("student_enrollments")

        with pytest.raises(PairingError, match="Failed to fetch students"):
            await backend.partnerships.auto_pair("t-frontend", "c-2026")

    @pytest.mark.asyncio
    async def test_timeout(self, backend):
        async def slow(track_id, cohort_id):
            await asyncio.sleep(1)
            return []

        backend.partnerships.auto_pair = slow

        with pytest.raises(PairingTimeoutError, match="timed out after 0.05 seconds"):
            await backend.partnerships.auto_pair_with_timeout("t-frontend", "c-2026", timeout=0.05)

    @pytest.mark.asyncio
    async def test_default_timeout_message(self, backend):
        async def slow(track_id, cohort_id):
            raise asyncio.TimeoutError

        backend.partnerships.auto_pair = slow

        with pytest.raises(PairingTimeoutError) as exc_info:
            await backend.partnerships.auto_pair_with_timeout("t-frontend", "c-2026")
        assert str(exc_info.value) == "Auto-pairing request timed out after 30 seconds"


class TestAutoPairConcurrencyAndCache:
    """Lock and cache behaviour around pairing."""

    @pytest.mark.asyncio
    async def test_concurrent_runs_do_not_double_pair(self, backend, store):
        _enroll(store, 4)

        results = await asyncio.gather(
            backend.partnerships.auto_pair("t-frontend", "c-2026"),
            backend.partnerships.auto_pair("t-frontend", "c-2026"),
            return_exceptions=True,
        )

        created = [r for r in results if isinstance(r, list)]
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(created) == 1
        assert isinstance(errors[0], NotEnoughUnpairedError)
        assert len(store.tables["accountability_partners"]) == 2
        assert backend.partnerships._pairing_locks == {}

    @pytest.mark.asyncio
    async def test_lock_held_across_suspension_then_released(self, backend):
        running = []
        overlaps = []

        async def slow_pair(track_id, cohort_id):
            overlaps.append(len(running))
            running.append(cohort_id)
            await asyncio.sleep(0.01)
            running.remove(cohort_id)
            return []

        backend.partnerships._auto_pair = slow_pair

        await asyncio.gather(
            backend.partnerships.auto_pair("t-frontend", "c-2026"),
            backend.partnerships.auto_pair("t-frontend", "c-2026"),
            backend.partnerships.auto_pair("t-frontend", "c-2026"),
        )

        assert overlaps == [0, 0, 0]
        assert backend.partnerships._pairing_locks == {}
        assert backend.partnerships._pairing_users == {}

    @pytest.mark.asyncio
    async def test_lock_released_after_failure(self, backend, store):
        store.tables["student_enrollments"] = []

        with pytest.raises(InsufficientStudentsError):
            await backend.partnerships.auto_pair("t-frontend", "c-2026")

        assert backend.partnerships._pairing_locks == {}

    @pytest.mark.asyncio
    async def test_partners_cache_invalidated(self, backend):
        assert await backend.partnerships.list_partnerships() == []
        assert keys.PARTNERS in backend.cache

        await backend.partnerships.auto_pair("t-frontend", "c-2026")

        assert len(await backend.partnerships.list_partnerships()) == 2
