"""
Accountability partnerships: listing, manual edits, reassignment and
greedy auto-pairing within a track and cohort.
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from basecamp.cache import DataCache, keys
from basecamp.errors import (
    InsufficientStudentsError,
    NoPartnershipsCreatedError,
    NotEnoughUnpairedError,
    PairingError,
    PairingTimeoutError,
    StoreError,
    ValidationError,
)
from basecamp.models import Enrollment, Partnership
from basecamp.services.base import StoreService, clean_updates, require
from basecamp.services.enrollments import EnrollmentService
from basecamp.services.pairing import consecutive_pairs, paired_student_ids, unpaired
from basecamp.store import Query, StoreClient

PARTNERSHIP_SELECT = (
    "*, student1:student1_id(id, full_name, email), "
    "student2:student2_id(id, full_name, email), "
    "track:tracks(*), cohort:cohorts(*)"
)
PARTNERSHIP_FIELDS = frozenset({"student1_id", "student2_id", "track_id", "cohort_id"})

INSUFFICIENT_STUDENTS_MESSAGE = (
    "No students found in this track and cohort combination. "
    "Please ensure students are enrolled before attempting auto-pairing."
)
NOT_ENOUGH_UNPAIRED_MESSAGE = (
    "Not enough unpaired students found. All eligible students may already be paired."
)
NO_PARTNERSHIPS_MESSAGE = "Failed to create any partnerships. Please try again."


class PartnershipService(StoreService):
    """Reads, edits and auto-creates accountability partnerships."""

    def __init__(
        self,
        store: StoreClient,
        cache: DataCache,
        enrollments: EnrollmentService,
    ) -> None:
        super().__init__(store, cache)
        self.enrollments = enrollments
        self._pairing_locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._pairing_users: dict[tuple[str, str], int] = {}

    # ========================================
    # Reads
    # ========================================

    async def list_partnerships(self) -> list[Partnership]:
        async def fetch() -> list[Partnership]:
            rows = await self.store.select(
                Query("accountability_partners")
                .select(PARTNERSHIP_SELECT)
                .order("created_at", ascending=False)
            )
            return [Partnership.from_dict(row) for row in rows]

        return await self._cached_read(keys.PARTNERS, fetch, keys.TTL_MEDIUM)

    async def get_partnership(self, partnership_id: str) -> Partnership:
        row = await self.store.select(
            Query("accountability_partners").select(PARTNERSHIP_SELECT).eq("id", partnership_id),
            single=True,
        )
        return Partnership.from_dict(row)

    async def partnership_for_student(self, student_id: str) -> Partnership | None:
        """The partnership a student belongs to, as either member."""
        rows = await self.store.select(
            Query("accountability_partners")
            .select(PARTNERSHIP_SELECT)
            .or_(f"student1_id.eq.{student_id},student2_id.eq.{student_id}")
            .limit(1)
        )
        return Partnership.from_dict(rows[0]) if rows else None

    async def partnerships_for(self, track_id: str, cohort_id: str) -> list[Partnership]:
        rows = await self.store.select(
            Query("accountability_partners")
            .select("id, student1_id, student2_id, track_id, cohort_id")
            .eq("track_id", track_id)
            .eq("cohort_id", cohort_id)
        )
        return [Partnership.from_dict(row) for row in rows]

    # ========================================
    # Manual edits
    # ========================================

    async def create_partnership(
        self,
        student1_id: str,
        student2_id: str,
        track_id: str,
        cohort_id: str,
    ) -> Partnership:
        require(
            student1_id=student1_id,
            student2_id=student2_id,
            track_id=track_id,
            cohort_id=cohort_id,
        )
        if student1_id == student2_id:
            raise ValidationError("A student cannot be their own partner")
        partnership = await self._insert(student1_id, student2_id, track_id, cohort_id)
        self.cache.invalidate(keys.PARTNERS)
        return partnership

    async def update_partnership(self, partnership_id: str, **updates: Any) -> Partnership:
        values = clean_updates(updates, PARTNERSHIP_FIELDS)
        row = await self.store.update(
            Query("accountability_partners").select(PARTNERSHIP_SELECT).eq("id", partnership_id),
            values,
            single=True,
        )
        self.cache.invalidate(keys.PARTNERS)
        return Partnership.from_dict(row)

    async def delete_partnership(self, partnership_id: str) -> None:
        await self.store.delete(Query("accountability_partners").eq("id", partnership_id))
        self.cache.invalidate(keys.PARTNERS)
        logger.info("Deleted partnership {}", partnership_id)

    # ========================================
    # Reassignment
    # ========================================

    async def eligible_replacements(self, partnership: Partnership) -> list[Enrollment]:
        """Students of the same track and cohort who are not in this partnership."""
        roster = await self.enrollments.enrollments_for(partnership.track_id, partnership.cohort_id)
        return [e for e in roster if not partnership.includes(e.user_id)]

    async def reassign(
        self,
        partnership_id: str,
        new_student1_id: str | None = None,
        new_student2_id: str | None = None,
    ) -> Partnership:
        """
        Replace one or both members of a partnership.

        Each new member must be enrolled in the partnership's track and
        cohort and must not already be one of its members.

        Raises:
            ValidationError: No replacement given, replacement not eligible,
                or both replacements are the same student
        """
        if not new_student1_id and not new_student2_id:
            raise ValidationError("At least one new student ID must be provided")
        if new_student1_id and new_student1_id == new_student2_id:
            raise ValidationError("The two partners must be different students")

        partnership = await self.get_partnership(partnership_id)
        eligible = {e.user_id for e in await self.eligible_replacements(partnership)}
        updates: dict[str, str] = {}
        for column, student_id in (
            ("student1_id", new_student1_id),
            ("student2_id", new_student2_id),
        ):
            if not student_id:
                continue
            if student_id not in eligible:
                raise ValidationError(
                    f"Student {student_id} is not eligible for this partnership"
                )
            updates[column] = student_id

        updated = await self.update_partnership(partnership_id, **updates)
        logger.info("Reassigned partnership {}: {}", partnership_id, updates)
        return updated

    # ========================================
    # Auto-pairing
    # ========================================

    async def auto_pair(self, track_id: str, cohort_id: str) -> list[Partnership]:
        """
        Pair every unpartnered student of a track and cohort.

        Students are paired in roster order, two at a time. With an odd
        count the last student stays unpaired. A partnership that fails to
        insert is skipped.

        Returns:
            Created partnerships in pairing order

        Raises:
            ValidationError: track_id or cohort_id is blank
            InsufficientStudentsError: Fewer than two students enrolled
            NotEnoughUnpairedError: Fewer than two students without a partner
            NoPartnershipsCreatedError: Every insert failed
        """
        require(track_id=track_id, cohort_id=cohort_id)
        key = (track_id, cohort_id)
        lock = self._pairing_locks.setdefault(key, asyncio.Lock())
        self._pairing_users[key] = self._pairing_users.get(key, 0) + 1
        try:
            async with lock:
                return await self._auto_pair(track_id, cohort_id)
        finally:
            # Drop the lock once nobody holds or waits on it
            self._pairing_users[key] -= 1
            if not self._pairing_users[key]:
                del self._pairing_users[key]
                del self._pairing_locks[key]

    async def auto_pair_with_timeout(
        self,
        track_id: str,
        cohort_id: str,
        timeout: float = 30.0,
    ) -> list[Partnership]:
        """:meth:`auto_pair` bounded by ``timeout`` seconds."""
        try:
            return await asyncio.wait_for(self.auto_pair(track_id, cohort_id), timeout)
        except asyncio.TimeoutError as e:
            raise PairingTimeoutError(
                f"Auto-pairing request timed out after {timeout:g} seconds"
            ) from e

    async def _auto_pair(self, track_id: str, cohort_id: str) -> list[Partnership]:
        logger.info("Auto-pairing track {} cohort {}", track_id, cohort_id)

        try:
            roster = await self.enrollments.enrollments_for(track_id, cohort_id)
        except StoreError as e:
            raise PairingError(f"Failed to fetch students for pairing: {e}") from e
        if len(roster) < 2:
            raise InsufficientStudentsError(INSUFFICIENT_STUDENTS_MESSAGE)

        try:
            existing = await self.partnerships_for(track_id, cohort_id)
        except StoreError as e:
            raise PairingError(f"Failed to check existing partnerships: {e}") from e

        candidates = unpaired(roster, paired_student_ids(existing))
        if len(candidates) < 2:
            raise NotEnoughUnpairedError(NOT_ENOUGH_UNPAIRED_MESSAGE)

        pairs, leftover = consecutive_pairs(candidates)
        if leftover is not None:
            logger.warning(
                "Odd number of unpaired students; {} left without a partner",
                leftover.user_id,
            )

        created: list[Partnership] = []
        for first, second in pairs:
            try:
                partnership = await self._insert(
                    first.user_id, second.user_id, track_id, cohort_id
                )
            except StoreError as e:
                logger.error(
                    "Could not pair {} with {}: {}", first.user_id, second.user_id, e
                )
                continue
            created.append(partnership)

        if not created:
            raise NoPartnershipsCreatedError(NO_PARTNERSHIPS_MESSAGE)

        self.cache.invalidate(keys.PARTNERS)
        logger.info("Created {} partnerships", len(created))
        return created

    async def _insert(
        self,
        student1_id: str,
        student2_id: str,
        track_id: str,
        cohort_id: str,
    ) -> Partnership:
        row = await self.store.insert(
            "accountability_partners",
            {
                "student1_id": student1_id,
                "student2_id": student2_id,
                "track_id": track_id,
                "cohort_id": cohort_id,
            },
            returning=PARTNERSHIP_SELECT,
            single=True,
        )
        return Partnership.from_dict(row)
