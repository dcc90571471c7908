"""
Enrollment service.

Enrollments tie a student profile to one track and cohort. The student
roster is assembled from four tables fetched in parallel and joined
in-process, because the enrollment -> profile relation is not always
resolvable as a nested select.
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from basecamp.cache import keys
from basecamp.models import Enrollment
from basecamp.services.base import StoreService, clean_updates, require, utc_now
from basecamp.store import Query, attach, index_by

ENROLLMENT_SELECT = "*, user:profiles(*), track:tracks(*), cohort:cohorts(*)"
ENROLLMENT_FIELDS = frozenset(
    {"track_id", "cohort_id", "progress_percentage", "tasks_completed", "total_tasks", "status"}
)


class EnrollmentService(StoreService):
    """Reads and edits student enrollments."""

    async def list_enrollments(self) -> list[Enrollment]:
        """All enrollments with profile, track and cohort, newest first."""

        async def fetch() -> list[Enrollment]:
            rows = await self.store.select(
                Query("student_enrollments")
                .select(ENROLLMENT_SELECT)
                .order("enrolled_at", ascending=False)
            )
            return [Enrollment.from_dict(row) for row in rows]

        return await self._cached_read(keys.ENROLLMENTS, fetch, keys.TTL_MEDIUM)

    async def enrollments_for(self, track_id: str, cohort_id: str) -> list[Enrollment]:
        """
        Enrollments of one track and cohort, in store order.

        Not cached: pairing relies on seeing the current roster.
        """
        rows = await self.store.select(
            Query("student_enrollments")
            .select("*, profile:profiles(*)")
            .eq("track_id", track_id)
            .eq("cohort_id", cohort_id)
        )
        return [Enrollment.from_dict(row) for row in rows]

    async def get_enrollment(
        self, user_id: str, degraded: list[str] | None = None
    ) -> Enrollment | None:
        """The enrollment of one student, or None when not enrolled."""

        async def fetch() -> Enrollment | None:
            row = await self.store.select_one(
                Query("student_enrollments").select(ENROLLMENT_SELECT).eq("user_id", user_id)
            )
            return Enrollment.from_dict(row) if row else None

        return await self._cached_read(
            keys.student_enrollment(user_id),
            fetch,
            keys.TTL_MEDIUM,
            fallback=lambda: None,
            degraded=degraded,
        )

    async def list_students(self) -> list[Enrollment]:
        """
        Student roster built by a manual join.

        Enrollments, profiles, tracks and cohorts are fetched together and
        stitched by foreign key.
        """

        async def fetch() -> list[Enrollment]:
            enrollments, profiles, tracks, cohorts = await asyncio.gather(
                self.store.select(
                    Query("student_enrollments").order("enrolled_at", ascending=False)
                ),
                self.store.select(Query("profiles").eq("role", "student")),
                self.store.select(Query("tracks")),
                self.store.select(Query("cohorts")),
            )
            rows = attach(enrollments, index_by(profiles), "user_id", "user")
            rows = attach(rows, index_by(tracks), "track_id", "track")
            rows = attach(rows, index_by(cohorts), "cohort_id", "cohort")
            return [Enrollment.from_dict(row) for row in rows]

        return await self._cached_read(keys.STUDENTS, fetch, keys.TTL_MEDIUM)

    async def enroll(
        self,
        user_id: str,
        track_id: str,
        cohort_id: str,
        total_tasks: int = 20,
    ) -> Enrollment:
        """Enroll an existing user with zeroed progress."""
        require(user_id=user_id, track_id=track_id, cohort_id=cohort_id)
        row = await self.store.insert(
            "student_enrollments",
            {
                "user_id": user_id,
                "track_id": track_id,
                "cohort_id": cohort_id,
                "progress_percentage": 0,
                "tasks_completed": 0,
                "total_tasks": total_tasks,
                "enrolled_at": utc_now(),
            },
            returning=ENROLLMENT_SELECT,
            single=True,
        )
        self._invalidate(user_id)
        logger.info("Enrolled {} in track {} cohort {}", user_id, track_id, cohort_id)
        return Enrollment.from_dict(row)

    async def create_enrollment(
        self,
        email: str,
        full_name: str,
        track_id: str,
        cohort_id: str,
    ) -> Enrollment:
        """Admin path: create the profile first, then enroll it."""
        require(email=email, full_name=full_name, track_id=track_id, cohort_id=cohort_id)
        profile = await self.store.insert(
            "profiles",
            {"email": email.strip().lower(), "full_name": full_name.strip()},
            single=True,
        )
        row = await self.store.insert(
            "student_enrollments",
            {
                "user_id": profile["id"],
                "track_id": track_id,
                "cohort_id": cohort_id,
                "enrolled_at": utc_now(),
            },
            returning=ENROLLMENT_SELECT,
            single=True,
        )
        self._invalidate(profile["id"])
        return Enrollment.from_dict(row)

    async def update_enrollment(self, enrollment_id: str, **updates: Any) -> Enrollment:
        values = clean_updates(updates, ENROLLMENT_FIELDS)
        row = await self.store.update(
            Query("student_enrollments").select(ENROLLMENT_SELECT).eq("id", enrollment_id),
            values,
            single=True,
        )
        enrollment = Enrollment.from_dict(row)
        self._invalidate(enrollment.user_id)
        return enrollment

    async def delete_enrollment(self, enrollment_id: str) -> None:
        await self.store.delete(Query("student_enrollments").eq("id", enrollment_id))
        self._invalidate()
        self.cache.invalidate_pattern("student_enrollment_")
        logger.info("Deleted enrollment {}", enrollment_id)

    def _invalidate(self, user_id: str | None = None) -> None:
        self.cache.invalidate(keys.ENROLLMENTS)
        self.cache.invalidate(keys.STUDENTS)
        self.cache.invalidate(keys.ADMIN_DASHBOARD)
        if user_id:
            self.cache.invalidate(keys.student_enrollment(user_id))
            self.cache.invalidate(keys.student_dashboard(user_id))
