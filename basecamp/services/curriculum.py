"""
Curriculum service: tracks, cohorts, weeks, lessons and assignments.

Reads are cached (tracks/cohorts on the long tier, weeks on the medium
tier); every write evicts the keys it can affect.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from basecamp.cache import keys
from basecamp.errors import ValidationError
from basecamp.models import Assignment, Cohort, Lesson, Track, Week
from basecamp.services.base import StoreService, clean_updates, require
from basecamp.store import Query

WEEK_SELECT = "*, lessons(*), assignments(*)"
WEEK_WITH_TRACK_SELECT = "*, lessons(*), assignments(*), track:tracks(*)"
ASSIGNMENT_SELECT = "*, week:weeks(*, track:tracks(*))"

TRACK_FIELDS = frozenset({"name", "description"})
COHORT_FIELDS = frozenset({"name", "start_date", "end_date", "status"})
COHORT_STATUSES = ("Active", "Upcoming", "Completed")
WEEK_FIELDS = frozenset({"title", "description", "week_number", "order_index"})
LESSON_FIELDS = frozenset({"title", "type", "content", "video_url", "duration", "order_index"})
LESSON_TYPES = ("video", "text")
ASSIGNMENT_FIELDS = frozenset(
    {
        "title",
        "requirements",
        "submission_guidelines",
        "deadline",
        "video_guide",
        "learning_materials",
    }
)


class CurriculumService(StoreService):
    """Reads and edits the curriculum tables."""

    # ========================================
    # Tracks
    # ========================================

    async def list_tracks(self) -> list[Track]:
        async def fetch() -> list[Track]:
            rows = await self.store.select(Query("tracks").order("name"))
            return [Track.from_dict(row) for row in rows]

        return await self._cached_read(keys.TRACKS, fetch, keys.TTL_LONG)

    async def create_track(self, name: str, description: str = "") -> Track:
        require(name=name)
        row = await self.store.insert(
            "tracks", {"name": name.strip(), "description": description}, single=True
        )
        self.cache.invalidate(keys.TRACKS)
        logger.info("Created track {}", row["id"])
        return Track.from_dict(row)

    async def update_track(self, track_id: str, **updates: Any) -> Track:
        values = clean_updates(updates, TRACK_FIELDS)
        row = await self.store.update(Query("tracks").eq("id", track_id), values, single=True)
        self._invalidate_tracks()
        return Track.from_dict(row)

    async def delete_track(self, track_id: str) -> None:
        await self.store.delete(Query("tracks").eq("id", track_id))
        self._invalidate_tracks()
        logger.info("Deleted track {}", track_id)

    def _invalidate_tracks(self) -> None:
        # Week and whitelist projections embed track rows
        self.cache.invalidate(keys.TRACKS)
        self.cache.invalidate_pattern("weeks")
        self.cache.invalidate(keys.WHITELIST)

    # ========================================
    # Cohorts
    # ========================================

    async def list_cohorts(self) -> list[Cohort]:
        async def fetch() -> list[Cohort]:
            rows = await self.store.select(Query("cohorts").order("start_date"))
            return [Cohort.from_dict(row) for row in rows]

        return await self._cached_read(keys.COHORTS, fetch, keys.TTL_LONG)

    async def create_cohort(
        self,
        name: str,
        start_date: str,
        end_date: str,
        status: str | None = None,
    ) -> Cohort:
        require(name=name, start_date=start_date, end_date=end_date)
        status = status or "Upcoming"
        _check_choice("status", status, COHORT_STATUSES)
        if end_date < start_date:
            raise ValidationError("End date must not be before start date")
        row = await self.store.insert(
            "cohorts",
            {"name": name.strip(), "start_date": start_date, "end_date": end_date, "status": status},
            single=True,
        )
        self.cache.invalidate(keys.COHORTS)
        return Cohort.from_dict(row)

    async def update_cohort(self, cohort_id: str, **updates: Any) -> Cohort:
        values = clean_updates(updates, COHORT_FIELDS)
        if "status" in values:
            _check_choice("status", values["status"], COHORT_STATUSES)
        row = await self.store.update(Query("cohorts").eq("id", cohort_id), values, single=True)
        self.cache.invalidate(keys.COHORTS)
        self.cache.invalidate(keys.WHITELIST)
        return Cohort.from_dict(row)

    async def delete_cohort(self, cohort_id: str) -> None:
        await self.store.delete(Query("cohorts").eq("id", cohort_id))
        self.cache.invalidate(keys.COHORTS)
        self.cache.invalidate(keys.WHITELIST)

    # ========================================
    # Weeks
    # ========================================

    async def weeks_by_track(
        self, track_id: str, degraded: list[str] | None = None
    ) -> list[Week]:
        async def fetch() -> list[Week]:
            rows = await self.store.select(
                Query("weeks").select(WEEK_SELECT).eq("track_id", track_id).order("order_index")
            )
            return [Week.from_dict(row) for row in rows]

        return await self._cached_read(
            keys.weeks_by_track(track_id), fetch, keys.TTL_MEDIUM, degraded=degraded
        )

    async def all_weeks(self) -> list[Week]:
        async def fetch() -> list[Week]:
            rows = await self.store.select(
                Query("weeks")
                .select(WEEK_WITH_TRACK_SELECT)
                .order("track_id")
                .order("order_index")
            )
            return [Week.from_dict(row) for row in rows]

        return await self._cached_read(keys.ALL_WEEKS, fetch, keys.TTL_MEDIUM)

    async def get_week(self, week_id: str) -> Week:
        row = await self.store.select(
            Query("weeks").select(WEEK_SELECT).eq("id", week_id), single=True
        )
        return Week.from_dict(row)

    async def create_week(
        self,
        track_id: str,
        week_number: int,
        title: str,
        description: str = "",
        order_index: int | None = None,
    ) -> Week:
        require(track_id=track_id, title=title)
        row = await self.store.insert(
            "weeks",
            {
                "track_id": track_id,
                "week_number": week_number,
                "title": title.strip(),
                "description": description,
                "order_index": week_number if order_index is None else order_index,
            },
            returning=WEEK_SELECT,
            single=True,
        )
        self._invalidate_weeks()
        return Week.from_dict(row)

    async def update_week(self, week_id: str, **updates: Any) -> Week:
        values = clean_updates(updates, WEEK_FIELDS)
        row = await self.store.update(
            Query("weeks").select(WEEK_SELECT).eq("id", week_id), values, single=True
        )
        self._invalidate_weeks()
        return Week.from_dict(row)

    async def delete_week(self, week_id: str) -> None:
        await self.store.delete(Query("weeks").eq("id", week_id))
        self._invalidate_weeks()

    def _invalidate_weeks(self) -> None:
        self.cache.invalidate_pattern("weeks")
        self.cache.invalidate_pattern("student_dashboard")

    # ========================================
    # Lessons
    # ========================================

    async def get_lesson(self, lesson_id: str) -> Lesson:
        row = await self.store.select(Query("lessons").eq("id", lesson_id), single=True)
        return Lesson.from_dict(row)

    async def create_lesson(
        self,
        week_id: str,
        title: str,
        type: str = "text",
        content: str | None = None,
        video_url: str | None = None,
        duration: str | None = None,
        order_index: int = 0,
    ) -> Lesson:
        require(week_id=week_id, title=title)
        _check_choice("type", type, LESSON_TYPES)
        if type == "video" and not video_url:
            raise ValidationError("Video lessons need a video URL")
        row = await self.store.insert(
            "lessons",
            {
                "week_id": week_id,
                "title": title.strip(),
                "type": type,
                "content": content,
                "video_url": video_url,
                "duration": duration,
                "order_index": order_index,
            },
            single=True,
        )
        self._invalidate_weeks()
        return Lesson.from_dict(row)

    async def update_lesson(self, lesson_id: str, **updates: Any) -> Lesson:
        values = clean_updates(updates, LESSON_FIELDS)
        if "type" in values:
            _check_choice("type", values["type"], LESSON_TYPES)
        row = await self.store.update(Query("lessons").eq("id", lesson_id), values, single=True)
        self._invalidate_weeks()
        return Lesson.from_dict(row)

    async def delete_lesson(self, lesson_id: str) -> None:
        await self.store.delete(Query("lessons").eq("id", lesson_id))
        self._invalidate_weeks()

    # ========================================
    # Assignments
    # ========================================

    async def get_assignment(self, assignment_id: str) -> Assignment:
        row = await self.store.select(
            Query("assignments").select(ASSIGNMENT_SELECT).eq("id", assignment_id), single=True
        )
        return Assignment.from_dict(row)

    async def assignments_by_track(self, track_id: str) -> list[Assignment]:
        """Assignments of every week in a track, in week order."""
        rows = await self.store.select(
            Query("assignments")
            .select("*, week:weeks!inner(*)")
            .eq("week.track_id", track_id)
        )
        assignments = [Assignment.from_dict(row) for row in rows]
        return sorted(assignments, key=lambda a: a.week.order_index if a.week else 0)

    async def create_assignment(
        self,
        week_id: str,
        title: str,
        requirements: Any = None,
        submission_guidelines: str | None = None,
        deadline: str | None = None,
        video_guide: str | None = None,
        learning_materials: list[Any] | None = None,
    ) -> Assignment:
        require(week_id=week_id, title=title)
        row = await self.store.insert(
            "assignments",
            {
                "week_id": week_id,
                "title": title.strip(),
                "requirements": requirements,
                "submission_guidelines": submission_guidelines,
                "deadline": deadline,
                "video_guide": video_guide,
                "learning_materials": learning_materials or [],
            },
            returning="*, week:weeks(*)",
            single=True,
        )
        self._invalidate_weeks()
        return Assignment.from_dict(row)

    async def update_assignment(self, assignment_id: str, **updates: Any) -> Assignment:
        values = clean_updates(updates, ASSIGNMENT_FIELDS)
        row = await self.store.update(
            Query("assignments").select("*, week:weeks(*)").eq("id", assignment_id),
            values,
            single=True,
        )
        self._invalidate_weeks()
        return Assignment.from_dict(row)

    async def delete_assignment(self, assignment_id: str) -> None:
        await self.store.delete(Query("assignments").eq("id", assignment_id))
        self._invalidate_weeks()


def _check_choice(name: str, value: str, choices: tuple[str, ...]) -> None:
    if value not in choices:
        raise ValidationError(f"Invalid {name} '{value}' (expected one of: {', '.join(choices)})")
