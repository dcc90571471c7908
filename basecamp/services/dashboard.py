"""
Dashboard aggregates for admins and students.

Each admin figure comes from its own store read; a failed read zeroes
that figure instead of failing the whole dashboard. A dashboard with a
zeroed figure is served but not cached.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from basecamp.cache import DataCache, keys
from basecamp.errors import ValidationError
from basecamp.models import SubmissionStatus, WeekProgress
from basecamp.services.base import StoreService
from basecamp.services.curriculum import CurriculumService
from basecamp.services.enrollments import EnrollmentService
from basecamp.store import Query, StoreClient, group_count

ANALYTICS_RANGES = {"7d": 7, "30d": 30, "90d": 90}
RECENT_ACTIONS_LIMIT = 10


def percent(part: int, whole: int) -> int:
    """Whole-number percentage, rounding halves up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return int(part * 100 / whole + 0.5)


# =============================================================================
# Result types
# =============================================================================


@dataclass
class TrackCount:
    track: str
    count: int


@dataclass
class TrackMetric:
    track: str
    completion: float
    tasks: str  # "approved/total"


@dataclass
class AdminDashboard:
    total_students: int = 0
    students_by_track: list[TrackCount] = field(default_factory=list)
    pending_submissions: int = 0
    approved_certificates: int = 0
    completion_rate: int = 0
    track_metrics: list[TrackMetric] = field(default_factory=list)


@dataclass
class EngagementMetrics:
    total_submissions: int = 0
    recent_submissions: int = 0
    approval_rate: int = 0
    avg_submissions_per_day: int = 0


@dataclass
class AdminAnalytics:
    date_range: str
    engagement: EngagementMetrics
    recent_actions: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class WeekStatus:
    week: int
    title: str
    status: str  # "Locked", "Approved", "Pending Review", "Pending Submission"
    submitted: bool
    locked: bool


@dataclass
class StudentSummary:
    name: str
    track: str
    cohort: str
    progress: float
    week_count: int
    completed_weeks: int
    approved: int
    pending: int
    needs_correction: int


@dataclass
class StudentDashboard:
    student: StudentSummary
    weeks: list[WeekStatus]


def week_statuses(weeks: list[Any], progress: list[WeekProgress]) -> list[WeekStatus]:
    """
    Lock state per week: a week unlocks once the week before it is approved.

    The first week is always open.
    """
    by_week = {p.week_id: p for p in progress}
    statuses = []
    for index, week in enumerate(weeks):
        current = by_week.get(week.id)
        previous = by_week.get(weeks[index - 1].id) if index > 0 else None
        locked = index > 0 and not (previous and previous.status == "approved")

        if locked:
            status = "Locked"
        elif current and current.status == "approved":
            status = "Approved"
        elif current and current.status == "pending":
            status = "Pending Review"
        else:
            status = "Pending Submission"

        statuses.append(
            WeekStatus(
                week=week.week_number,
                title=week.title,
                status=status,
                submitted=bool(current and current.submitted_at),
                locked=locked,
            )
        )
    return statuses


class DashboardService(StoreService):
    """Builds the admin dashboard, admin analytics and student dashboards."""

    def __init__(
        self,
        store: StoreClient,
        cache: DataCache,
        curriculum: CurriculumService,
        enrollments: EnrollmentService,
    ) -> None:
        super().__init__(store, cache)
        self.curriculum = curriculum
        self.enrollments = enrollments

    # ========================================
    # Admin
    # ========================================

    async def admin_dashboard(self) -> AdminDashboard:
        return await self._cache_complete(
            keys.ADMIN_DASHBOARD, self._build_admin_dashboard, keys.TTL_SHORT
        )

    async def _build_admin_dashboard(self, degraded: list[str]) -> AdminDashboard:
        total, by_track, pending, certificates, statuses, metrics = await asyncio.gather(
            self._safe(
                self.store.count(Query("student_enrollments")), 0, "Student count", degraded
            ),
            self._safe(
                self.store.select(Query("student_enrollments").select("track:tracks(name)")),
                [],
                "Students by track",
                degraded,
            ),
            self._safe(
                self.store.count(
                    Query("task_submissions").eq("status", SubmissionStatus.PENDING.value)
                ),
                0,
                "Pending submissions",
                degraded,
            ),
            self._safe(
                self.store.count(Query("certificates").eq("is_approved", True)),
                0,
                "Approved certificates",
                degraded,
            ),
            self._safe(
                self.store.select(Query("task_submissions").select("status")),
                [],
                "Submission statuses",
                degraded,
            ),
            self._safe(
                self.store.select(Query("admin_dashboard_view")), [], "Track metrics", degraded
            ),
        )

        track_names = [{"track": (row.get("track") or {}).get("name")} for row in by_track]
        approved = sum(1 for row in statuses if row.get("status") == SubmissionStatus.APPROVED.value)

        return AdminDashboard(
            total_students=total,
            students_by_track=[
                TrackCount(track=group["value"], count=group["count"])
                for group in group_count(track_names, "track")
            ],
            pending_submissions=pending,
            approved_certificates=certificates,
            completion_rate=percent(approved, len(statuses)),
            track_metrics=[
                TrackMetric(
                    track=row.get("track_name") or "",
                    completion=row.get("approval_rate") or 0,
                    tasks=f"{row.get('approved_submissions') or 0}/{row.get('total_assignments') or 0}",
                )
                for row in metrics
            ],
        )

    async def admin_analytics(
        self,
        date_range: str = "30d",
        now: datetime | None = None,
    ) -> AdminAnalytics:
        """
        Submission activity over the last 7, 30 or 90 days.

        Raises:
            ValidationError: date_range is not 7d, 30d or 90d
        """
        if date_range not in ANALYTICS_RANGES:
            raise ValidationError(
                f"Invalid date range '{date_range}' (expected one of: {', '.join(ANALYTICS_RANGES)})"
            )
        days = ANALYTICS_RANGES[date_range]
        start = (now or datetime.now(timezone.utc)) - timedelta(days=days)

        recent, total, actions = await asyncio.gather(
            self._safe(
                self.store.select(
                    Query("task_submissions").select("id, status").gte("submitted_at", start)
                ),
                [],
                "Recent submissions",
            ),
            self._safe(self.store.count(Query("task_submissions")), 0, "Submission count"),
            self._safe(
                self.store.select(Query("recent_admin_actions").limit(RECENT_ACTIONS_LIMIT)),
                [],
                "Recent admin actions",
            ),
        )

        approved = sum(1 for row in recent if row.get("status") == SubmissionStatus.APPROVED.value)
        return AdminAnalytics(
            date_range=date_range,
            engagement=EngagementMetrics(
                total_submissions=total,
                recent_submissions=len(recent),
                approval_rate=percent(approved, len(recent)),
                avg_submissions_per_day=int(len(recent) / days + 0.5),
            ),
            recent_actions=actions,
        )

    # ========================================
    # Student
    # ========================================

    async def week_progress(
        self, student_id: str, degraded: list[str] | None = None
    ) -> list[WeekProgress]:
        async def fetch() -> list[WeekProgress]:
            rows = await self.store.select(Query("week_progress").eq("student_id", student_id))
            return [WeekProgress.from_dict(row) for row in rows]

        return await self._cached_read(
            keys.week_progress(student_id), fetch, keys.TTL_SHORT, degraded=degraded
        )

    async def student_dashboard(self, user_id: str) -> StudentDashboard | None:
        """Progress overview for one student, or None when not enrolled."""

        async def build(degraded: list[str]) -> StudentDashboard | None:
            enrollment = await self.enrollments.get_enrollment(user_id, degraded)
            if enrollment is None:
                return None

            progress, weeks, needs_correction = await asyncio.gather(
                self.week_progress(user_id, degraded),
                self.curriculum.weeks_by_track(enrollment.track_id, degraded),
                self._safe(
                    self.store.count(
                        Query("task_submissions")
                        .eq("student_id", user_id)
                        .eq("status", SubmissionStatus.NEEDS_CHANGES.value)
                    ),
                    0,
                    "Submissions needing changes",
                    degraded,
                ),
            )
            approved = sum(1 for p in progress if p.status == "approved")
            pending = sum(1 for p in progress if p.status == "pending")

            return StudentDashboard(
                student=StudentSummary(
                    name=enrollment.user.full_name if enrollment.user else "",
                    track=enrollment.track.name if enrollment.track else "",
                    cohort=enrollment.cohort.name if enrollment.cohort else "",
                    progress=enrollment.progress_percentage,
                    week_count=len(weeks),
                    completed_weeks=approved,
                    approved=approved,
                    pending=pending,
                    needs_correction=needs_correction,
                ),
                weeks=week_statuses(weeks, progress),
            )

        return await self._cache_complete(keys.student_dashboard(user_id), build, keys.TTL_SHORT)
