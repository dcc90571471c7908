"""Student activity rows: submissions, progress, certificates, partnerships, clarity calls."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from basecamp.models.curriculum import Assignment, Cohort, Track, Week
from basecamp.models.people import Profile


class SubmissionStatus(str, Enum):
    """pending -> in_review -> approved | needs_changes (resubmission returns to in_review)."""

    PENDING = "pending"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    NEEDS_CHANGES = "needs_changes"


# Statuses a reviewer may set
REVIEW_STATUSES = (
    SubmissionStatus.APPROVED,
    SubmissionStatus.NEEDS_CHANGES,
    SubmissionStatus.IN_REVIEW,
)


class ClarityCallStatus(str, Enum):
    PENDING = "pending"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    REJECTED = "rejected"


def _optional(model: Any, data: dict[str, Any] | None) -> Any:
    return model.from_dict(data) if data else None


@dataclass
class Submission:
    """A student's work for one assignment."""

    id: str
    student_id: str
    assignment_id: str
    status: SubmissionStatus = SubmissionStatus.PENDING
    github_url: str | None = None
    demo_url: str | None = None
    notes: str | None = None
    submitted_at: str | None = None
    reviewed_at: str | None = None
    reviewed_by: str | None = None
    feedback: str | None = None
    grade: str | None = None
    student: Profile | None = None
    assignment: Assignment | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Submission:
        return cls(
            id=data["id"],
            student_id=data.get("student_id", ""),
            assignment_id=data.get("assignment_id", ""),
            status=SubmissionStatus(data.get("status") or "pending"),
            github_url=data.get("github_url"),
            demo_url=data.get("demo_url"),
            notes=data.get("notes"),
            submitted_at=data.get("submitted_at"),
            reviewed_at=data.get("reviewed_at"),
            reviewed_by=data.get("reviewed_by"),
            feedback=data.get("feedback"),
            grade=data.get("grade"),
            student=_optional(Profile, data.get("student")),
            assignment=_optional(Assignment, data.get("assignment")),
        )


@dataclass
class WeekProgress:
    id: str
    student_id: str
    week_id: str
    status: str = "locked"  # "locked", "pending", "approved"
    submitted_at: str | None = None
    approved_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WeekProgress:
        return cls(
            id=data["id"],
            student_id=data.get("student_id", ""),
            week_id=data.get("week_id", ""),
            status=data.get("status") or "locked",
            submitted_at=data.get("submitted_at"),
            approved_at=data.get("approved_at"),
        )


@dataclass
class Certificate:
    id: str
    student_id: str
    track_id: str
    cohort_id: str
    is_approved: bool = False
    completion_date: str | None = None
    certificate_file: str | None = None
    tasks_completed: int = 0
    total_tasks: int = 0
    created_at: str | None = None
    approved_at: str | None = None
    approved_by: str | None = None
    student: Profile | None = None
    track: Track | None = None
    cohort: Cohort | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Certificate:
        return cls(
            id=data["id"],
            student_id=data.get("student_id", ""),
            track_id=data.get("track_id", ""),
            cohort_id=data.get("cohort_id", ""),
            is_approved=bool(data.get("is_approved")),
            completion_date=data.get("completion_date"),
            certificate_file=data.get("certificate_file"),
            tasks_completed=data.get("tasks_completed") or 0,
            total_tasks=data.get("total_tasks") or 0,
            created_at=data.get("created_at"),
            approved_at=data.get("approved_at"),
            approved_by=data.get("approved_by"),
            student=_optional(Profile, data.get("student")),
            track=_optional(Track, data.get("track")),
            cohort=_optional(Cohort, data.get("cohort")),
        )


@dataclass
class Partnership:
    """Unordered pair of students matched for accountability in one track and cohort."""

    id: str
    student1_id: str
    student2_id: str
    track_id: str
    cohort_id: str
    created_at: str | None = None
    student1: Profile | None = None
    student2: Profile | None = None
    track: Track | None = None
    cohort: Cohort | None = None

    @property
    def members(self) -> tuple[str, str]:
        return self.student1_id, self.student2_id

    def includes(self, student_id: str) -> bool:
        return student_id in self.members

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Partnership:
        return cls(
            id=data["id"],
            student1_id=data["student1_id"],
            student2_id=data["student2_id"],
            track_id=data.get("track_id", ""),
            cohort_id=data.get("cohort_id", ""),
            created_at=data.get("created_at"),
            student1=_optional(Profile, data.get("student1")),
            student2=_optional(Profile, data.get("student2")),
            track=_optional(Track, data.get("track")),
            cohort=_optional(Cohort, data.get("cohort")),
        )


@dataclass
class ClarityCallRequest:
    """A student's request for a one-on-one clarity call."""

    id: str
    student_id: str
    topic: str
    status: ClarityCallStatus = ClarityCallStatus.PENDING
    description: str | None = None
    week_id: str | None = None
    preferred_date: str | None = None
    preferred_time: str | None = None
    scheduled_date: str | None = None
    meeting_link: str | None = None
    mentor_notes: str | None = None
    feedback: str | None = None
    created_at: str | None = None
    student: Profile | None = None
    week: Week | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClarityCallRequest:
        return cls(
            id=data["id"],
            student_id=data.get("student_id", ""),
            topic=data.get("topic", ""),
            status=ClarityCallStatus(data.get("status") or "pending"),
            description=data.get("description"),
            week_id=data.get("week_id"),
            preferred_date=data.get("preferred_date"),
            preferred_time=data.get("preferred_time"),
            scheduled_date=data.get("scheduled_date"),
            meeting_link=data.get("meeting_link"),
            mentor_notes=data.get("mentor_notes"),
            feedback=data.get("feedback"),
            created_at=data.get("created_at"),
            student=_optional(Profile, data.get("student")),
            week=_optional(Week, data.get("week")),
        )
