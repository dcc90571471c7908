"""People rows: profiles, enrollments, whitelist entries, admin settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from basecamp.models.curriculum import Cohort, Track


@dataclass
class Profile:
    """User profile owned by the auth provider's user id."""

    id: str
    full_name: str = ""
    email: str | None = None
    role: str = "student"  # "student" or "admin"
    bio: str | None = None
    github_url: str | None = None
    linkedin_url: str | None = None
    profile_picture_url: str | None = None
    created_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Profile:
        return cls(
            id=data["id"],
            full_name=data.get("full_name") or "",
            email=data.get("email"),
            role=data.get("role") or "student",
            bio=data.get("bio"),
            github_url=data.get("github_url"),
            linkedin_url=data.get("linkedin_url"),
            profile_picture_url=data.get("profile_picture_url"),
            created_at=data.get("created_at"),
        )


def _optional(model: Any, data: dict[str, Any] | None) -> Any:
    return model.from_dict(data) if data else None


@dataclass
class Enrollment:
    """A student's membership in one track and cohort."""

    id: str
    user_id: str
    track_id: str
    cohort_id: str
    progress_percentage: float = 0
    tasks_completed: int = 0
    total_tasks: int = 0
    status: str | None = None
    enrolled_at: str | None = None
    user: Profile | None = None
    track: Track | None = None
    cohort: Cohort | None = None

    @property
    def student_id(self) -> str:
        return self.user_id

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Enrollment:
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            track_id=data.get("track_id", ""),
            cohort_id=data.get("cohort_id", ""),
            progress_percentage=data.get("progress_percentage") or 0,
            tasks_completed=data.get("tasks_completed") or 0,
            total_tasks=data.get("total_tasks") or 0,
            status=data.get("status"),
            enrolled_at=data.get("enrolled_at"),
            user=_optional(Profile, data.get("user") or data.get("profile")),
            track=_optional(Track, data.get("track")),
            cohort=_optional(Cohort, data.get("cohort")),
        )


@dataclass
class WhitelistEntry:
    """Pre-approved (email, track, cohort) allowed to self-register."""

    id: str
    email: str
    track_id: str
    cohort_id: str
    status: str = "active"  # "active" or "pending"
    added_date: str | None = None
    track: Track | None = None
    cohort: Cohort | None = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WhitelistEntry:
        return cls(
            id=data["id"],
            email=data.get("email", ""),
            track_id=data.get("track_id", ""),
            cohort_id=data.get("cohort_id", ""),
            status=data.get("status") or "active",
            added_date=data.get("added_date"),
            track=_optional(Track, data.get("track")),
            cohort=_optional(Cohort, data.get("cohort")),
        )


@dataclass
class AdminSettings:
    """Per-cohort program settings."""

    cohort_id: str | None
    max_students: int = 50
    tasks_per_track: int = 20
    submission_deadline_days: int = 7
    certificate_approval_required: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdminSettings:
        defaults = cls(cohort_id=None)
        return cls(
            cohort_id=data.get("cohort_id"),
            max_students=data.get("max_students", defaults.max_students),
            tasks_per_track=data.get("tasks_per_track", defaults.tasks_per_track),
            submission_deadline_days=data.get(
                "submission_deadline_days", defaults.submission_deadline_days
            ),
            certificate_approval_required=data.get(
                "certificate_approval_required", defaults.certificate_approval_required
            ),
        )
