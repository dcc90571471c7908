"""Curriculum rows: tracks, cohorts, weeks, lessons, assignments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Track:
    """A named curriculum path (Frontend, Backend, ...)."""

    id: str
    name: str
    description: str = ""
    created_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Track:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description") or "",
            created_at=data.get("created_at"),
        )


@dataclass
class Cohort:
    """A student intake group with start and end dates."""

    id: str
    name: str
    start_date: str | None = None
    end_date: str | None = None
    status: str = "Upcoming"  # "Active", "Upcoming", "Completed"
    created_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Cohort:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            status=data.get("status") or "Upcoming",
            created_at=data.get("created_at"),
        )


@dataclass
class Lesson:
    """Video or text lesson inside a week."""

    id: str
    week_id: str
    title: str
    type: str = "text"  # "video" or "text"
    content: str | None = None
    video_url: str | None = None
    duration: str | None = None
    order_index: int = 0
    created_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Lesson:
        return cls(
            id=data["id"],
            week_id=data.get("week_id", ""),
            title=data.get("title", ""),
            type=data.get("type") or "text",
            content=data.get("content"),
            video_url=data.get("video_url"),
            duration=data.get("duration"),
            order_index=data.get("order_index") or 0,
            created_at=data.get("created_at"),
        )


@dataclass
class Assignment:
    """Task students submit work for."""

    id: str
    week_id: str
    title: str
    requirements: Any = None
    submission_guidelines: str | None = None
    deadline: str | None = None
    video_guide: str | None = None
    learning_materials: list[Any] = field(default_factory=list)
    created_at: str | None = None
    week: Week | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Assignment:
        week = data.get("week")
        return cls(
            id=data["id"],
            week_id=data.get("week_id", ""),
            title=data.get("title", ""),
            requirements=data.get("requirements"),
            submission_guidelines=data.get("submission_guidelines"),
            deadline=data.get("deadline"),
            video_guide=data.get("video_guide"),
            learning_materials=data.get("learning_materials") or [],
            created_at=data.get("created_at"),
            week=Week.from_dict(week) if week else None,
        )


@dataclass
class Week:
    """One week of a track, with its lessons and assignments."""

    id: str
    track_id: str
    week_number: int
    title: str
    description: str = ""
    order_index: int = 0
    created_at: str | None = None
    lessons: list[Lesson] = field(default_factory=list)
    assignments: list[Assignment] = field(default_factory=list)
    track: Track | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Week:
        track = data.get("track")
        return cls(
            id=data["id"],
            track_id=data.get("track_id", ""),
            week_number=data.get("week_number") or 0,
            title=data.get("title", ""),
            description=data.get("description") or "",
            order_index=data.get("order_index") or 0,
            created_at=data.get("created_at"),
            lessons=sorted(
                (Lesson.from_dict(row) for row in data.get("lessons") or []),
                key=lambda lesson: lesson.order_index,
            ),
            assignments=[Assignment.from_dict(row) for row in data.get("assignments") or []],
            track=Track.from_dict(track) if track else None,
        )
