"""
Curriculum router.

Endpoints for tracks, cohorts, weeks, lessons and assignments.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from basecamp.api.dependencies import get_backend
from basecamp.backend import Backend

router = APIRouter()


# ========================================
# Request Models
# ========================================


class TrackRequest(BaseModel):
    name: str
    description: str = ""


class TrackUpdate(BaseModel):
    name: str | None = None
    description: str | None = None


class CohortRequest(BaseModel):
    name: str
    start_date: str
    end_date: str
    status: str | None = None


class CohortUpdate(BaseModel):
    name: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    status: str | None = None


class WeekRequest(BaseModel):
    track_id: str
    week_number: int
    title: str
    description: str = ""
    order_index: int | None = None


class WeekUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    week_number: int | None = None
    order_index: int | None = None


class LessonRequest(BaseModel):
    week_id: str
    title: str
    type: str = "text"
    content: str | None = None
    video_url: str | None = None
    duration: str | None = None
    order_index: int = 0


class LessonUpdate(BaseModel):
    title: str | None = None
    type: str | None = None
    content: str | None = None
    video_url: str | None = None
    duration: str | None = None
    order_index: int | None = None


class AssignmentRequest(BaseModel):
    week_id: str
    title: str
    requirements: Any = None
    submission_guidelines: str | None = None
    deadline: str | None = None
    video_guide: str | None = None
    learning_materials: list[Any] | None = None


class AssignmentUpdate(BaseModel):
    title: str | None = None
    requirements: Any = None
    submission_guidelines: str | None = None
    deadline: str | None = None
    video_guide: str | None = None
    learning_materials: list[Any] | None = None


# ========================================
# Tracks & Cohorts
# ========================================


@router.get("/tracks", summary="List tracks")
async def list_tracks(backend: Backend = Depends(get_backend)):
    return await backend.curriculum.list_tracks()


@router.post("/tracks", status_code=201, summary="Create a track")
async def create_track(body: TrackRequest, backend: Backend = Depends(get_backend)):
    return await backend.curriculum.create_track(body.name, body.description)


@router.patch("/tracks/{track_id}", summary="Update a track")
async def update_track(
    track_id: str, body: TrackUpdate, backend: Backend = Depends(get_backend)
):
    return await backend.curriculum.update_track(track_id, **body.model_dump())


@router.delete("/tracks/{track_id}", status_code=204, summary="Delete a track")
async def delete_track(track_id: str, backend: Backend = Depends(get_backend)) -> None:
    await backend.curriculum.delete_track(track_id)


@router.get("/tracks/{track_id}/weeks", summary="Weeks of a track with lessons and assignments")
async def weeks_by_track(track_id: str, backend: Backend = Depends(get_backend)):
    return await backend.curriculum.weeks_by_track(track_id)


@router.get("/tracks/{track_id}/assignments", summary="Assignments of a track")
async def assignments_by_track(
    track_id: str, backend: Backend = Depends(get_backend)
):
    return await backend.curriculum.assignments_by_track(track_id)


@router.get("/cohorts", summary="List cohorts")
async def list_cohorts(backend: Backend = Depends(get_backend)):
    return await backend.curriculum.list_cohorts()


@router.post("/cohorts", status_code=201, summary="Create a cohort")
async def create_cohort(body: CohortRequest, backend: Backend = Depends(get_backend)):
    return await backend.curriculum.create_cohort(
        body.name, body.start_date, body.end_date, body.status
    )


@router.patch("/cohorts/{cohort_id}", summary="Update a cohort")
async def update_cohort(
    cohort_id: str, body: CohortUpdate, backend: Backend = Depends(get_backend)
):
    return await backend.curriculum.update_cohort(cohort_id, **body.model_dump())


@router.delete("/cohorts/{cohort_id}", status_code=204, summary="Delete a cohort")
async def delete_cohort(cohort_id: str, backend: Backend = Depends(get_backend)) -> None:
    await backend.curriculum.delete_cohort(cohort_id)


# ========================================
# Weeks, Lessons, Assignments
# ========================================


@router.get("/weeks", summary="All weeks of every track")
async def all_weeks(backend: Backend = Depends(get_backend)):
    return await backend.curriculum.all_weeks()


@router.get("/weeks/{week_id}", summary="One week")
async def get_week(week_id: str, backend: Backend = Depends(get_backend)):
    return await backend.curriculum.get_week(week_id)


@router.post("/weeks", status_code=201, summary="Create a week")
async def create_week(body: WeekRequest, backend: Backend = Depends(get_backend)):
    return await backend.curriculum.create_week(**body.model_dump())


@router.patch("/weeks/{week_id}", summary="Update a week")
async def update_week(
    week_id: str, body: WeekUpdate, backend: Backend = Depends(get_backend)
):
    return await backend.curriculum.update_week(week_id, **body.model_dump())


@router.delete("/weeks/{week_id}", status_code=204, summary="Delete a week")
async def delete_week(week_id: str, backend: Backend = Depends(get_backend)) -> None:
    await backend.curriculum.delete_week(week_id)


@router.get("/lessons/{lesson_id}", summary="One lesson")
async def get_lesson(lesson_id: str, backend: Backend = Depends(get_backend)):
    return await backend.curriculum.get_lesson(lesson_id)


@router.post("/lessons", status_code=201, summary="Create a lesson")
async def create_lesson(body: LessonRequest, backend: Backend = Depends(get_backend)):
    return await backend.curriculum.create_lesson(**body.model_dump())


@router.patch("/lessons/{lesson_id}", summary="Update a lesson")
async def update_lesson(
    lesson_id: str, body: LessonUpdate, backend: Backend = Depends(get_backend)
):
    return await backend.curriculum.update_lesson(lesson_id, **body.model_dump())


@router.delete("/lessons/{lesson_id}", status_code=204, summary="Delete a lesson")
async def delete_lesson(lesson_id: str, backend: Backend = Depends(get_backend)) -> None:
    await backend.curriculum.delete_lesson(lesson_id)


@router.get("/assignments/{assignment_id}", summary="One assignment with its week and track")
async def get_assignment(assignment_id: str, backend: Backend = Depends(get_backend)):
    return await backend.curriculum.get_assignment(assignment_id)


@router.post("/assignments", status_code=201, summary="Create an assignment")
async def create_assignment(
    body: AssignmentRequest, backend: Backend = Depends(get_backend)
):
    return await backend.curriculum.create_assignment(**body.model_dump())


@router.patch("/assignments/{assignment_id}", summary="Update an assignment")
async def update_assignment(
    assignment_id: str, body: AssignmentUpdate, backend: Backend = Depends(get_backend)
):
    return await backend.curriculum.update_assignment(assignment_id, **body.model_dump())


@router.delete("/assignments/{assignment_id}", status_code=204, summary="Delete an assignment")
async def delete_assignment(assignment_id: str, backend: Backend = Depends(get_backend)) -> None:
    await backend.curriculum.delete_assignment(assignment_id)
