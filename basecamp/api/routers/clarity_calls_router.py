"""Clarity-call requests router."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from basecamp.api.dependencies import get_backend
from basecamp.backend import Backend

router = APIRouter()


class ClarityCallRequestBody(BaseModel):
    student_id: str
    topic: str
    description: str = ""
    week_id: str | None = None
    preferred_date: str | None = None
    preferred_time: str | None = None


class ClarityCallUpdate(BaseModel):
    status: str | None = None
    scheduled_date: str | None = None
    meeting_link: str | None = None
    mentor_notes: str | None = None
    feedback: str | None = None


@router.get("", summary="All clarity-call requests")
async def list_requests(backend: Backend = Depends(get_backend)):
    return await backend.clarity_calls.list_requests()


@router.get("/student/{student_id}", summary="Requests of one student")
async def requests_for_student(student_id: str, backend: Backend = Depends(get_backend)):
    return await backend.clarity_calls.requests_for_student(student_id)


@router.post("", status_code=201, summary="Request a clarity call")
async def create_request(body: ClarityCallRequestBody, backend: Backend = Depends(get_backend)):
    return await backend.clarity_calls.create_request(**body.model_dump())


@router.patch("/{request_id}", summary="Schedule, complete or reject a request")
async def update_request(
    request_id: str, body: ClarityCallUpdate, backend: Backend = Depends(get_backend)
):
    return await backend.clarity_calls.update_request(request_id, **body.model_dump())
