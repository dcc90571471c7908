"""
Submissions router.

Endpoints for submitting work, drafts, mentor review and CSV export.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from basecamp.api.dependencies import csv_response, get_backend
from basecamp.backend import Backend
from basecamp.export import submissions_csv, submissions_report_csv

router = APIRouter()


class SubmissionRequest(BaseModel):
    student_id: str
    assignment_id: str
    github_url: str
    demo_url: str | None = None
    notes: str | None = None


class ResubmitRequest(BaseModel):
    github_url: str | None = None
    demo_url: str | None = None
    notes: str | None = None


class DraftRequest(BaseModel):
    student_id: str
    assignment_id: str
    github_url: str | None = None
    demo_url: str | None = None
    notes: str | None = None


class ReviewRequest(BaseModel):
    status: str
    reviewed_by: str
    feedback: str | None = None
    grade: str | None = None


class BulkReviewRequest(BaseModel):
    submission_ids: list[str]
    action: str  # "approve" or "reject"
    reviewed_by: str


@router.get("", summary="List submissions")
async def list_submissions(
    status: str | None = None,
    track_id: str | None = None,
    backend: Backend = Depends(get_backend),
):
    return await backend.submissions.list_submissions(status=status, track_id=track_id)


@router.get("/export", summary="Download submissions as CSV")
async def export(
    report: bool = False,
    status: str | None = None,
    track_id: str | None = None,
    backend: Backend = Depends(get_backend),
):
    """``report=true`` adds grade, review time and feedback columns."""
    submissions = await backend.submissions.list_submissions(status=status, track_id=track_id)
    build = submissions_report_csv if report else submissions_csv
    return csv_response(build(submissions))


@router.get("/student/{student_id}", summary="Submissions of one student")
async def submissions_for_student(student_id: str, backend: Backend = Depends(get_backend)):
    return await backend.submissions.submissions_for_student(student_id)


@router.get(
    "/student/{student_id}/assignment/{assignment_id}",
    summary="A student's submission for one assignment",
)
async def submission_for_assignment(
    student_id: str, assignment_id: str, backend: Backend = Depends(get_backend)
):
    submission = await backend.submissions.submission_for_assignment(student_id, assignment_id)
    if submission is None:
        raise HTTPException(status_code=404, detail="No submission for this assignment")
    return submission


@router.post("", status_code=201, summary="Submit work for review")
async def create_submission(body: SubmissionRequest, backend: Backend = Depends(get_backend)):
    return await backend.submissions.create_submission(**body.model_dump())


@router.post("/drafts", summary="Save a draft")
async def save_draft(body: DraftRequest, backend: Backend = Depends(get_backend)):
    return await backend.submissions.save_draft(**body.model_dump())


@router.post("/bulk-review", summary="Approve or reject many submissions")
async def bulk_review(body: BulkReviewRequest, backend: Backend = Depends(get_backend)):
    result = await backend.submissions.bulk_review(
        body.submission_ids, body.action, body.reviewed_by
    )
    return {"updated": result.updated, "failed": result.failed}


@router.get("/{submission_id}", summary="One submission")
async def get_submission(submission_id: str, backend: Backend = Depends(get_backend)):
    return await backend.submissions.get_submission(submission_id)


@router.post("/{submission_id}/resubmit", summary="Update links and return to review")
async def resubmit(
    submission_id: str, body: ResubmitRequest, backend: Backend = Depends(get_backend)
):
    return await backend.submissions.resubmit(submission_id, **body.model_dump())


@router.post("/{submission_id}/review", summary="Record a review decision")
async def review(
    submission_id: str, body: ReviewRequest, backend: Backend = Depends(get_backend)
):
    return await backend.submissions.review(
        submission_id, body.status, body.reviewed_by, body.feedback, body.grade
    )
