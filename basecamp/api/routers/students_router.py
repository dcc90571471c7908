"""
Students router.

Endpoints for enrollments, the student roster and certificates.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from basecamp.api.dependencies import get_backend
from basecamp.backend import Backend

router = APIRouter()


class EnrollmentRequest(BaseModel):
    """Admin enrollment: creates the profile, then the enrollment."""

    email: str
    full_name: str
    track_id: str
    cohort_id: str


class EnrollmentUpdate(BaseModel):
    track_id: str | None = None
    cohort_id: str | None = None
    progress_percentage: float | None = None
    tasks_completed: int | None = None
    total_tasks: int | None = None
    status: str | None = None


class CertificateApproval(BaseModel):
    approved_by: str


# ========================================
# Enrollments
# ========================================


@router.get("", summary="Student roster")
async def list_students(backend: Backend = Depends(get_backend)):
    return await backend.enrollments.list_students()


@router.get("/enrollments", summary="All enrollments, newest first")
async def list_enrollments(backend: Backend = Depends(get_backend)):
    return await backend.enrollments.list_enrollments()


@router.post("/enrollments", status_code=201, summary="Enroll a new student")
async def create_enrollment(body: EnrollmentRequest, backend: Backend = Depends(get_backend)):
    return await backend.enrollments.create_enrollment(
        body.email, body.full_name, body.track_id, body.cohort_id
    )


@router.patch("/enrollments/{enrollment_id}", summary="Move or update an enrollment")
async def update_enrollment(
    enrollment_id: str, body: EnrollmentUpdate, backend: Backend = Depends(get_backend)
):
    return await backend.enrollments.update_enrollment(enrollment_id, **body.model_dump())


@router.delete("/enrollments/{enrollment_id}", status_code=204, summary="Delete an enrollment")
async def delete_enrollment(enrollment_id: str, backend: Backend = Depends(get_backend)) -> None:
    await backend.enrollments.delete_enrollment(enrollment_id)


@router.get("/{user_id}/enrollment", summary="Enrollment of one student")
async def get_enrollment(user_id: str, backend: Backend = Depends(get_backend)):
    enrollment = await backend.enrollments.get_enrollment(user_id)
    if enrollment is None:
        raise HTTPException(status_code=404, detail=f"No enrollment for user {user_id}")
    return enrollment


@router.get("/{user_id}/dashboard", summary="Student dashboard with week lock state")
async def student_dashboard(user_id: str, backend: Backend = Depends(get_backend)):
    dashboard = await backend.dashboard.student_dashboard(user_id)
    if dashboard is None:
        raise HTTPException(status_code=404, detail=f"No enrollment for user {user_id}")
    return dashboard


# ========================================
# Certificates
# ========================================


@router.get("/certificates/all", summary="All certificates")
async def list_certificates(backend: Backend = Depends(get_backend)):
    return await backend.certificates.list_certificates()


@router.get("/{user_id}/certificate", summary="Certificate of one student")
async def student_certificate(user_id: str, backend: Backend = Depends(get_backend)):
    certificate = await backend.certificates.certificate_for_student(user_id)
    if certificate is None:
        raise HTTPException(status_code=404, detail=f"No certificate for user {user_id}")
    return certificate


@router.post("/certificates/{certificate_id}/approve", summary="Approve a certificate")
async def approve_certificate(
    certificate_id: str, body: CertificateApproval, backend: Backend = Depends(get_backend)
):
    return await backend.certificates.approve(certificate_id, body.approved_by)


@router.delete("/certificates/{certificate_id}", status_code=204, summary="Delete a certificate")
async def delete_certificate(certificate_id: str, backend: Backend = Depends(get_backend)) -> None:
    await backend.certificates.delete(certificate_id)
