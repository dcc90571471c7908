"""
Accountability partners router.

Endpoints for listing, editing, reassigning and auto-pairing partnerships.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from pydantic import BaseModel

from basecamp.api.dependencies import get_backend
from basecamp.backend import Backend

router = APIRouter()


class PartnershipRequest(BaseModel):
    student1_id: str
    student2_id: str
    track_id: str
    cohort_id: str


class PartnershipUpdate(BaseModel):
    student1_id: str | None = None
    student2_id: str | None = None
    track_id: str | None = None
    cohort_id: str | None = None


class AutoPairRequest(BaseModel):
    track_id: str
    cohort_id: str


class ReassignRequest(BaseModel):
    new_student1_id: str | None = None
    new_student2_id: str | None = None


@router.get("", summary="List partnerships")
async def list_partnerships(backend: Backend = Depends(get_backend)):
    return await backend.partnerships.list_partnerships()


@router.post("", status_code=201, summary="Create a partnership")
async def create_partnership(body: PartnershipRequest, backend: Backend = Depends(get_backend)):
    return await backend.partnerships.create_partnership(**body.model_dump())


@router.post("/auto-pair", status_code=201, summary="Pair unpartnered students of a track/cohort")
async def auto_pair(body: AutoPairRequest, backend: Backend = Depends(get_backend)):
    """
    Run greedy auto-pairing, bounded by PAIRING_TIMEOUT_SECONDS.

    **Errors:**
    - 422: not enough students, or no partnership could be created
    - 504: pairing did not finish in time
    """
    created = await backend.partnerships.auto_pair_with_timeout(
        body.track_id, body.cohort_id, backend.settings.pairing_timeout_seconds
    )
    logger.info("API auto-pair created {} partnerships", len(created))
    return {"created": len(created), "partnerships": created}


@router.get("/student/{student_id}", summary="Partnership of one student")
async def partnership_for_student(student_id: str, backend: Backend = Depends(get_backend)):
    partnership = await backend.partnerships.partnership_for_student(student_id)
    if partnership is None:
        raise HTTPException(status_code=404, detail=f"No partner for student {student_id}")
    return partnership


@router.get("/{partnership_id}/candidates", summary="Students eligible to join this partnership")
async def eligible_replacements(partnership_id: str, backend: Backend = Depends(get_backend)):
    partnership = await backend.partnerships.get_partnership(partnership_id)
    return await backend.partnerships.eligible_replacements(partnership)


@router.post("/{partnership_id}/reassign", summary="Replace one or both members")
async def reassign(
    partnership_id: str, body: ReassignRequest, backend: Backend = Depends(get_backend)
):
    return await backend.partnerships.reassign(
        partnership_id, body.new_student1_id, body.new_student2_id
    )


@router.patch("/{partnership_id}", summary="Update a partnership")
async def update_partnership(
    partnership_id: str, body: PartnershipUpdate, backend: Backend = Depends(get_backend)
):
    return await backend.partnerships.update_partnership(partnership_id, **body.model_dump())


@router.delete("/{partnership_id}", status_code=204, summary="Delete a partnership")
async def delete_partnership(partnership_id: str, backend: Backend = Depends(get_backend)) -> None:
    await backend.partnerships.delete_partnership(partnership_id)
