"""
Whitelist router.

Endpoints for the paid-learner whitelist: list, check, add, CSV import/export.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from basecamp.api.dependencies import csv_response, get_backend
from basecamp.backend import Backend
from basecamp.export import whitelist_csv

router = APIRouter()


class WhitelistRequest(BaseModel):
    email: str
    track_id: str
    cohort_id: str


class WhitelistBulkRequest(BaseModel):
    entries: list[WhitelistRequest]


@router.get("", summary="List whitelist entries")
async def list_entries(backend: Backend = Depends(get_backend)):
    return await backend.whitelist.list_entries()


@router.get("/check", summary="Is this (email, track, cohort) whitelisted?")
async def check(
    email: str, track_id: str, cohort_id: str, backend: Backend = Depends(get_backend)
) -> dict[str, bool]:
    return {"whitelisted": await backend.whitelist.is_whitelisted(email, track_id, cohort_id)}


@router.post("", status_code=201, summary="Whitelist one email")
async def add_entry(body: WhitelistRequest, backend: Backend = Depends(get_backend)):
    return await backend.whitelist.add_entry(body.email, body.track_id, body.cohort_id)


@router.post("/bulk", status_code=201, summary="Whitelist many emails")
async def bulk_add(body: WhitelistBulkRequest, backend: Backend = Depends(get_backend)):
    return await backend.whitelist.bulk_add(
        [(e.email, e.track_id, e.cohort_id) for e in body.entries]
    )


@router.post("/import", status_code=201, summary="Import 'email,track,cohort' CSV text")
async def import_csv(request: Request, backend: Backend = Depends(get_backend)):
    """Request body is the raw CSV; the first line is a header."""
    text = (await request.body()).decode("utf-8")
    result = await backend.whitelist.import_csv(text)
    return {"added": result.added, "skipped_lines": result.skipped}


@router.get("/export", summary="Download the whitelist as CSV")
async def export(backend: Backend = Depends(get_backend)):
    return csv_response(whitelist_csv(await backend.whitelist.list_entries()))


@router.delete("/{entry_id}", status_code=204, summary="Remove a whitelist entry")
async def remove_entry(entry_id: str, backend: Backend = Depends(get_backend)) -> None:
    await backend.whitelist.remove_entry(entry_id)
