"""Admin dashboard router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from basecamp.api.dependencies import get_backend
from basecamp.backend import Backend

router = APIRouter()


@router.get("", summary="Headline numbers and per-track metrics")
async def admin_dashboard(backend: Backend = Depends(get_backend)):
    return await backend.dashboard.admin_dashboard()


@router.get("/analytics", summary="Submission activity over 7d, 30d or 90d")
async def admin_analytics(date_range: str = "30d", backend: Backend = Depends(get_backend)):
    return await backend.dashboard.admin_analytics(date_range)
