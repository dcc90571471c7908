"""
Accounts router.

Self-registration behind the whitelist gate, profiles and admin settings.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from basecamp.api.dependencies import get_backend
from basecamp.backend import Backend

router = APIRouter()


class SignUpRequest(BaseModel):
    email: str
    password: str
    full_name: str
    track_id: str
    cohort_id: str


class ProfileUpdate(BaseModel):
    full_name: str | None = None
    bio: str | None = None
    github_url: str | None = None
    linkedin_url: str | None = None
    profile_picture_url: str | None = None


class SettingsUpdate(BaseModel):
    max_students: int | None = None
    tasks_per_track: int | None = None
    submission_deadline_days: int | None = None
    certificate_approval_required: bool | None = None


@router.post("/signup", status_code=201, summary="Register a whitelisted learner")
async def sign_up(body: SignUpRequest, backend: Backend = Depends(get_backend)):
    """
    Whitelist check, then auth sign-up, then enrollment.

    **Errors:**
    - 403: no active whitelist entry for (email, track, cohort)
    """
    user, enrollment = await backend.accounts.sign_up(
        body.email, body.password, body.full_name, body.track_id, body.cohort_id
    )
    return {"user": user, "enrollment": enrollment}


@router.get("/profiles/{user_id}", summary="Get a profile")
async def get_profile(user_id: str, backend: Backend = Depends(get_backend)):
    profile = await backend.profiles.get_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"Profile {user_id} not found")
    return profile


@router.patch("/profiles/{user_id}", summary="Update a profile")
async def update_profile(
    user_id: str, body: ProfileUpdate, backend: Backend = Depends(get_backend)
):
    return await backend.profiles.update_profile(user_id, **body.model_dump())


@router.get("/settings", summary="Admin settings for a cohort (defaults when unset)")
async def get_admin_settings(cohort_id: str | None = None, backend: Backend = Depends(get_backend)):
    return await backend.profiles.get_admin_settings(cohort_id)


@router.put("/settings/{cohort_id}", summary="Upsert admin settings for a cohort")
async def update_admin_settings(
    cohort_id: str, body: SettingsUpdate, backend: Backend = Depends(get_backend)
):
    return await backend.profiles.update_admin_settings(cohort_id, **body.model_dump())
