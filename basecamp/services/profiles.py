"""Profiles and per-cohort admin settings."""

from __future__ import annotations

from typing import Any

from basecamp.models import AdminSettings, Profile
from basecamp.services.base import StoreService, clean_updates
from basecamp.store import Query

PROFILE_FIELDS = frozenset(
    {"full_name", "bio", "github_url", "linkedin_url", "profile_picture_url"}
)
SETTINGS_FIELDS = frozenset(
    {"max_students", "tasks_per_track", "submission_deadline_days", "certificate_approval_required"}
)


class ProfileService(StoreService):

    async def get_profile(self, user_id: str) -> Profile | None:
        row = await self.store.select_one(Query("profiles").eq("id", user_id))
        return Profile.from_dict(row) if row else None

    async def update_profile(self, user_id: str, **updates: Any) -> Profile:
        values = clean_updates(updates, PROFILE_FIELDS)
        row = await self.store.update(Query("profiles").eq("id", user_id), values, single=True)
        self.cache.invalidate_pattern(user_id)
        return Profile.from_dict(row)

    async def get_admin_settings(self, cohort_id: str | None = None) -> AdminSettings:
        """Settings for a cohort, or the defaults when none are stored."""
        if not cohort_id:
            return AdminSettings(cohort_id=None)
        row = await self.store.select_one(Query("admin_settings").eq("cohort_id", cohort_id))
        if row is None:
            return AdminSettings(cohort_id=cohort_id)
        return AdminSettings.from_dict(row)

    async def update_admin_settings(self, cohort_id: str, **updates: Any) -> AdminSettings:
        values = clean_updates(updates, SETTINGS_FIELDS)
        row = await self.store.upsert(
            "admin_settings",
            {"cohort_id": cohort_id, **values},
            on_conflict="cohort_id",
            single=True,
        )
        return AdminSettings.from_dict(row)
