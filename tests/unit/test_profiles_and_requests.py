"""
Unit tests for profiles, admin settings, clarity calls and certificates.
"""

import pytest

from basecamp.cache import keys
from basecamp.errors import ValidationError
from basecamp.models import ClarityCallStatus


class TestProfiles:
    """Profile reads and admin settings."""

    @pytest.mark.asyncio
    async def test_get_and_update_profile(self, backend):
        assert (await backend.profiles.get_profile("s1")).full_name == "Student 1"
        assert await backend.profiles.get_profile("nobody") is None

        updated = await backend.profiles.update_profile("s1", bio="Learning Python")

        assert updated.bio == "Learning Python"

    @pytest.mark.asyncio
    async def test_settings_default_until_stored(self, backend):
        defaults = await backend.profiles.get_admin_settings("c-2026")

        assert defaults.max_students == 50
        assert defaults.tasks_per_track == 20

    @pytest.mark.asyncio
    async def test_settings_upsert(self, backend, store):
        await backend.profiles.update_admin_settings("c-2026", max_students=30)
        await backend.profiles.update_admin_settings("c-2026", tasks_per_track=12)

        stored = await backend.profiles.get_admin_settings("c-2026")
        assert (stored.max_students, stored.tasks_per_track) == (30, 12)
        assert len(store.tables["admin_settings"]) == 1


class TestClarityCalls:
    """Request lifecycle."""

    @pytest.mark.asyncio
    async def test_request_then_schedule(self, backend):
        created = await backend.clarity_calls.create_request("s1", "  Flexbox  ", week_id="w1")
        assert created.status is ClarityCallStatus.PENDING
        assert created.topic == "Flexbox"

        scheduled = await backend.clarity_calls.update_request(
            created.id, status="scheduled", meeting_link="https://meet.example.com/abc"
        )

        assert scheduled.status is ClarityCallStatus.SCHEDULED
        assert [r.id for r in await backend.clarity_calls.requests_for_student("s1")] == [created.id]

    @pytest.mark.asyncio
    async def test_invalid_status(self, backend, store):
        store.tables["clarity_call_requests"] = [{"id": "r1", "student_id": "s1", "topic": "CSS"}]

        with pytest.raises(ValidationError, match="Invalid status 'lost'"):
            await backend.clarity_calls.update_request("r1", status="lost")


class TestCertificates:
    """Approval."""

    @pytest.mark.asyncio
    async def test_approve_evicts_dashboard(self, backend, store):
        store.tables["certificates"] = [
            {"id": "cert1", "student_id": "s1", "track_id": "t-frontend", "cohort_id": "c-2026"},
        ]
        backend.cache.set(keys.ADMIN_DASHBOARD, "stale")

        certificate = await backend.certificates.approve("cert1", approved_by="admin-1")

        assert certificate.is_approved
        assert certificate.approved_by == "admin-1"
        assert keys.ADMIN_DASHBOARD not in backend.cache
        assert (await backend.certificates.certificate_for_student("s1")).id == "cert1"
