"""Clarity-call requests: students ask, mentors schedule."""

from __future__ import annotations

from typing import Any

from loguru import logger

from basecamp.cache import keys
from basecamp.errors import ValidationError
from basecamp.models import ClarityCallRequest, ClarityCallStatus
from basecamp.services.base import StoreService, clean_updates, require, utc_now
from basecamp.store import Query

CLARITY_CALL_SELECT = "*, student:profiles(*), week:weeks(*)"
CLARITY_CALL_FIELDS = frozenset(
    {"status", "scheduled_date", "meeting_link", "mentor_notes", "feedback"}
)


class ClarityCallService(StoreService):

    async def list_requests(self) -> list[ClarityCallRequest]:
        async def fetch() -> list[ClarityCallRequest]:
            rows = await self.store.select(
                Query("clarity_call_requests")
                .select(CLARITY_CALL_SELECT)
                .order("created_at", ascending=False)
            )
            return [ClarityCallRequest.from_dict(row) for row in rows]

        return await self._cached_read(keys.CLARITY_CALLS, fetch, keys.TTL_SHORT)

    async def requests_for_student(self, student_id: str) -> list[ClarityCallRequest]:
        rows = await self.store.select(
            Query("clarity_call_requests")
            .select("*, week:weeks(*)")
            .eq("student_id", student_id)
            .order("created_at", ascending=False)
        )
        return [ClarityCallRequest.from_dict(row) for row in rows]

    async def create_request(
        self,
        student_id: str,
        topic: str,
        description: str = "",
        week_id: str | None = None,
        preferred_date: str | None = None,
        preferred_time: str | None = None,
    ) -> ClarityCallRequest:
        require(student_id=student_id, topic=topic)
        row = await self.store.insert(
            "clarity_call_requests",
            {
                "student_id": student_id,
                "topic": topic.strip(),
                "description": description,
                "week_id": week_id,
                "preferred_date": preferred_date,
                "preferred_time": preferred_time,
                "status": ClarityCallStatus.PENDING.value,
                "created_at": utc_now(),
            },
            returning=CLARITY_CALL_SELECT,
            single=True,
        )
        self.cache.invalidate(keys.CLARITY_CALLS)
        return ClarityCallRequest.from_dict(row)

    async def update_request(self, request_id: str, **updates: Any) -> ClarityCallRequest:
        """
        Schedule, complete or reject a request.

        Raises:
            ValidationError: Unknown field or status
        """
        values = clean_updates(updates, CLARITY_CALL_FIELDS)
        if "status" in values:
            try:
                values["status"] = ClarityCallStatus(values["status"]).value
            except ValueError:
                allowed = ", ".join(s.value for s in ClarityCallStatus)
                raise ValidationError(
                    f"Invalid status '{values['status']}' (expected one of: {allowed})"
                ) from None
        row = await self.store.update(
            Query("clarity_call_requests").select(CLARITY_CALL_SELECT).eq("id", request_id),
            values,
            single=True,
        )
        self.cache.invalidate(keys.CLARITY_CALLS)
        logger.info("Clarity call {} updated: {}", request_id, sorted(values))
        return ClarityCallRequest.from_dict(row)
