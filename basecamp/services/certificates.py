"""Completion certificates."""

from __future__ import annotations

from loguru import logger

from basecamp.cache import keys
from basecamp.models import Certificate
from basecamp.services.base import StoreService, require, utc_now
from basecamp.store import Query

CERTIFICATE_SELECT = "*, student:profiles(*), track:tracks(*), cohort:cohorts(*)"


class CertificateService(StoreService):

    async def list_certificates(self) -> list[Certificate]:
        async def fetch() -> list[Certificate]:
            rows = await self.store.select(
                Query("certificates")
                .select(CERTIFICATE_SELECT)
                .order("created_at", ascending=False)
            )
            return [Certificate.from_dict(row) for row in rows]

        return await self._cached_read(keys.CERTIFICATES, fetch, keys.TTL_MEDIUM)

    async def certificate_for_student(self, student_id: str) -> Certificate | None:
        rows = await self.store.select(
            Query("certificates").select(CERTIFICATE_SELECT).eq("student_id", student_id).limit(1)
        )
        return Certificate.from_dict(rows[0]) if rows else None

    async def approve(self, certificate_id: str, approved_by: str) -> Certificate:
        require(approved_by=approved_by)
        row = await self.store.update(
            Query("certificates").select(CERTIFICATE_SELECT).eq("id", certificate_id),
            {"is_approved": True, "approved_at": utc_now(), "approved_by": approved_by},
            single=True,
        )
        self._invalidate()
        logger.info("Certificate {} approved by {}", certificate_id, approved_by)
        return Certificate.from_dict(row)

    async def delete(self, certificate_id: str) -> None:
        await self.store.delete(Query("certificates").eq("id", certificate_id))
        self._invalidate()

    def _invalidate(self) -> None:
        self.cache.invalidate(keys.CERTIFICATES)
        self.cache.invalidate(keys.ADMIN_DASHBOARD)
