"""
Paid-learner whitelist: the gate in front of self-registration.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field

from loguru import logger

from basecamp.cache import DataCache, keys
from basecamp.models import WhitelistEntry
from basecamp.services.base import StoreService, require, utc_now
from basecamp.services.curriculum import CurriculumService
from basecamp.store import Query, StoreClient

WHITELIST_SELECT = "*, track:tracks(*), cohort:cohorts(*)"


@dataclass
class ImportResult:
    """Rows added by a CSV import and the lines that could not be resolved."""

    added: list[WhitelistEntry] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class WhitelistService(StoreService):
    """Reads and edits the paid-learner whitelist."""

    def __init__(
        self,
        store: StoreClient,
        cache: DataCache,
        curriculum: CurriculumService,
    ) -> None:
        super().__init__(store, cache)
        self.curriculum = curriculum

    async def list_entries(self) -> list[WhitelistEntry]:
        async def fetch() -> list[WhitelistEntry]:
            rows = await self.store.select(
                Query("paid_learner_whitelist")
                .select(WHITELIST_SELECT)
                .order("added_date", ascending=False)
            )
            return [WhitelistEntry.from_dict(row) for row in rows]

        return await self._cached_read(keys.WHITELIST, fetch, keys.TTL_MEDIUM)

    async def is_whitelisted(self, email: str, track_id: str, cohort_id: str) -> bool:
        """True only for an exact, active (email, track, cohort) row."""
        rows = await self.store.select(
            Query("paid_learner_whitelist")
            .select("id")
            .eq("email", normalize_email(email))
            .eq("track_id", track_id)
            .eq("cohort_id", cohort_id)
            .eq("status", "active")
            .limit(1)
        )
        return bool(rows)

    async def add_entry(self, email: str, track_id: str, cohort_id: str) -> WhitelistEntry:
        require(email=email, track_id=track_id, cohort_id=cohort_id)
        row = await self.store.insert(
            "paid_learner_whitelist",
            self._row(email, track_id, cohort_id),
            returning=WHITELIST_SELECT,
            single=True,
        )
        self.cache.invalidate(keys.WHITELIST)
        logger.info("Whitelisted {}", row.get("email"))
        return WhitelistEntry.from_dict(row)

    async def bulk_add(self, entries: list[tuple[str, str, str]]) -> list[WhitelistEntry]:
        """Insert many (email, track_id, cohort_id) rows in one request."""
        if not entries:
            return []
        rows = await self.store.insert(
            "paid_learner_whitelist",
            [self._row(email, track_id, cohort_id) for email, track_id, cohort_id in entries],
            returning=WHITELIST_SELECT,
        )
        self.cache.invalidate(keys.WHITELIST)
        logger.info("Whitelisted {} emails", len(rows or []))
        return [WhitelistEntry.from_dict(row) for row in rows or []]

    async def import_csv(self, text: str) -> ImportResult:
        """
        Add entries from ``email,track name,cohort name`` lines.

        The first line is a header. Rows whose track or cohort name does not
        match an existing one are skipped; their line numbers are reported.
        """
        tracks = {t.name: t.id for t in await self.curriculum.list_tracks()}
        cohorts = {c.name: c.id for c in await self.curriculum.list_cohorts()}

        result = ImportResult()
        resolved: list[tuple[str, str, str]] = []
        reader = csv.reader(io.StringIO(text.strip()))
        next(reader, None)
        for line_number, fields in enumerate(reader, start=2):
            email, track_name, cohort_name = ([f.strip() for f in fields] + ["", "", ""])[:3]
            track_id = tracks.get(track_name)
            cohort_id = cohorts.get(cohort_name)
            if not email or not track_id or not cohort_id:
                logger.warning("Skipping whitelist line {}: {}", line_number, ",".join(fields))
                result.skipped.append(line_number)
                continue
            resolved.append((email, track_id, cohort_id))

        result.added = await self.bulk_add(resolved)
        return result

    async def remove_entry(self, entry_id: str) -> None:
        await self.store.delete(Query("paid_learner_whitelist").eq("id", entry_id))
        self.cache.invalidate(keys.WHITELIST)

    @staticmethod
    def _row(email: str, track_id: str, cohort_id: str) -> dict[str, str]:
        return {
            "email": normalize_email(email),
            "track_id": track_id,
            "cohort_id": cohort_id,
            "status": "active",
            "added_date": utc_now(),
        }
