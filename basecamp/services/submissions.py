"""
Submission service: student submissions, drafts and mentor review.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from basecamp.cache import keys
from basecamp.errors import StoreError, ValidationError
from basecamp.models import REVIEW_STATUSES, Submission, SubmissionStatus
from basecamp.services.base import StoreService, require, utc_now
from basecamp.store import Query

SUBMISSION_SELECT = (
    "*, student:profiles(*), assignment:assignments(*, week:weeks(*, track:tracks(*)))"
)
STUDENT_SUBMISSION_SELECT = "*, assignment:assignments(*, week:weeks(*))"

# Bulk action -> (status, feedback)
BULK_ACTIONS: dict[str, tuple[SubmissionStatus, str]] = {
    "approve": (SubmissionStatus.APPROVED, "Bulk approved"),
    "reject": (SubmissionStatus.NEEDS_CHANGES, "Please review and resubmit"),
}


@dataclass
class BulkReviewResult:
    """Outcome of a bulk review; ``failed`` holds ids whose update errored."""

    updated: list[Submission] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class SubmissionService(StoreService):
    """Reads, creates and reviews task submissions."""

    # ========================================
    # Reads
    # ========================================

    async def list_submissions(
        self,
        status: str | None = None,
        track_id: str | None = None,
    ) -> list[Submission]:
        """
        Submissions newest first, optionally filtered.

        Only the unfiltered list is cached.
        """
        if status and status != "all":
            status = _status(status).value
        else:
            status = None
        if track_id == "all":
            track_id = None

        async def fetch() -> list[Submission]:
            query = Query("task_submissions").select(SUBMISSION_SELECT)
            if status:
                query = query.eq("status", status)
            if track_id:
                query = query.eq("assignment.week.track_id", track_id)
            rows = await self.store.select(query.order("submitted_at", ascending=False))
            submissions = [Submission.from_dict(row) for row in rows]
            if track_id:
                # Non-inner embeds null out instead of dropping the row
                submissions = [
                    s for s in submissions
                    if s.assignment and s.assignment.week and s.assignment.week.track_id == track_id
                ]
            return submissions

        if status or track_id:
            return await fetch()
        return await self._cached_read(keys.SUBMISSIONS, fetch, keys.TTL_SHORT)

    async def submissions_for_student(self, student_id: str) -> list[Submission]:
        rows = await self.store.select(
            Query("task_submissions")
            .select(STUDENT_SUBMISSION_SELECT)
            .eq("student_id", student_id)
            .order("submitted_at", ascending=False)
        )
        return [Submission.from_dict(row) for row in rows]

    async def submission_for_assignment(
        self, student_id: str, assignment_id: str
    ) -> Submission | None:
        row = await self.store.select_one(
            Query("task_submissions")
            .select(STUDENT_SUBMISSION_SELECT)
            .eq("student_id", student_id)
            .eq("assignment_id", assignment_id)
        )
        return Submission.from_dict(row) if row else None

    async def get_submission(self, submission_id: str) -> Submission:
        row = await self.store.select(
            Query("task_submissions").select(SUBMISSION_SELECT).eq("id", submission_id),
            single=True,
        )
        return Submission.from_dict(row)

    # ========================================
    # Student writes
    # ========================================

    async def create_submission(
        self,
        student_id: str,
        assignment_id: str,
        github_url: str,
        demo_url: str | None = None,
        notes: str | None = None,
    ) -> Submission:
        """Submit work; new submissions go straight to review."""
        require(student_id=student_id, assignment_id=assignment_id, github_url=github_url)
        row = await self.store.insert(
            "task_submissions",
            {
                "student_id": student_id,
                "assignment_id": assignment_id,
                "github_url": github_url,
                "demo_url": demo_url,
                "notes": notes,
                "status": SubmissionStatus.IN_REVIEW.value,
                "submitted_at": utc_now(),
            },
            single=True,
        )
        self._invalidate(student_id)
        return Submission.from_dict(row)

    async def resubmit(
        self,
        submission_id: str,
        github_url: str | None = None,
        demo_url: str | None = None,
        notes: str | None = None,
    ) -> Submission:
        """Update the links of a submission and send it back to review."""
        values: dict[str, Any] = {
            "status": SubmissionStatus.IN_REVIEW.value,
            "submitted_at": utc_now(),
        }
        for column, value in (("github_url", github_url), ("demo_url", demo_url), ("notes", notes)):
            if value is not None:
                values[column] = value
        row = await self.store.update(
            Query("task_submissions").eq("id", submission_id), values, single=True
        )
        submission = Submission.from_dict(row)
        self._invalidate(submission.student_id)
        return submission

    async def save_draft(
        self,
        student_id: str,
        assignment_id: str,
        github_url: str | None = None,
        demo_url: str | None = None,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """Upsert the in-progress draft for one student and assignment."""
        require(student_id=student_id, assignment_id=assignment_id)
        return await self.store.upsert(
            "draft_submissions",
            {
                "student_id": student_id,
                "assignment_id": assignment_id,
                "github_url": github_url,
                "demo_url": demo_url,
                "notes": notes,
                "updated_at": utc_now(),
            },
            on_conflict="student_id,assignment_id",
            single=True,
        )

    # ========================================
    # Review
    # ========================================

    async def review(
        self,
        submission_id: str,
        status: str,
        reviewed_by: str,
        feedback: str | None = None,
        grade: str | None = None,
    ) -> Submission:
        """
        Record a mentor's decision.

        Raises:
            ValidationError: Status is not approved, needs_changes or in_review
        """
        review_status = _status(status)
        if review_status not in REVIEW_STATUSES:
            allowed = ", ".join(s.value for s in REVIEW_STATUSES)
            raise ValidationError(f"Invalid review status '{status}' (expected one of: {allowed})")
        require(reviewed_by=reviewed_by)

        values: dict[str, Any] = {
            "status": review_status.value,
            "reviewed_by": reviewed_by,
            "reviewed_at": utc_now(),
        }
        if feedback is not None:
            values["feedback"] = feedback
        if grade is not None:
            values["grade"] = grade

        row = await self.store.update(
            Query("task_submissions").select(SUBMISSION_SELECT).eq("id", submission_id),
            values,
            single=True,
        )
        submission = Submission.from_dict(row)
        self._invalidate(submission.student_id)
        logger.info("Submission {} reviewed: {}", submission_id, review_status.value)
        return submission

    async def bulk_review(
        self,
        submission_ids: list[str],
        action: str,
        reviewed_by: str,
    ) -> BulkReviewResult:
        """
        Approve or reject many submissions at once.

        Each id is updated on its own; one failure does not stop the rest.

        Raises:
            ValidationError: Unknown action or no ids
            StoreError: No submission could be updated
        """
        if action not in BULK_ACTIONS:
            raise ValidationError(f"Unknown bulk action '{action}' (expected approve or reject)")
        if not submission_ids:
            raise ValidationError("No submissions selected")
        require(reviewed_by=reviewed_by)

        status, feedback = BULK_ACTIONS[action]
        values = {
            "status": status.value,
            "feedback": feedback,
            "reviewed_by": reviewed_by,
            "reviewed_at": utc_now(),
        }

        async def update_one(submission_id: str) -> Submission:
            row = await self.store.update(
                Query("task_submissions").select(SUBMISSION_SELECT).eq("id", submission_id),
                values,
                single=True,
            )
            return Submission.from_dict(row)

        outcomes = await asyncio.gather(
            *(update_one(sid) for sid in submission_ids), return_exceptions=True
        )
        self._invalidate()
        self.cache.invalidate_pattern("student_dashboard")

        result = BulkReviewResult()
        last_error: StoreError | None = None
        for submission_id, outcome in zip(submission_ids, outcomes):
            if isinstance(outcome, StoreError):
                logger.warning("Bulk {} failed for {}: {}", action, submission_id, outcome)
                result.failed.append(submission_id)
                last_error = outcome
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.updated.append(outcome)

        if not result.updated and last_error is not None:
            raise last_error
        logger.info(
            "Bulk {}: {} updated, {} failed", action, len(result.updated), len(result.failed)
        )
        return result

    def _invalidate(self, student_id: str | None = None) -> None:
        self.cache.invalidate(keys.SUBMISSIONS)
        self.cache.invalidate(keys.ADMIN_DASHBOARD)
        if student_id:
            self.cache.invalidate(keys.student_dashboard(student_id))


def _status(value: str) -> SubmissionStatus:
    try:
        return SubmissionStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown submission status '{value}'") from None
