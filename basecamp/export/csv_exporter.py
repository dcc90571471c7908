"""
CSV exports for submissions and the whitelist.

Exports are returned as text with a content type and a dated file name
so the CLI can write them to disk and the API can stream them.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from basecamp.models import Submission, WhitelistEntry

CSV_CONTENT_TYPE = "text/csv"

SUBMISSIONS_HEADER = ["Student", "Email", "Track", "Assignment", "Status", "Submitted Date", "GitHub", "Demo"]
REPORT_HEADER = [
    "Student",
    "Email",
    "Assignment",
    "Week",
    "Track",
    "Status",
    "Grade",
    "Submitted At",
    "Reviewed At",
    "Feedback",
]
WHITELIST_HEADER = ["Email", "Track", "Cohort", "Added Date", "Status"]


@dataclass
class ExportFile:
    data: str
    content_type: str
    filename: str


def dated_filename(prefix: str, today: date | None = None) -> str:
    """``<prefix>-YYYY-MM-DD.csv``"""
    return f"{prefix}-{(today or date.today()).isoformat()}.csv"


def _render(header: list[str], rows: Iterable[list[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue()


def _track_name(submission: Submission) -> str | None:
    week = submission.assignment.week if submission.assignment else None
    return week.track.name if week and week.track else None


def submissions_csv(submissions: Iterable[Submission], today: date | None = None) -> ExportFile:
    """Review-queue export, one row per submission."""
    rows = []
    for s in submissions:
        rows.append(
            [
                s.student.full_name if s.student else "Unknown",
                (s.student.email if s.student else None) or "Unknown",
                _track_name(s) or "N/A",
                s.assignment.title if s.assignment else "Unknown",
                s.status.value,
                (s.submitted_at or "")[:10],
                s.github_url or "",
                s.demo_url or "",
            ]
        )
    return ExportFile(
        data=_render(SUBMISSIONS_HEADER, rows),
        content_type=CSV_CONTENT_TYPE,
        filename=dated_filename("submissions", today),
    )


def submissions_report_csv(
    submissions: Iterable[Submission],
    today: date | None = None,
) -> ExportFile:
    """Detailed report including grade, review time and feedback."""
    rows = []
    for s in submissions:
        week = s.assignment.week if s.assignment else None
        rows.append(
            [
                s.student.full_name if s.student else "Unknown",
                (s.student.email if s.student else None) or "Unknown",
                s.assignment.title if s.assignment else "Unknown",
                week.week_number if week else "N/A",
                _track_name(s) or "N/A",
                s.status.value,
                s.grade or "N/A",
                s.submitted_at or "",
                s.reviewed_at or "N/A",
                s.feedback or "",
            ]
        )
    return ExportFile(
        data=_render(REPORT_HEADER, rows),
        content_type=CSV_CONTENT_TYPE,
        filename=dated_filename("submissions-report", today),
    )


def whitelist_csv(entries: Iterable[WhitelistEntry], today: date | None = None) -> ExportFile:
    rows = [
        [
            e.email,
            e.track.name if e.track else "Unknown Track",
            e.cohort.name if e.cohort else "Unknown Cohort",
            e.added_date or "",
            e.status,
        ]
        for e in entries
    ]
    return ExportFile(
        data=_render(WHITELIST_HEADER, rows),
        content_type=CSV_CONTENT_TYPE,
        filename=dated_filename("paid-learners-whitelist", today),
    )
