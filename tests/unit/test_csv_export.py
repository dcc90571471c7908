"""
Unit tests for CSV exports.
"""

import csv
import io
from datetime import date

from basecamp.export import submissions_csv, submissions_report_csv, whitelist_csv
from basecamp.models import Submission, WhitelistEntry

TODAY = date(2026, 3, 1)


def _rows(export):
    return list(csv.reader(io.StringIO(export.data)))


def _submission(**overrides):
    data = {
        "id": "sub1",
        "student_id": "s1",
        "assignment_id": "a1",
        "status": "approved",
        "submitted_at": "2026-02-01T10:00:00+00:00",
        "github_url": "https://github.com/ada/landing",
        "grade": "A",
        "feedback": "Great, but check spacing, margins",
        "student": {"id": "s1", "full_name": "Lovelace, Ada", "email": "ada@example.com"},
        "assignment": {
            "id": "a1",
            "title": "Landing page",
            "week": {"id": "w1", "week_number": 1, "title": "HTML",
                     "track": {"id": "t1", "name": "Frontend"}},
        },
    }
    data.update(overrides)
    return Submission.from_dict(data)


class TestSubmissionsCsv:
    """Review queue export."""

    def test_header_file_name_and_type(self):
        export = submissions_csv([_submission()], today=TODAY)

        assert export.filename == "submissions-2026-03-01.csv"
        assert export.content_type == "text/csv"
        assert _rows(export)[0] == [
            "Student", "Email", "Track", "Assignment", "Status", "Submitted Date", "GitHub", "Demo",
        ]

    def test_commas_survive_quoting(self):
        row = _rows(submissions_csv([_submission()], today=TODAY))[1]

        assert row == [
            "Lovelace, Ada", "ada@example.com", "Frontend", "Landing page", "approved",
            "2026-02-01", "https://github.com/ada/landing", "",
        ]

    def test_missing_relations(self):
        row = _rows(submissions_csv([_submission(student=None, assignment=None)], today=TODAY))[1]

        assert row[:4] == ["Unknown", "Unknown", "N/A", "Unknown"]

    def test_empty(self):
        assert len(_rows(submissions_csv([], today=TODAY))) == 1


class TestReportCsv:
    """Detailed report export."""

    def test_row(self):
        export = submissions_report_csv([_submission()], today=TODAY)
        row = _rows(export)[1]

        assert export.filename == "submissions-report-2026-03-01.csv"
        assert row[3] == "1"
        assert row[6] == "A"
        assert row[8] == "N/A"
        assert row[9] == "Great, but check spacing, margins"


class TestWhitelistCsv:
    """Whitelist export."""

    def test_row_with_and_without_embeds(self):
        entries = [
            WhitelistEntry.from_dict({
                "id": "w1", "email": "ada@example.com", "track_id": "t1", "cohort_id": "c1",
                "added_date": "2026-01-05", "track": {"id": "t1", "name": "Frontend"},
                "cohort": {"id": "c1", "name": "Cohort 2026"},
            }),
            WhitelistEntry.from_dict({"id": "w2", "email": "x@example.com", "status": "pending"}),
        ]

        export = whitelist_csv(entries, today=TODAY)
        rows = _rows(export)

        assert export.filename == "paid-learners-whitelist-2026-03-01.csv"
        assert rows[1] == ["ada@example.com", "Frontend", "Cohort 2026", "2026-01-05", "active"]
        assert rows[2][1:3] == ["Unknown Track", "Unknown Cohort"]
