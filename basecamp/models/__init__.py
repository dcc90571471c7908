"""Row models for the LMS tables."""

from basecamp.models.activity import (
    REVIEW_STATUSES,
    Certificate,
    ClarityCallRequest,
    ClarityCallStatus,
    Partnership,
    Submission,
    SubmissionStatus,
    WeekProgress,
)
from basecamp.models.curriculum import Assignment, Cohort, Lesson, Track, Week
from basecamp.models.people import AdminSettings, Enrollment, Profile, WhitelistEntry

__all__ = [
    # Curriculum
    "Assignment",
    "Cohort",
    "Lesson",
    "Track",
    "Week",
    # People
    "AdminSettings",
    "Enrollment",
    "Profile",
    "WhitelistEntry",
    # Activity
    "Certificate",
    "ClarityCallRequest",
    "ClarityCallStatus",
    "Partnership",
    "REVIEW_STATUSES",
    "Submission",
    "SubmissionStatus",
    "WeekProgress",
]
