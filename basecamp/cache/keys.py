"""
Cache keys and TTL tiers.

Centralizes the keys services read and invalidate so writes and reads
always agree on what to evict.
"""

from __future__ import annotations

# =============================================================================
# TTL tiers (seconds)
# =============================================================================
TTL_INSTANT = 10.0     # real-time data
TTL_SHORT = 30.0       # frequently changing: submissions, dashboards
TTL_MEDIUM = 120.0     # moderately stable: enrollments, weeks, whitelist
TTL_LONG = 300.0       # rarely changing: tracks, cohorts
TTL_VERY_LONG = 600.0  # very stable

# =============================================================================
# Fixed keys
# =============================================================================
TRACKS = "tracks"
COHORTS = "cohorts"
ALL_WEEKS = "all_weeks"
STUDENTS = "students"
ENROLLMENTS = "enrollments"
SUBMISSIONS = "submissions"
CERTIFICATES = "certificates"
PARTNERS = "partners"
WHITELIST = "whitelist"
CLARITY_CALLS = "clarity_calls"
ADMIN_DASHBOARD = "admin_dashboard"


# =============================================================================
# Per-entity keys
# =============================================================================
def student_dashboard(user_id: str) -> str:
    return f"student_dashboard_{user_id}"


def student_enrollment(user_id: str) -> str:
    return f"student_enrollment_{user_id}"


def weeks_by_track(track_id: str) -> str:
    return f"weeks_track_{track_id}"


def week_progress(user_id: str) -> str:
    return f"week_progress_{user_id}"
