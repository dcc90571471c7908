"""
Basecamp LMS backend.

Business logic for a cohort-based learning program: curriculum,
enrollments, submission review, accountability partners, clarity calls
and the paid-learner whitelist, on top of a PostgREST store.
"""

__version__ = "0.3.0"
