"""API routers for the basecamp backend."""

from basecamp.api.routers import (
    accounts_router,
    clarity_calls_router,
    curriculum_router,
    dashboard_router,
    partners_router,
    students_router,
    submissions_router,
    whitelist_router,
)

__all__ = [
    "accounts_router",
    "clarity_calls_router",
    "curriculum_router",
    "dashboard_router",
    "partners_router",
    "students_router",
    "submissions_router",
    "whitelist_router",
]
