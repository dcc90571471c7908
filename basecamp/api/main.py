"""
FastAPI application for the basecamp LMS backend.

Provides REST API for:
- Curriculum (tracks, cohorts, weeks, lessons, assignments)
- Students, enrollments and certificates
- Accountability partners (auto-pairing, reassignment)
- Paid-learner whitelist and whitelist-gated sign-up
- Submission review and CSV export
- Clarity calls and the admin dashboard
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from basecamp import __version__
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
from basecamp.backend import Backend
from basecamp.errors import (
    AuthError,
    BasecampError,
    ConfigurationError,
    NotFoundError,
    PairingError,
    PairingTimeoutError,
    StoreError,
    ValidationError,
    WhitelistRejectedError,
)
from basecamp.log import configure_logging
from config import get_settings

settings = get_settings()

# Most specific first; a handler also covers subclasses without their own entry
ERROR_STATUS: dict[type[BasecampError], int] = {
    ValidationError: 400,
    AuthError: 400,
    WhitelistRejectedError: 403,
    NotFoundError: 404,
    PairingTimeoutError: 504,
    PairingError: 422,
    StoreError: 502,
    ConfigurationError: 500,
    BasecampError: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    configure_logging(settings)
    logger.info("Starting basecamp API...")
    if settings.has_store_configured():
        app.state.backend = Backend.from_settings(settings)
    else:
        app.state.backend = None
        logger.warning("Store not configured; data endpoints will answer 500")
    logger.info(f"Service started on {settings.api_host}:{settings.api_port}")

    yield

    # Shutdown
    logger.info("Shutting down basecamp API...")
    if app.state.backend is not None:
        await app.state.backend.close()


app = FastAPI(
    title="Basecamp LMS",
    description="""
    Backend for a cohort-based learning program.

    ## Features

    - **Curriculum**: Tracks, cohorts, weeks, lessons and assignments
    - **Students**: Enrollments, roster, certificates, student dashboard
    - **Partners**: Greedy auto-pairing and manual reassignment
    - **Whitelist**: Gate in front of self-registration, CSV import/export
    - **Submissions**: Review queue, bulk review, CSV reports
    - **Dashboard**: Admin metrics and analytics
    """,
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ========================================
# Error Handling
# ========================================


async def basecamp_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Translate package errors into ``{"detail": message}`` with a mapped status."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        500,
    )
    if status_code >= 500:
        logger.error("{} {} failed: {!r}", request.method, request.url.path, exc)
    else:
        logger.info("{} {} rejected: {}", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


for _error_type in ERROR_STATUS:
    app.add_exception_handler(_error_type, basecamp_error_handler)


# ========================================
# Health & Status Endpoints
# ========================================


@app.get("/", tags=["Health"])
def root() -> dict[str, str]:
    """Root endpoint returning service info."""
    return {
        "service": "basecamp",
        "version": __version__,
        "status": "ok",
    }


@app.get("/health", tags=["Health"])
def health_check(request: Request) -> dict[str, Any]:
    """Report whether the store is configured and the backend was built."""
    backend_ready = getattr(request.app.state, "backend", None) is not None
    return {
        "status": "healthy" if backend_ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {
            "store": "configured" if settings.has_store_configured() else "not_configured",
            "backend": "ready" if backend_ready else "unavailable",
        },
        "config": {
            "pairing_timeout_seconds": settings.pairing_timeout_seconds,
            "default_total_tasks": settings.default_total_tasks,
        },
    }


# ========================================
# Include Routers
# ========================================

app.include_router(curriculum_router.router, prefix="/api/curriculum", tags=["Curriculum"])
app.include_router(students_router.router, prefix="/api/students", tags=["Students"])
app.include_router(partners_router.router, prefix="/api/partners", tags=["Partners"])
app.include_router(whitelist_router.router, prefix="/api/whitelist", tags=["Whitelist"])
app.include_router(accounts_router.router, prefix="/api/accounts", tags=["Accounts"])
app.include_router(submissions_router.router, prefix="/api/submissions", tags=["Submissions"])
app.include_router(clarity_calls_router.router, prefix="/api/clarity-calls", tags=["Clarity Calls"])
app.include_router(dashboard_router.router, prefix="/api/dashboard", tags=["Dashboard"])
