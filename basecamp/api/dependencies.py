"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from fastapi import Request, Response

from basecamp.backend import Backend
from basecamp.errors import ConfigurationError
from basecamp.export import ExportFile


def get_backend(request: Request) -> Backend:
    """Backend built at startup; missing when the store is not configured."""
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise ConfigurationError(
            "Missing store configuration: SUPABASE_URL and SUPABASE_ANON_KEY must be set"
        )
    return backend


def csv_response(export: ExportFile) -> Response:
    return Response(
        content=export.data,
        media_type=export.content_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )
