"""
Exception types for the basecamp backend.

Services raise these; the CLI and the HTTP API translate them into
human-readable messages.
"""

from __future__ import annotations

from typing import Any


class BasecampError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(BasecampError):
    """Required configuration (store URL, API key) is missing."""


class ValidationError(BasecampError):
    """Input rejected before any remote call was made."""


class StoreError(BasecampError):
    """A remote store call failed (non-2xx status or unreadable body)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        self.hint = hint

    @classmethod
    def from_payload(cls, status_code: int, payload: dict[str, Any]) -> StoreError:
        """Build an error from a PostgREST error body."""
        error_cls = NotFoundError if payload.get("code") == NOT_FOUND_CODE else cls
        return error_cls(
            payload.get("message") or f"Store request failed with status {status_code}",
            status_code=status_code,
            code=payload.get("code"),
            details=payload.get("details"),
            hint=payload.get("hint"),
        )

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} ({self.code})"
        return self.message


# PostgREST: "JSON object requested, multiple (or no) rows returned"
NOT_FOUND_CODE = "PGRST116"


class NotFoundError(StoreError):
    """A single-row read matched no row."""


class PairingError(BasecampError):
    """Auto-pairing could not produce any partnership."""


class InsufficientStudentsError(PairingError):
    """Fewer than two students are enrolled in the track and cohort."""


class NotEnoughUnpairedError(PairingError):
    """Fewer than two enrolled students are still without a partner."""


class NoPartnershipsCreatedError(PairingError):
    """Every partnership insert failed."""


class PairingTimeoutError(PairingError):
    """Auto-pairing did not finish within the configured time."""


class WhitelistRejectedError(BasecampError):
    """Self-registration attempted without an active whitelist entry."""


class AuthError(BasecampError):
    """The auth provider refused or failed the request."""
