"""
Self-registration behind the whitelist gate.

Sign-up runs three steps in order: whitelist check, auth provider
sign-up, enrollment. Nothing reaches the auth provider unless the
whitelist check passes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from loguru import logger

from basecamp.errors import AuthError, ConfigurationError, WhitelistRejectedError
from basecamp.models import Enrollment
from basecamp.services.base import require
from basecamp.services.enrollments import EnrollmentService
from basecamp.services.whitelist import WhitelistService, normalize_email

WHITELIST_REJECTION_MESSAGE = "Email not found in whitelist or not approved for this track/cohort"


@dataclass
class AuthUser:
    """User record returned by the auth provider."""

    id: str
    email: str
    full_name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthUser:
        # GoTrue returns the user at the top level, or under "user" once a
        # session is issued
        user = data.get("user") or data
        metadata = user.get("user_metadata") or {}
        return cls(
            id=user["id"],
            email=user.get("email", ""),
            full_name=metadata.get("full_name", ""),
        )


class AuthProvider(Protocol):
    async def sign_up(self, email: str, password: str, full_name: str) -> AuthUser: ...


class GoTrueAuthClient:
    """
    Minimal async client for a GoTrue-style auth endpoint.

    Usage:
        async with GoTrueAuthClient(settings.auth_url, settings.supabase_anon_key) as auth:
            user = await auth.sign_up(email, password, "Ada Lovelace")
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url or not api_key:
            raise ConfigurationError("Auth URL and API key are required")
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"apikey": api_key, "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> GoTrueAuthClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.aclose()

    async def sign_up(self, email: str, password: str, full_name: str) -> AuthUser:
        try:
            response = await self.client.post(
                "/signup",
                json={"email": email, "password": password, "data": {"full_name": full_name}},
            )
        except httpx.RequestError as e:
            raise AuthError(f"Could not reach the auth provider: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if not response.is_success:
            message = (
                payload.get("msg")
                or payload.get("error_description")
                or payload.get("message")
                or f"Sign-up failed with status {response.status_code}"
            )
            raise AuthError(message)
        if not payload:
            raise AuthError("Auth provider returned no user")
        return AuthUser.from_dict(payload)


class AccountService:
    """Sign-up flow for paid learners."""

    def __init__(
        self,
        auth: AuthProvider,
        whitelist: WhitelistService,
        enrollments: EnrollmentService,
        default_total_tasks: int = 20,
    ) -> None:
        self.auth = auth
        self.whitelist = whitelist
        self.enrollments = enrollments
        self.default_total_tasks = default_total_tasks

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        track_id: str,
        cohort_id: str,
    ) -> tuple[AuthUser, Enrollment]:
        """
        Register a whitelisted learner and enroll them.

        Raises:
            ValidationError: Missing field
            WhitelistRejectedError: No active whitelist row for (email, track, cohort)
            AuthError: The auth provider refused the sign-up
        """
        require(
            email=email,
            password=password,
            full_name=full_name,
            track_id=track_id,
            cohort_id=cohort_id,
        )
        email = normalize_email(email)

        if not await self.whitelist.is_whitelisted(email, track_id, cohort_id):
            logger.warning("Sign-up rejected for {}: not whitelisted", email)
            raise WhitelistRejectedError(WHITELIST_REJECTION_MESSAGE)

        user = await self.auth.sign_up(email, password, full_name.strip())
        enrollment = await self.enrollments.enroll(
            user.id, track_id, cohort_id, total_tasks=self.default_total_tasks
        )
        logger.info("Registered {} as {}", email, user.id)
        return user, enrollment
