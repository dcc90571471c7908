"""
Backend container.

Builds one store client, one cache and every service on top of them.
The CLI and the API both go through this class, so a test can hand in
a fake store (or an httpx MockTransport) in one place.

Usage:
    async with Backend.from_settings() as backend:
        tracks = await backend.curriculum.list_tracks()
"""

from __future__ import annotations

from typing import Any

import httpx

from basecamp.cache import DataCache
from basecamp.services import (
    AccountService,
    CertificateService,
    ClarityCallService,
    CurriculumService,
    DashboardService,
    EnrollmentService,
    GoTrueAuthClient,
    PartnershipService,
    ProfileService,
    SubmissionService,
    WhitelistService,
)
from basecamp.services.accounts import AuthProvider
from basecamp.store import StoreClient
from config import Settings, get_settings


class Backend:
    """Store client, cache and services wired together."""

    def __init__(
        self,
        store: StoreClient,
        cache: DataCache | None = None,
        settings: Settings | None = None,
        auth: AuthProvider | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.cache = cache if cache is not None else DataCache()
        self._auth = auth

        self.curriculum = CurriculumService(store, self.cache)
        self.enrollments = EnrollmentService(store, self.cache)
        self.submissions = SubmissionService(store, self.cache)
        self.partnerships = PartnershipService(store, self.cache, self.enrollments)
        self.whitelist = WhitelistService(store, self.cache, self.curriculum)
        self.clarity_calls = ClarityCallService(store, self.cache)
        self.certificates = CertificateService(store, self.cache)
        self.profiles = ProfileService(store, self.cache)
        self.dashboard = DashboardService(store, self.cache, self.curriculum, self.enrollments)
        self._accounts: AccountService | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Backend:
        """
        Build a backend against the configured store.

        Raises:
            ConfigurationError: SUPABASE_URL or SUPABASE_ANON_KEY is missing
        """
        settings = settings or get_settings()
        return cls(StoreClient.from_settings(settings, transport=transport), settings=settings)

    @property
    def auth(self) -> AuthProvider:
        """Lazy load the auth client; only sign-up needs it."""
        if self._auth is None:
            self._auth = GoTrueAuthClient(
                self.settings.auth_url,
                self.settings.supabase_anon_key,
                timeout=self.settings.store_timeout_seconds,
            )
        return self._auth

    @property
    def accounts(self) -> AccountService:
        if self._accounts is None:
            self._accounts = AccountService(
                self.auth,
                self.whitelist,
                self.enrollments,
                default_total_tasks=self.settings.default_total_tasks,
            )
        return self._accounts

    async def __aenter__(self) -> Backend:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.store.close()
        if isinstance(self._auth, GoTrueAuthClient):
            await self._auth.close()
