"""
application.services.authentication - Login, logout and session restore.

Credential checks are delegated to the Authenticator port; this service only
coordinates the current-user pointer and the lazily created user record.
The configured latencies mimic a remote account service and are zero in
tests.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from domain.entities import UserDatabaseEntry
from domain.models import Credentials, UserIdentity
from domain.ports import Authenticator, UserStore
from application.context import SessionContext

logger = logging.getLogger(__name__)


class AuthenticationService:
    """Owns the current-user pointer and the per-user record lifecycle."""

    def __init__(
        self,
        authenticator: Authenticator,
        user_store: UserStore,
        login_latency: float = 0.6,
        logout_latency: float = 0.2,
    ):
        self._authenticator = authenticator
        self._user_store = user_store
        self._login_latency = login_latency
        self._logout_latency = logout_latency

    async def login(self, ctx: SessionContext, credentials: Credentials) -> UserIdentity:
        """Verify credentials, mark the user current and load their record.

        Raises AuthenticationError without touching storage on mismatch.
        """
        await _pause(self._login_latency)
        identity = await self._authenticator.authenticate(credentials)

        entry = await self._ensure_entry(identity.username)
        await self._user_store.set_current_user(identity.username)
        ctx.begin(identity.username, entry)

        logger.info("User '%s' logged in (session %s)", identity.username, ctx.session_id)
        return identity

    async def logout(self, ctx: SessionContext) -> None:
        """Forget the current user. The user's record stays in storage."""
        await _pause(self._logout_latency)
        await self._user_store.clear_current_user()
        if ctx.username:
            logger.info("User '%s' logged out", ctx.username)
        ctx.end()

    async def restore(self, ctx: SessionContext) -> bool:
        """Rebuild the session from a persisted current user, if any."""
        username = await self._user_store.get_current_user()
        if not username:
            return False
        entry = await self._ensure_entry(username)
        ctx.begin(username, entry)
        logger.debug("Restored session for '%s'", username)
        return True

    async def get_current_user(self) -> Optional[str]:
        return await self._user_store.get_current_user()

    async def get_user_data(self) -> Optional[UserDatabaseEntry]:
        return await self._user_store.get_user_data()

    async def _ensure_entry(self, username: str) -> UserDatabaseEntry:
        entry = await self._user_store.load_entry(username)
        if entry is None:
            entry = UserDatabaseEntry(username=username)
            await self._user_store.save_entry(entry)
            logger.info("Created empty record for new user '%s'", username)
        return entry


async def _pause(seconds: float) -> None:
    if seconds > 0:
        await asyncio.sleep(seconds)
