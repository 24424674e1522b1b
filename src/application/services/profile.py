"""
application.services.profile - Patient profile persistence.

The profile is replaced wholesale on every save: read the user's full
record, swap the profile, write the full record back. Saved inquiries ride
along untouched.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from domain.models import Profile
from domain.ports import UserStore
from application.context import SessionContext
from application.dto import ProfileDraft

logger = logging.getLogger(__name__)


class ProfileService:
    """Reads and writes the profile of the logged-in user."""

    def __init__(self, user_store: UserStore, save_latency: float = 0.3):
        self._user_store = user_store
        self._save_latency = save_latency

    def get_profile(self, ctx: SessionContext) -> Optional[Profile]:
        return ctx.profile

    def draft(self, ctx: SessionContext) -> ProfileDraft:
        """Settings form pre-filled from the current profile."""
        return ProfileDraft.from_profile(ctx.profile)

    async def submit(self, ctx: SessionContext, draft: ProfileDraft) -> Optional[Profile]:
        """Save a completed settings form.

        An incomplete draft is a no-op: nothing is persisted and None is
        returned, so the caller keeps the form open.
        """
        if not draft.is_complete:
            logger.info("Profile draft incomplete, missing: %s", draft.missing_fields)
            return None
        profile = draft.to_profile()
        await self.save_user_profile(ctx, profile)
        return profile

    async def save_user_profile(self, ctx: SessionContext, profile: Profile) -> None:
        """Replace the stored profile of the current user."""
        if self._save_latency > 0:
            await asyncio.sleep(self._save_latency)

        if not ctx.username:
            logger.warning("save_user_profile called with no user logged in; ignoring")
            return

        entry = await self._user_store.load_entry(ctx.username)
        if entry is None:
            logger.warning("No stored record for '%s'; profile not saved", ctx.username)
            return

        entry.profile = profile
        await self._user_store.save_entry(entry)
        ctx.user_data = entry
        logger.info(
            "Saved profile for '%s' (age_group=%s, region=%s)",
            ctx.username, profile.age_group.value, profile.region.value,
        )
