"""
application.services.inquiries - Saved consultation history.

Inquiries are kept most-recent-first inside the user's record. Saving an
inquiry whose id already exists overwrites it in place (same position);
otherwise it is prepended.
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.entities import SavedInquiry
from domain.ports import UserStore
from application.context import SessionContext

logger = logging.getLogger(__name__)


class InquiryService:
    """CRUD over the saved inquiries of the logged-in user."""

    def __init__(self, user_store: UserStore):
        self._user_store = user_store

    async def save_inquiry(self, ctx: SessionContext, inquiry: SavedInquiry) -> None:
        if not ctx.username:
            logger.warning("save_inquiry called with no user logged in; ignoring")
            return

        entry = await self._user_store.load_entry(ctx.username)
        if entry is None:
            logger.warning("No stored record for '%s'; inquiry not saved", ctx.username)
            return

        index = entry.find_inquiry(inquiry.id)
        if index >= 0:
            entry.saved_inquiries[index] = inquiry
            logger.info("Updated inquiry %s for '%s'", inquiry.id, ctx.username)
        else:
            entry.saved_inquiries.insert(0, inquiry)
            logger.info("Saved new inquiry %s for '%s'", inquiry.id, ctx.username)

        await self._user_store.save_entry(entry)
        ctx.user_data = entry

    async def delete_inquiry(self, ctx: SessionContext, inquiry_id: str) -> bool:
        """Remove one inquiry. Returns False when it does not exist."""
        if not ctx.username:
            logger.warning("delete_inquiry called with no user logged in; ignoring")
            return False

        entry = await self._user_store.load_entry(ctx.username)
        if entry is None:
            return False

        index = entry.find_inquiry(inquiry_id)
        if index < 0:
            return False

        del entry.saved_inquiries[index]
        await self._user_store.save_entry(entry)
        ctx.user_data = entry
        logger.info("Deleted inquiry %s for '%s'", inquiry_id, ctx.username)
        return True

    async def list_inquiries(self, ctx: SessionContext) -> list[SavedInquiry]:
        if not ctx.username:
            return []
        entry = await self._user_store.load_entry(ctx.username)
        return list(entry.saved_inquiries) if entry else []

    async def get_inquiry(self, ctx: SessionContext, inquiry_id: str) -> Optional[SavedInquiry]:
        for inquiry in await self.list_inquiries(ctx):
            if inquiry.id == inquiry_id:
                return inquiry
        return None
