"""
infrastructure.persistence.user_store - Per-user records on a key-value store.

Implements UserStore port. Two key namespaces:

    <current_user_key>            -> username of the logged-in user (absent = logged out)
    <user_key_prefix><username>   -> JSON {username, profile|null, saved_inquiries[]}

Every write replaces the whole serialized record; callers do
read-modify-write on the full UserDatabaseEntry.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from domain.entities import UserDatabaseEntry
from domain.exceptions import RepositoryError
from domain.ports import KeyValueStore

logger = logging.getLogger(__name__)


class KeyValueUserStore:
    """UserStore backed by any KeyValueStore."""

    def __init__(
        self,
        store: KeyValueStore,
        current_user_key: str = "dmd_current_user",
        user_key_prefix: str = "dmd_db_",
    ):
        self._store = store
        self._current_user_key = current_user_key
        self._user_key_prefix = user_key_prefix

    def _user_key(self, username: str) -> str:
        return f"{self._user_key_prefix}{username}"

    async def get_current_user(self) -> Optional[str]:
        return await self._store.get(self._current_user_key)

    async def set_current_user(self, username: str) -> None:
        await self._store.set(self._current_user_key, username)

    async def clear_current_user(self) -> None:
        await self._store.delete(self._current_user_key)

    async def load_entry(self, username: str) -> Optional[UserDatabaseEntry]:
        raw = await self._store.get(self._user_key(username))
        if raw is None:
            return None
        try:
            return UserDatabaseEntry.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            raise RepositoryError(
                f"Stored record for user '{username}' is corrupt: {e}"
            ) from e

    async def save_entry(self, entry: UserDatabaseEntry) -> None:
        payload = json.dumps(entry.to_dict(), ensure_ascii=False)
        await self._store.set(self._user_key(entry.username), payload)
        logger.debug(
            "Saved record for user '%s' (%d inquiries, profile=%s)",
            entry.username, len(entry.saved_inquiries), entry.profile is not None,
        )

    async def get_user_data(self) -> Optional[UserDatabaseEntry]:
        """Return the record of the current user, or None when logged out."""
        username = await self.get_current_user()
        if not username:
            return None
        return await self.load_entry(username)
