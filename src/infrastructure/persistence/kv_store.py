"""
infrastructure.persistence.kv_store - SQLite key-value store.

Implements KeyValueStore port on the kv_store table.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import aiosqlite

from domain.exceptions import RepositoryError
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteKeyValueStore:
    """Async SQLite implementation of KeyValueStore."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def get(self, key: str) -> Optional[str]:
        try:
            async with self._conn.acquire() as conn:
                rows = await conn.execute_fetchall(
                    "SELECT value FROM kv_store WHERE key = ?", (key,),
                )
        except aiosqlite.Error as e:
            raise RepositoryError(f"Failed to read key '{key}': {e}") from e
        return rows[0][0] if rows else None

    async def set(self, key: str, value: str) -> None:
        now = datetime.now().isoformat()
        try:
            async with self._conn.acquire() as conn:
                await conn.execute(
                    """INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                       ON CONFLICT(key) DO UPDATE SET
                           value = excluded.value,
                           updated_at = excluded.updated_at""",
                    (key, value, now),
                )
        except aiosqlite.Error as e:
            raise RepositoryError(f"Failed to write key '{key}': {e}") from e

    async def delete(self, key: str) -> None:
        try:
            async with self._conn.acquire() as conn:
                await conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except aiosqlite.Error as e:
            raise RepositoryError(f"Failed to delete key '{key}': {e}") from e
