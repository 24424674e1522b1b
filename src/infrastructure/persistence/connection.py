"""
infrastructure.persistence.connection - Async SQLite connection manager.

One short-lived aiosqlite connection per store operation. The block commits
when it exits cleanly and rolls back when it raises, so a failed write never
leaves a half-updated user record behind.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


class AsyncSQLiteConnection:
    """Hands out transactional aiosqlite connections for one database file."""

    def __init__(self, db_path: str, busy_timeout: float = 5.0):
        self._db_path = db_path
        self._busy_timeout = busy_timeout

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_memory(self) -> bool:
        return self._db_path == MEMORY

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        if not self.is_memory:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(self._db_path, timeout=self._busy_timeout) as conn:
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                logger.exception("SQLite transaction on %s rolled back.", self._db_path)
                raise
