"""
infrastructure.persistence.migrations - Schema setup for the local store.

Everything the portal persists lives in one key-value table holding JSON
documents (one per user, plus the current-user pointer). The schema version
is tracked with PRAGMA user_version so later layouts can be added as steps.
"""

from __future__ import annotations

import logging

from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)

# Index i upgrades the database from version i to version i + 1.
_STEPS = [
    [
        """CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT
        )""",
    ],
]

SCHEMA_VERSION = len(_STEPS)


async def run_migrations(connection: AsyncSQLiteConnection) -> int:
    """Bring the database up to SCHEMA_VERSION and return the version found."""
    async with connection.acquire() as conn:
        rows = await conn.execute_fetchall("PRAGMA user_version")
        found = rows[0][0] if rows else 0
        for version in range(found, SCHEMA_VERSION):
            for ddl in _STEPS[version]:
                await conn.execute(ddl)
            logger.info("Applied schema step %d", version + 1)
        if found < SCHEMA_VERSION:
            await conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
    logger.debug("Database %s at schema version %d", connection.db_path, SCHEMA_VERSION)
    return found
