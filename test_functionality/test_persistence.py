"""
Test the SQLite key-value store, schema versioning and the user-record
layer on top of it.
"""
import asyncio
import sys
import os

import pytest

src_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src'))
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from domain.entities import UserDatabaseEntry
from domain.exceptions import RepositoryError
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.kv_store import SQLiteKeyValueStore
from infrastructure.persistence.migrations import SCHEMA_VERSION, run_migrations
from infrastructure.persistence.user_store import KeyValueUserStore
from fakes import sample_profile


@pytest.fixture
def connection(tmp_path):
    connection = AsyncSQLiteConnection(str(tmp_path / "nested" / "store.db"))
    asyncio.run(run_migrations(connection))
    return connection


def test_migrations_are_idempotent(tmp_path):
    connection = AsyncSQLiteConnection(str(tmp_path / "store.db"))
    assert asyncio.run(run_migrations(connection)) == 0
    assert asyncio.run(run_migrations(connection)) == SCHEMA_VERSION


def test_kv_set_get_delete(connection):
    store = SQLiteKeyValueStore(connection)

    async def run():
        await store.set("k", "v1")
        await store.set("k", "v2")
        value = await store.get("k")
        await store.delete("k")
        return value, await store.get("k")

    assert asyncio.run(run()) == ("v2", None)


def test_user_record_survives_reopen(connection):
    entry = UserDatabaseEntry(username="DMDsetup#2", profile=sample_profile())

    async def run():
        await KeyValueUserStore(SQLiteKeyValueStore(connection)).save_entry(entry)
        reopened = KeyValueUserStore(SQLiteKeyValueStore(AsyncSQLiteConnection(connection.db_path)))
        return await reopened.load_entry("DMDsetup#2")

    assert asyncio.run(run()) == entry


def test_current_user_pointer(connection):
    users = KeyValueUserStore(SQLiteKeyValueStore(connection))

    async def run():
        await users.set_current_user("DMDsetup#3")
        first = await users.get_current_user()
        await users.clear_current_user()
        return first, await users.get_current_user()

    assert asyncio.run(run()) == ("DMDsetup#3", None)


def test_corrupt_record_raises_repository_error(connection):
    store = SQLiteKeyValueStore(connection)
    asyncio.run(store.set("dmd_db_DMDsetup#1", "{not json"))

    with pytest.raises(RepositoryError):
        asyncio.run(KeyValueUserStore(store).load_entry("DMDsetup#1"))


def test_missing_table_raises_repository_error(tmp_path):
    store = SQLiteKeyValueStore(AsyncSQLiteConnection(str(tmp_path / "empty.db")))
    with pytest.raises(RepositoryError):
        asyncio.run(store.get("anything"))
