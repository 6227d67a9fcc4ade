"""Unit tests for PostgresDocumentStore against a fake connection"""
from contextlib import asynccontextmanager

import psycopg
import pytest

from mindquest.db.postgres_store import NOTIFY_CHANNEL, PostgresDocumentStore
from mindquest.exceptions import DocumentNotFoundError, StoreConnectionError


class FakeCursor:
    def __init__(self, row):
        self.row = row

    async def fetchone(self):
        return self.row


class FakeConnection:
    def __init__(self, row=None, error=None):
        self.row = row
        self.error = error
        self.executed = []

    async def execute(self, sql, params=None):
        if self.error is not None:
            raise self.error
        self.executed.append((" ".join(sql.split()), params))
        return FakeCursor(self.row)

    @asynccontextmanager
    async def transaction(self):
        yield


class FakeDatabase:
    def __init__(self, conn):
        self.conn = conn
        self.closed = False

    @asynccontextmanager
    async def connection(self):
        yield self.conn

    async def close_pool(self):
        self.closed = True


def written_document(conn):
    inserts = [params for sql, params in conn.executed if sql.startswith("INSERT")]
    assert len(inserts) == 1
    return inserts[0][2].obj


@pytest.mark.asyncio
async def test_get_returns_document_data():
    conn = FakeConnection(row={"data": {"xp": 10}})
    store = PostgresDocumentStore(FakeDatabase(conn), app_id="mindquest")

    assert await store.get("u1") == {"xp": 10}
    assert conn.executed[0][1] == ("mindquest", "u1")


@pytest.mark.asyncio
async def test_get_missing_document():
    store = PostgresDocumentStore(FakeDatabase(FakeConnection(row=None)), app_id="mindquest")
    assert await store.get("u1") is None


@pytest.mark.asyncio
async def test_set_merge_writes_merged_document_and_notifies():
    conn = FakeConnection(row={"data": {"xp": 1, "hydration": {"level": 2}}})
    store = PostgresDocumentStore(FakeDatabase(conn), app_id="mindquest")

    await store.set("u1", {"hydration": {"lastLogDate": "2024-05-15"}}, merge=True)

    assert written_document(conn) == {"xp": 1, "hydration": {"level": 2, "lastLogDate": "2024-05-15"}}
    assert conn.executed[-1] == ("SELECT pg_notify(%s, %s)", (NOTIFY_CHANNEL, "mindquest:u1"))


@pytest.mark.asyncio
async def test_update_applies_dotted_keys():
    conn = FakeConnection(row={"data": {"hydration": {"level": 2, "lastLogDate": "2024-05-14"}}})
    store = PostgresDocumentStore(FakeDatabase(conn), app_id="mindquest")

    await store.update("u1", {"hydration.level": 0})

    assert written_document(conn) == {"hydration": {"level": 0, "lastLogDate": "2024-05-14"}}


@pytest.mark.asyncio
async def test_update_missing_document_raises():
    conn = FakeConnection(row=None)
    store = PostgresDocumentStore(FakeDatabase(conn), app_id="mindquest")

    with pytest.raises(DocumentNotFoundError):
        await store.update("u1", {"xp": 5})

    assert not any(sql.startswith("INSERT") for sql, _ in conn.executed)


@pytest.mark.asyncio
async def test_connection_failure_is_wrapped():
    conn = FakeConnection(error=psycopg.OperationalError("server closed the connection"))
    store = PostgresDocumentStore(FakeDatabase(conn), app_id="mindquest")

    with pytest.raises(StoreConnectionError):
        await store.get("u1")


@pytest.mark.asyncio
async def test_close_closes_pool():
    db = FakeDatabase(FakeConnection())
    await PostgresDocumentStore(db).close()

    assert db.closed
