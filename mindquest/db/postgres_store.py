"""PostgreSQL-backed document store

Each user document is one JSONB row in user_documents. Writes run as
read-modify-write inside a transaction holding the row lock, then issue
pg_notify so subscribers (in any process) re-read the document.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import psycopg
from psycopg.types.json import Jsonb

from mindquest.config import APP_ID
from mindquest.db.connection import Database
from mindquest.db.document_store import (
    DocumentStore,
    Snapshot,
    SnapshotListener,
    Unsubscribe,
    apply_updates,
    deep_merge,
    deliver_snapshot,
)
from mindquest.exceptions import DocumentNotFoundError, wrap_external_exception

logger = logging.getLogger(__name__)

NOTIFY_CHANNEL = "user_documents"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS user_documents (
    app_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    data JSONB NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    PRIMARY KEY (app_id, user_id)
)
"""


class PostgresDocumentStore(DocumentStore):
    """Document store over a psycopg connection pool"""

    def __init__(self, db: Database, app_id: str = APP_ID):
        self.db = db
        self.app_id = app_id
        self._listen_tasks: set[asyncio.Task] = set()

    def _channel_payload(self, user_id: str) -> str:
        return f"{self.app_id}:{user_id}"

    async def ensure_schema(self) -> None:
        async with self.db.connection() as conn:
            await conn.execute(SCHEMA_SQL)
        logger.info("user_documents table ready")

    async def get(self, user_id: str) -> Optional[Snapshot]:
        try:
            async with self.db.connection() as conn:
                cur = await conn.execute(
                    "SELECT data FROM user_documents WHERE app_id = %s AND user_id = %s",
                    (self.app_id, user_id),
                )
                row = await cur.fetchone()
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_document", user_id=user_id)
        return row["data"] if row else None

    async def _write(self, user_id: str, operation: str, transform) -> None:
        """Lock the row, compute the new document, store it and notify"""
        try:
            async with self.db.connection() as conn:
                async with conn.transaction():
                    cur = await conn.execute(
                        "SELECT data FROM user_documents WHERE app_id = %s AND user_id = %s FOR UPDATE",
                        (self.app_id, user_id),
                    )
                    row = await cur.fetchone()
                    document = transform(row["data"] if row else None)
                    await conn.execute(
                        """
                        INSERT INTO user_documents (app_id, user_id, data, updated_at)
                        VALUES (%s, %s, %s, now())
                        ON CONFLICT (app_id, user_id)
                        DO UPDATE SET data = EXCLUDED.data, updated_at = now()
                        """,
                        (self.app_id, user_id, Jsonb(document)),
                    )
                    await conn.execute(
                        "SELECT pg_notify(%s, %s)",
                        (NOTIFY_CHANNEL, self._channel_payload(user_id)),
                    )
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation=operation, user_id=user_id)
        logger.debug(f"{operation} committed for user {user_id}")

    async def set(self, user_id: str, data: Snapshot, merge: bool = False) -> None:
        def transform(current: Optional[Snapshot]) -> Snapshot:
            if merge and current is not None:
                return deep_merge(current, data)
            return data

        await self._write(user_id, "set_document", transform)

    async def update(self, user_id: str, updates: Dict[str, Any]) -> None:
        def transform(current: Optional[Snapshot]) -> Snapshot:
            if current is None:
                raise DocumentNotFoundError(
                    message=f"No progress document for user {user_id}",
                    record_type="Progress document",
                    record_id=user_id,
                    user_id=user_id,
                    operation="update_document"
                )
            return apply_updates(current, updates)

        await self._write(user_id, "update_document", transform)

    async def subscribe(self, user_id: str, listener: SnapshotListener) -> Unsubscribe:
        try:
            conn = await self.db.listen_connection()
            await conn.execute(f"LISTEN {NOTIFY_CHANNEL}")
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="subscribe", user_id=user_id)

        # LISTEN is active before the first read, so no write can slip between them
        await deliver_snapshot(listener, await self.get(user_id))

        task = asyncio.create_task(self._listen(conn, user_id, listener))
        self._listen_tasks.add(task)
        task.add_done_callback(self._listen_tasks.discard)

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def _listen(self, conn: psycopg.AsyncConnection, user_id: str, listener: SnapshotListener) -> None:
        payload = self._channel_payload(user_id)
        try:
            async for notify in conn.notifies():
                if notify.payload != payload:
                    continue
                await deliver_snapshot(listener, await self.get(user_id))
        except asyncio.CancelledError:
            logger.debug(f"Subscription for user {user_id} cancelled")
            raise
        except psycopg.Error as e:
            logger.error(f"Subscription for user {user_id} lost: {e}", exc_info=True)
        finally:
            await conn.close()

    async def close(self) -> None:
        for task in list(self._listen_tasks):
            task.cancel()
        if self._listen_tasks:
            await asyncio.gather(*self._listen_tasks, return_exceptions=True)
        await self.db.close_pool()
