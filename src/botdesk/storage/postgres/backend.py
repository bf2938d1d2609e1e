"""PostgreSQL document store backend."""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

import asyncpg

from ...errors import BackendUnavailableError, NotFoundError
from ..base import DocumentStore
from ..models import SERVER_TIMESTAMP, Document, DocumentRef, OrderBy, WriteKind, WriteOp
from . import schema

logger = logging.getLogger(__name__)

# Fixed width so that stored timestamps order correctly as JSON strings
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def _encode_value(value: Any) -> Any:
    """JSON fallback encoder for values json cannot serialize."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _dumps(data: dict[str, Any]) -> str:
    return json.dumps(data, default=_encode_value)


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    """Map driver and network errors onto the botdesk error taxonomy."""
    try:
        yield
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
        logger.error("Postgres %s failed: %s", action, e)
        raise BackendUnavailableError(f"{action} failed: {e}") from e


class PostgresDocumentStore(DocumentStore):
    """
    PostgreSQL backend storing documents as JSONB rows.

    Hides all Postgres-specific details:
    - Connection pooling
    - SQL query construction
    - Timestamp encoding inside JSONB
    - Transaction handling for batches
    """

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        min_pool_size: int = 1,
        max_pool_size: int = 10,
        initialize_schema: bool = True
    ):
        """
        Initialize Postgres backend.

        Args:
            host: Database host
            port: Database port
            database: Database name
            user: Database user
            password: Database password
            min_pool_size: Minimum connection pool size
            max_pool_size: Maximum connection pool size
            initialize_schema: Create the documents table on connect
        """
        self._host = host
        self._port = port
        self._database = database
        self._user = user
        self._password = password
        self._min_pool_size = min_pool_size
        self._max_pool_size = max_pool_size
        self._initialize_schema = initialize_schema
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Establish database connection pool."""
        if self._pool is not None:
            return

        try:
            self._pool = await asyncpg.create_pool(
                host=self._host,
                port=self._port,
                database=self._database,
                user=self._user,
                password=self._password,
                min_size=self._min_pool_size,
                max_size=self._max_pool_size,
                command_timeout=60.0
            )
        except (asyncpg.PostgresError, OSError) as e:
            raise BackendUnavailableError(f"Failed to connect to PostgreSQL: {e}") from e

        if self._initialize_schema:
            await self.initialize_schema()

        logger.info("Postgres store connected (%s:%s/%s)", self._host, self._port, self._database)

    async def disconnect(self) -> None:
        """Close database connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise BackendUnavailableError("Not connected to database")
        return self._pool

    async def initialize_schema(self) -> None:
        """Create the documents table, indexes and trigger."""
        with _translate_errors("initialize schema"):
            async with self.pool.acquire() as conn:
                await conn.execute(schema.CREATE_DOCUMENTS_TABLE)
                await conn.execute(schema.CREATE_COLLECTION_INDEX)
                await conn.execute(schema.CREATE_DATA_GIN_INDEX)
                await conn.execute(schema.CREATE_UPDATED_AT_TRIGGER)

    async def drop_schema(self) -> None:
        """
        Drop the documents table.

        WARNING: This destroys all data!
        """
        with _translate_errors("drop schema"):
            async with self.pool.acquire() as conn:
                await conn.execute(schema.DROP_DOCUMENTS_TABLE)

    async def health_check(self) -> bool:
        """Check if database connection is healthy."""
        if self._pool is None:
            return False

        try:
            async with self._pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            return True
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError):
            return False

    async def get(self, ref: DocumentRef) -> Document | None:
        with _translate_errors(f"get {ref.path}"):
            async with self.pool.acquire() as conn:
                raw = await conn.fetchval(schema.SELECT_DOCUMENT, ref.collection, ref.id)

        if raw is None:
            return None
        return Document(ref=ref, data=json.loads(raw))

    async def set(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        await self.commit_batch([WriteOp(kind=WriteKind.SET, ref=ref, data=data)])

    async def update(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        await self.commit_batch([WriteOp(kind=WriteKind.UPDATE, ref=ref, data=data)])

    async def delete(self, ref: DocumentRef) -> None:
        await self.commit_batch([WriteOp(kind=WriteKind.DELETE, ref=ref)])

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: OrderBy | None = None,
        limit: int | None = None
    ) -> list[Document]:
        params: list[Any] = [collection]
        sql = "SELECT id, data FROM documents WHERE collection = $1"

        if filters:
            params.append(_dumps(filters))
            sql += f" AND data @> ${len(params)}::jsonb"

        if order_by is not None:
            params.append(order_by.field)
            direction = "DESC NULLS LAST" if order_by.descending else "ASC NULLS FIRST"
            sql += f" ORDER BY data -> ${len(params)} {direction}, seq ASC"
        else:
            sql += " ORDER BY seq ASC"

        if limit is not None:
            params.append(limit)
            sql += f" LIMIT ${len(params)}"

        with _translate_errors(f"query {collection}"):
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(sql, *params)

        return [
            Document(
                ref=DocumentRef(collection=collection, id=row["id"]),
                data=json.loads(row["data"])
            )
            for row in rows
        ]

    async def commit_batch(self, ops: list[WriteOp]) -> None:
        needs_timestamp = any(
            value is SERVER_TIMESTAMP
            for op in ops
            for value in (op.data or {}).values()
        )

        with _translate_errors(f"commit batch of {len(ops)} writes"):
            async with self.pool.acquire() as conn, conn.transaction():
                timestamp = None
                if needs_timestamp:
                    timestamp = await conn.fetchval(schema.SELECT_SERVER_TIMESTAMP)

                for op in ops:
                    data = {
                        key: timestamp if value is SERVER_TIMESTAMP else value
                        for key, value in (op.data or {}).items()
                    }
                    if op.kind == WriteKind.SET:
                        await conn.execute(
                            schema.UPSERT_DOCUMENT, op.ref.collection, op.ref.id, _dumps(data)
                        )
                    elif op.kind == WriteKind.UPDATE:
                        result = await conn.execute(
                            schema.MERGE_DOCUMENT, op.ref.collection, op.ref.id, _dumps(data)
                        )
                        # Raising inside the transaction rolls back the whole batch
                        if result == "UPDATE 0":
                            raise NotFoundError(f"Document {op.ref.path} not found")
                    else:
                        await conn.execute(
                            schema.DELETE_DOCUMENT, op.ref.collection, op.ref.id
                        )

    @property
    def backend_type(self) -> str:
        return "postgres"
