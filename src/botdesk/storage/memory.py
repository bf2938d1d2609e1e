"""In-memory document store backend.

Simple dict-based storage for tests and single-process use.
Data is lost when the application exits.
"""

import copy
from datetime import datetime, timedelta, timezone
from typing import Any

from ..errors import BackendUnavailableError, NotFoundError
from .base import DocumentStore
from .models import SERVER_TIMESTAMP, Document, DocumentRef, OrderBy, WriteKind, WriteOp


class InMemoryDocumentStore(DocumentStore):
    """In-memory document store.

    Mirrors the document database semantics the rest of the package
    relies on: equality queries, ordered reads, server timestamps that
    strictly increase per store, and all-or-nothing batches.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._connected = False
        self._last_timestamp: datetime | None = None

    async def connect(self) -> None:
        """Initialize memory (no-op apart from marking the store usable)."""
        self._connected = True

    async def disconnect(self) -> None:
        """Mark the store closed. Stored data is kept."""
        self._connected = False

    async def health_check(self) -> bool:
        return self._connected

    def _require_connection(self) -> None:
        if not self._connected:
            raise BackendUnavailableError("In-memory store is not connected")

    def _server_timestamp(self) -> datetime:
        """Current time, bumped forward so consecutive values never repeat."""
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    @staticmethod
    def _resolve(data: dict[str, Any], timestamp: datetime) -> dict[str, Any]:
        return {
            key: timestamp if value is SERVER_TIMESTAMP else copy.deepcopy(value)
            for key, value in data.items()
        }

    async def get(self, ref: DocumentRef) -> Document | None:
        self._require_connection()
        data = self._collections.get(ref.collection, {}).get(ref.id)
        if data is None:
            return None
        return Document(ref=ref, data=copy.deepcopy(data))

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
        self._require_connection()
        filters = filters or {}

        matches = [
            Document(ref=DocumentRef(collection=collection, id=doc_id), data=copy.deepcopy(data))
            for doc_id, data in self._collections.get(collection, {}).items()
            if all(data.get(key) == value for key, value in filters.items())
        ]

        if order_by is not None:
            field = order_by.field

            def sort_key(doc: Document) -> tuple[bool, Any]:
                value = doc.data.get(field)
                return (value is not None, value if value is not None else 0)

            matches.sort(key=sort_key, reverse=order_by.descending)

        if limit is not None:
            matches = matches[:limit]
        return matches

    async def commit_batch(self, ops: list[WriteOp]) -> None:
        self._require_connection()

        # Validate before touching anything so a failed batch writes nothing
        pending: dict[tuple[str, str], dict[str, Any] | None] = {}
        for op in ops:
            key = (op.ref.collection, op.ref.id)
            exists = pending[key] is not None if key in pending else (
                op.ref.id in self._collections.get(op.ref.collection, {})
            )
            if op.kind == WriteKind.UPDATE and not exists:
                raise NotFoundError(f"Document {op.ref.path} not found")
            pending[key] = None if op.kind == WriteKind.DELETE else {}

        timestamp = self._server_timestamp()
        for op in ops:
            docs = self._collections.setdefault(op.ref.collection, {})
            if op.kind == WriteKind.SET:
                docs[op.ref.id] = self._resolve(op.data or {}, timestamp)
            elif op.kind == WriteKind.UPDATE:
                docs[op.ref.id].update(self._resolve(op.data or {}, timestamp))
            else:
                docs.pop(op.ref.id, None)

    def count(self, collection: str) -> int:
        """Number of documents currently stored in a collection."""
        return len(self._collections.get(collection, {}))

    @property
    def backend_type(self) -> str:
        return "memory"
