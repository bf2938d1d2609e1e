"""Abstract base class for document store backends."""

from abc import ABC, abstractmethod
from typing import Any, Protocol

from .models import Document, DocumentRef, OrderBy, WriteKind, WriteOp


class DocumentStore(ABC):
    """
    Abstract document store.

    Hides all database implementation details including:
    - Connection management
    - Query construction and ordering
    - Server-assigned timestamps (SERVER_TIMESTAMP)
    - Atomic multi-document batches

    Supports async context manager protocol:
        async with store:
            await store.set(ref, {...})
    """

    def document(self, collection: str, doc_id: str | None = None) -> DocumentRef:
        """Reference a document; a new id is generated when none is given."""
        if doc_id is None:
            return DocumentRef(collection=collection)
        return DocumentRef(collection=collection, id=doc_id)

    def batch(self) -> "WriteBatch":
        """Start an atomic write batch."""
        return WriteBatch(self)

    async def add(self, collection: str, data: dict[str, Any]) -> DocumentRef:
        """Create a document with a generated id."""
        ref = self.document(collection)
        await self.set(ref, data)
        return ref

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish the backend connection.

        Raises:
            BackendUnavailableError: If connection fails
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the backend connection gracefully."""

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the backend is reachable.

        Returns:
            True if healthy, False otherwise
        """

    @abstractmethod
    async def get(self, ref: DocumentRef) -> Document | None:
        """
        Read one document.

        Returns:
            Document if found, None otherwise
        """

    @abstractmethod
    async def set(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        """Create or overwrite a document."""

    @abstractmethod
    async def update(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        """
        Merge fields into an existing document.

        Raises:
            NotFoundError: If the document does not exist
        """

    @abstractmethod
    async def delete(self, ref: DocumentRef) -> None:
        """Delete a document. Deleting a missing document is not an error."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: OrderBy | None = None,
        limit: int | None = None
    ) -> list[Document]:
        """
        Query a collection.

        Args:
            collection: Collection path
            filters: Field equality filters, all of which must match
            order_by: Optional sort; documents lacking the field sort first
                ascending and last descending
            limit: Maximum number of documents

        Returns:
            Matching documents
        """

    @abstractmethod
    async def commit_batch(self, ops: list[WriteOp]) -> None:
        """
        Apply a list of writes atomically.

        Every SERVER_TIMESTAMP in the batch resolves to the same value.

        Raises:
            NotFoundError: If an update targets a missing document
                (nothing is written)
            BackendUnavailableError: If the backend fails (nothing is written)
        """

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def __aenter__(self) -> "DocumentStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()


class WriteBatch:
    """Collects writes and commits them through the store in one atomic step."""

    def __init__(self, store: DocumentStore):
        self._store = store
        self._ops: list[WriteOp] = []
        self._committed = False

    def set(self, ref: DocumentRef, data: dict[str, Any]) -> "WriteBatch":
        self._ops.append(WriteOp(kind=WriteKind.SET, ref=ref, data=dict(data)))
        return self

    def update(self, ref: DocumentRef, data: dict[str, Any]) -> "WriteBatch":
        self._ops.append(WriteOp(kind=WriteKind.UPDATE, ref=ref, data=dict(data)))
        return self

    def delete(self, ref: DocumentRef) -> "WriteBatch":
        self._ops.append(WriteOp(kind=WriteKind.DELETE, ref=ref))
        return self

    @property
    def ops(self) -> list[WriteOp]:
        return list(self._ops)

    def __len__(self) -> int:
        return len(self._ops)

    async def commit(self) -> None:
        """Commit all collected writes. A batch can be committed once."""
        if self._committed:
            raise RuntimeError("Write batch already committed")
        self._committed = True
        if self._ops:
            await self._store.commit_batch(self._ops)


class StoreFactory(Protocol):
    """Factory protocol for creating document stores."""

    def __call__(self, **config: Any) -> DocumentStore:
        """Create document store instance."""
        ...
