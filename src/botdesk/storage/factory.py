"""Factory for creating document store backends."""

from typing import Any

from .base import DocumentStore


def create_document_store(backend: str = "memory", **config: Any) -> DocumentStore:
    """
    Create a document store instance.

    Backend modules are imported lazily so that the Google and asyncpg
    client libraries are only loaded when their backend is selected.

    Args:
        backend: Backend type ("memory", "firestore" or "postgres")
        **config: Backend-specific configuration
            For firestore:
                - project: str | None
                - database: str (default: '(default)')
            For postgres:
                - host, port, database, user, password (required)
                - min_pool_size, max_pool_size

    Returns:
        Document store instance (not yet connected)

    Raises:
        ValueError: If backend type is not supported

    Example:
        >>> store = create_document_store("firestore", project="my-project")
        >>> await store.connect()
    """
    backend_lower = backend.lower()

    if backend_lower == "memory":
        from .memory import InMemoryDocumentStore
        return InMemoryDocumentStore(**config)

    if backend_lower == "firestore":
        from .firestore import FirestoreDocumentStore
        return FirestoreDocumentStore(**config)

    if backend_lower == "postgres":
        from .postgres import PostgresDocumentStore
        return PostgresDocumentStore(**config)

    raise ValueError(
        f"Unsupported storage backend: {backend}. "
        f"Supported backends: memory, firestore, postgres"
    )
