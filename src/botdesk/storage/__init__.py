"""Document store abstraction layer for botdesk."""

from .base import DocumentStore, WriteBatch
from .factory import create_document_store
from .memory import InMemoryDocumentStore
from .models import (
    EPOCH,
    SERVER_TIMESTAMP,
    Document,
    DocumentRef,
    OrderBy,
    WriteKind,
    WriteOp,
    subcollection,
)

__all__ = [
    "DocumentStore",
    "WriteBatch",
    "create_document_store",
    "InMemoryDocumentStore",
    "EPOCH",
    "SERVER_TIMESTAMP",
    "Document",
    "DocumentRef",
    "OrderBy",
    "WriteKind",
    "WriteOp",
    "subcollection",
]
