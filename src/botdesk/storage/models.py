"""Data models for the storage layer."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class _ServerTimestamp:
    """Sentinel replaced by the backend with its own write time."""

    _instance: "_ServerTimestamp | None" = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP: Any = _ServerTimestamp()


def new_document_id() -> str:
    """Generate a document id (20 hex chars, same length as Firestore auto-ids)."""
    return uuid4().hex[:20]


def subcollection(collection: str, doc_id: str, name: str) -> str:
    """Build the path of a sub-collection nested under a document."""
    return f"{collection}/{doc_id}/{name}"


class DocumentRef(BaseModel):
    """Reference to a document inside a collection path."""

    model_config = ConfigDict(frozen=True)

    collection: str = Field(description="Collection path, e.g. 'chats' or 'chats/abc/messages'")
    id: str = Field(default_factory=new_document_id)

    @property
    def path(self) -> str:
        """Full document path."""
        return f"{self.collection}/{self.id}"

    def child(self, name: str, doc_id: str | None = None) -> "DocumentRef":
        """Reference a document in a sub-collection of this document."""
        collection = subcollection(self.collection, self.id, name)
        if doc_id is None:
            return DocumentRef(collection=collection)
        return DocumentRef(collection=collection, id=doc_id)


class Document(BaseModel):
    """A stored document: its reference plus field data."""

    ref: DocumentRef
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.ref.id

    def to_record(self) -> dict[str, Any]:
        """Field data merged with the document id, ready for model validation."""
        return {**self.data, "id": self.ref.id}


class OrderBy(BaseModel):
    """Sort order for queries."""

    model_config = ConfigDict(frozen=True)

    field: str
    descending: bool = False


class WriteKind(str, Enum):
    """Kinds of operations a write batch can hold."""

    SET = "set"
    UPDATE = "update"
    DELETE = "delete"


class WriteOp(BaseModel):
    """One pending operation in a write batch."""

    model_config = ConfigDict(frozen=True)

    kind: WriteKind
    ref: DocumentRef
    data: dict[str, Any] | None = None
