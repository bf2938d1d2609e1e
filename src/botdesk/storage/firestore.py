"""Cloud Firestore document store backend."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from ..errors import BackendUnavailableError, NotFoundError
from .base import DocumentStore
from .models import SERVER_TIMESTAMP, Document, DocumentRef, OrderBy, WriteKind, WriteOp

logger = logging.getLogger(__name__)


@contextmanager
def _translate_errors(action: str) -> Iterator[None]:
    """Map Google API errors onto the botdesk error taxonomy."""
    try:
        yield
    except google_exceptions.NotFound as e:
        raise NotFoundError(f"{action}: {e.message}") from e
    except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
        logger.error("Firestore %s failed: %s", action, e)
        raise BackendUnavailableError(f"{action} failed: {e}") from e


class FirestoreDocumentStore(DocumentStore):
    """
    Firestore backend using the async client.

    Hides all Firestore-specific details:
    - Client construction and credentials
    - Collection / sub-collection path handling
    - Server timestamp sentinel mapping
    - Batched writes

    Note: Firestore excludes documents lacking the order_by field from
    ordered queries. Callers that need missing values treated as epoch 0
    sort on the client instead.
    """

    def __init__(
        self,
        project: str | None = None,
        database: str = "(default)",
        credentials: Any | None = None
    ):
        """
        Initialize Firestore backend.

        Args:
            project: GCP project id (None uses the ambient default)
            database: Firestore database name
            credentials: Optional google.auth credentials
        """
        self._project = project
        self._database = database
        self._credentials = credentials
        self._client: firestore.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the async Firestore client."""
        if self._client is not None:
            return

        try:
            self._client = firestore.AsyncClient(
                project=self._project,
                database=self._database,
                credentials=self._credentials
            )
        except (auth_exceptions.GoogleAuthError, google_exceptions.GoogleAPIError) as e:
            raise BackendUnavailableError(f"Failed to connect to Firestore: {e}") from e

        logger.info(
            "Firestore store connected (project=%s, database=%s)",
            self._client.project, self._database
        )

    async def disconnect(self) -> None:
        """Drop the client."""
        self._client = None

    @property
    def client(self) -> firestore.AsyncClient:
        if self._client is None:
            raise BackendUnavailableError("Firestore store is not connected")
        return self._client

    def _doc(self, ref: DocumentRef) -> Any:
        return self.client.collection(ref.collection).document(ref.id)

    @staticmethod
    def _encode(data: dict[str, Any]) -> dict[str, Any]:
        return {
            key: firestore.SERVER_TIMESTAMP if value is SERVER_TIMESTAMP else value
            for key, value in data.items()
        }

    async def health_check(self) -> bool:
        if self._client is None:
            return False
        try:
            async for _ in self._client.collections():
                break
            return True
        except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError):
            return False

    async def get(self, ref: DocumentRef) -> Document | None:
        with _translate_errors(f"get {ref.path}"):
            snapshot = await self._doc(ref).get()
        if not snapshot.exists:
            return None
        return Document(ref=ref, data=snapshot.to_dict() or {})

    async def set(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        with _translate_errors(f"set {ref.path}"):
            await self._doc(ref).set(self._encode(data))

    async def update(self, ref: DocumentRef, data: dict[str, Any]) -> None:
        with _translate_errors(f"update {ref.path}"):
            await self._doc(ref).update(self._encode(data))

    async def delete(self, ref: DocumentRef) -> None:
        with _translate_errors(f"delete {ref.path}"):
            await self._doc(ref).delete()

    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        order_by: OrderBy | None = None,
        limit: int | None = None
    ) -> list[Document]:
        query: Any = self.client.collection(collection)
        for field, value in (filters or {}).items():
            query = query.where(filter=FieldFilter(field, "==", value))

        if order_by is not None:
            direction = (
                firestore.Query.DESCENDING if order_by.descending
                else firestore.Query.ASCENDING
            )
            query = query.order_by(order_by.field, direction=direction)

        if limit is not None:
            query = query.limit(limit)

        documents = []
        with _translate_errors(f"query {collection}"):
            async for snapshot in query.stream():
                documents.append(Document(
                    ref=DocumentRef(collection=collection, id=snapshot.id),
                    data=snapshot.to_dict() or {}
                ))
        return documents

    async def commit_batch(self, ops: list[WriteOp]) -> None:
        batch = self.client.batch()
        for op in ops:
            doc = self._doc(op.ref)
            if op.kind == WriteKind.SET:
                batch.set(doc, self._encode(op.data or {}))
            elif op.kind == WriteKind.UPDATE:
                batch.update(doc, self._encode(op.data or {}))
            else:
                batch.delete(doc)

        with _translate_errors(f"commit batch of {len(ops)} writes"):
            await batch.commit()

    @property
    def backend_type(self) -> str:
        return "firestore"
