"""Unit tests for the storage module."""
import os

import pytest
from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from hypothesis import given
from hypothesis import strategies as st

from botdesk.errors import BackendUnavailableError, NotFoundError
from botdesk.storage import (
    SERVER_TIMESTAMP,
    DocumentRef,
    DocumentStore,
    InMemoryDocumentStore,
    OrderBy,
    WriteKind,
    create_document_store,
    subcollection,
)
from botdesk.storage.firestore import FirestoreDocumentStore, _translate_errors


class TestDocumentStore:
    """Tests for DocumentStore interface."""

    def test_document_store_is_abstract(self):
        """Test that DocumentStore cannot be instantiated directly."""
        with pytest.raises(TypeError):
            DocumentStore()  # type: ignore


class TestDocumentRef:
    """Tests for DocumentRef model."""

    def test_generated_ids_are_unique(self):
        """Test that refs without an id get distinct generated ids."""
        first = DocumentRef(collection="bots")
        second = DocumentRef(collection="bots")

        assert first.id != second.id
        assert len(first.id) == 20

    def test_path(self):
        """Test the full document path."""
        ref = DocumentRef(collection="chats", id="c1")
        assert ref.path == "chats/c1"

    def test_child_builds_subcollection(self):
        """Test that child refs live in a nested collection."""
        ref = DocumentRef(collection="chats", id="c1").child("messages", "m1")

        assert ref.collection == "chats/c1/messages"
        assert ref.path == "chats/c1/messages/m1"
        assert subcollection("chats", "c1", "messages") == ref.collection

    @given(st.text(min_size=1, alphabet=st.characters(exclude_characters="/")))
    def test_path_ends_with_id(self, doc_id: str):
        """Property test: the path always ends with the document id."""
        ref = DocumentRef(collection="bots", id=doc_id)
        assert ref.path.endswith(f"/{doc_id}")


class TestInMemoryDocumentStore:
    """Tests for InMemoryDocumentStore."""

    @pytest.mark.asyncio
    async def test_requires_connection(self):
        """Test that operations fail before connect()."""
        store = InMemoryDocumentStore()

        with pytest.raises(BackendUnavailableError):
            await store.get(DocumentRef(collection="bots", id="x"))
        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_context_manager_connects(self):
        """Test async context manager connect/disconnect."""
        async with InMemoryDocumentStore() as store:
            assert await store.health_check() is True
        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_set_and_get(self, store):
        """Test writing and reading a document."""
        ref = store.document("bots", "b1")
        await store.set(ref, {"name": "Helper"})

        doc = await store.get(ref)

        assert doc is not None
        assert doc.id == "b1"
        assert doc.data == {"name": "Helper"}
        assert doc.to_record() == {"name": "Helper", "id": "b1"}

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store):
        """Test that reading a missing document returns None."""
        assert await store.get(DocumentRef(collection="bots", id="nope")) is None

    @pytest.mark.asyncio
    async def test_returned_data_is_a_copy(self, store):
        """Test that mutating a read document does not change the store."""
        ref = await store.add("bots", {"tags": ["a"]})
        doc = await store.get(ref)
        doc.data["tags"].append("b")

        again = await store.get(ref)
        assert again.data["tags"] == ["a"]

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, store):
        """Test that update keeps existing fields."""
        ref = await store.add("bots", {"name": "A", "systemPrompt": "p"})
        await store.update(ref, {"name": "B"})

        doc = await store.get(ref)
        assert doc.data == {"name": "B", "systemPrompt": "p"}

    @pytest.mark.asyncio
    async def test_update_missing_raises(self, store):
        """Test that updating a missing document raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await store.update(DocumentRef(collection="bots", id="ghost"), {"name": "x"})

    @pytest.mark.asyncio
    async def test_delete_missing_is_not_an_error(self, store):
        """Test that deleting a missing document succeeds silently."""
        await store.delete(DocumentRef(collection="bots", id="ghost"))

    @pytest.mark.asyncio
    async def test_server_timestamp_resolved(self, store):
        """Test that SERVER_TIMESTAMP becomes a timezone-aware datetime."""
        ref = await store.add("bots", {"createdAt": SERVER_TIMESTAMP})

        doc = await store.get(ref)

        assert doc.data["createdAt"].tzinfo is not None

    @pytest.mark.asyncio
    async def test_server_timestamps_strictly_increase(self, store):
        """Test that consecutive writes get strictly increasing timestamps."""
        refs = [await store.add("events", {"at": SERVER_TIMESTAMP}) for _ in range(20)]
        stamps = [(await store.get(ref)).data["at"] for ref in refs]

        assert all(a < b for a, b in zip(stamps, stamps[1:]))

    @pytest.mark.asyncio
    async def test_query_filters_by_equality(self, store):
        """Test that every filter must match."""
        await store.add("chats", {"userId": "u1", "botId": "b1"})
        await store.add("chats", {"userId": "u1", "botId": "b2"})
        await store.add("chats", {"userId": "u2", "botId": "b1"})

        docs = await store.query("chats", filters={"userId": "u1", "botId": "b1"})

        assert len(docs) == 1
        assert docs[0].data == {"userId": "u1", "botId": "b1"}

    @pytest.mark.asyncio
    async def test_query_order_and_limit(self, store):
        """Test ordering, descending ordering and limits."""
        for n in (3, 1, 2):
            await store.add("items", {"n": n})

        ascending = await store.query("items", order_by=OrderBy(field="n"))
        descending = await store.query("items", order_by=OrderBy(field="n", descending=True), limit=2)

        assert [d.data["n"] for d in ascending] == [1, 2, 3]
        assert [d.data["n"] for d in descending] == [3, 2]

    @pytest.mark.asyncio
    async def test_query_missing_field_sorts_first_ascending(self, store):
        """Test that documents lacking the order field come first ascending."""
        await store.add("items", {"n": 1})
        await store.add("items", {})

        docs = await store.query("items", order_by=OrderBy(field="n"))

        assert "n" not in docs[0].data

    @pytest.mark.asyncio
    async def test_query_unknown_collection_is_empty(self, store):
        """Test that querying an unused collection returns nothing."""
        assert await store.query("nothing-here") == []


class TestWriteBatch:
    """Tests for atomic write batches."""

    @pytest.mark.asyncio
    async def test_batch_shares_one_timestamp(self, store):
        """Test that every SERVER_TIMESTAMP in a batch resolves to one value."""
        first = store.document("a")
        second = store.document("b")

        batch = store.batch()
        batch.set(first, {"at": SERVER_TIMESTAMP}).set(second, {"at": SERVER_TIMESTAMP})
        assert len(batch) == 2
        assert [op.kind for op in batch.ops] == [WriteKind.SET, WriteKind.SET]
        await batch.commit()

        assert (await store.get(first)).data["at"] == (await store.get(second)).data["at"]

    @pytest.mark.asyncio
    async def test_failed_batch_writes_nothing(self, store):
        """Test that an update of a missing document aborts the whole batch."""
        kept = await store.add("bots", {"name": "keep"})
        new_ref = store.document("bots")

        batch = store.batch()
        batch.set(new_ref, {"name": "new"})
        batch.delete(kept)
        batch.update(DocumentRef(collection="bots", id="ghost"), {"name": "x"})

        with pytest.raises(NotFoundError):
            await batch.commit()

        assert await store.get(new_ref) is None
        assert await store.get(kept) is not None

    @pytest.mark.asyncio
    async def test_update_after_set_in_same_batch(self, store):
        """Test that an update may target a document set earlier in the batch."""
        ref = store.document("bots")

        await store.batch().set(ref, {"name": "a"}).update(ref, {"name": "b"}).commit()

        assert (await store.get(ref)).data == {"name": "b"}

    @pytest.mark.asyncio
    async def test_update_after_delete_in_same_batch_fails(self, store):
        """Test that an update of a document deleted earlier in the batch fails."""
        ref = await store.add("bots", {"name": "a"})

        with pytest.raises(NotFoundError):
            await store.batch().delete(ref).update(ref, {"name": "b"}).commit()
        assert await store.get(ref) is not None

    @pytest.mark.asyncio
    async def test_commit_twice_raises(self, store):
        """Test that a batch cannot be committed twice."""
        batch = store.batch().set(store.document("a"), {"x": 1})
        await batch.commit()

        with pytest.raises(RuntimeError):
            await batch.commit()


class TestCreateDocumentStore:
    """Tests for the document store factory."""

    def test_create_memory_store(self):
        """Test creating the in-memory backend."""
        store = create_document_store("memory")
        assert isinstance(store, InMemoryDocumentStore)
        assert store.backend_type == "memory"

    def test_unsupported_backend(self):
        """Test that unknown backends are rejected."""
        with pytest.raises(ValueError, match="Unsupported storage backend"):
            create_document_store("redis")

    def test_create_postgres_store_is_lazy(self, postgres_config):
        """Test that creating the Postgres backend does not connect."""
        store = create_document_store("postgres", **postgres_config)
        assert store.backend_type == "postgres"


@pytest.mark.integration
class TestPostgresDocumentStore:
    """Integration tests against a live PostgreSQL database."""

    @pytest.fixture
    async def pg_store(self, postgres_config):
        if not os.getenv("POSTGRES_HOST"):
            pytest.skip("POSTGRES_HOST not set")
        store = create_document_store("postgres", **postgres_config)
        await store.connect()
        await store.drop_schema()
        await store.initialize_schema()
        yield store
        await store.drop_schema()
        await store.disconnect()

    @pytest.mark.asyncio
    async def test_round_trip_with_timestamp(self, pg_store):
        """Test writing a document with a server timestamp and querying it back."""
        ref = await pg_store.add("chats", {"userId": "u1", "lastMessageTimestamp": SERVER_TIMESTAMP})

        docs = await pg_store.query("chats", filters={"userId": "u1"})

        assert [d.id for d in docs] == [ref.id]
        assert docs[0].data["lastMessageTimestamp"]

    @pytest.mark.asyncio
    async def test_failed_batch_rolls_back(self, pg_store):
        """Test that a batch with a missing update target writes nothing."""
        new_ref = pg_store.document("bots")

        with pytest.raises(NotFoundError):
            await pg_store.batch().set(new_ref, {"name": "x"}).update(
                DocumentRef(collection="bots", id="ghost"), {"name": "y"}
            ).commit()

        assert await pg_store.get(new_ref) is None


class TestFirestoreDocumentStore:
    """Tests for the Firestore backend that need no server."""

    def test_server_timestamp_mapped_to_firestore_sentinel(self):
        """Test that the store sentinel becomes Firestore's own."""
        encoded = FirestoreDocumentStore._encode({"at": SERVER_TIMESTAMP, "n": 1})

        assert encoded == {"at": firestore.SERVER_TIMESTAMP, "n": 1}

    def test_google_errors_translated(self):
        """Test that Google API errors map onto the botdesk taxonomy."""
        with pytest.raises(NotFoundError):
            with _translate_errors("update bots/x"):
                raise google_exceptions.NotFound("no document")

        with pytest.raises(BackendUnavailableError):
            with _translate_errors("query bots"):
                raise google_exceptions.ServiceUnavailable("down")

    @pytest.mark.asyncio
    async def test_requires_connection(self):
        """Test that operations fail before connect()."""
        store = create_document_store("firestore", project="demo")

        assert await store.health_check() is False
        with pytest.raises(BackendUnavailableError):
            await store.get(DocumentRef(collection="bots", id="x"))


@pytest.mark.integration
class TestFirestoreEmulator:
    """Integration tests against the Firestore emulator."""

    @pytest.mark.asyncio
    async def test_batch_and_query(self):
        """Test an atomic batch and an equality query on the emulator."""
        if not os.getenv("FIRESTORE_EMULATOR_HOST"):
            pytest.skip("FIRESTORE_EMULATOR_HOST not set")

        store = create_document_store("firestore", project=os.getenv("FIRESTORE_PROJECT", "demo-botdesk"))
        async with store:
            chat = store.document("chats")
            message = chat.child("messages")
            await store.batch().set(chat, {"userId": "u1", "botId": "b1"}).set(
                message, {"content": "hi", "timestamp": SERVER_TIMESTAMP}
            ).commit()

            chats = await store.query("chats", filters={"userId": "u1", "botId": "b1"})
            messages = await store.query(message.collection, order_by=OrderBy(field="timestamp"))

            assert chat.id in [d.id for d in chats]
            assert [d.data["content"] for d in messages] == ["hi"]

            await store.batch().delete(message).delete(chat).commit()
