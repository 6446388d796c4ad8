"""Tests for VectorStoreAdapter and metadata cleaning."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from ragsync.exceptions import CapabilityNotSupportedError, VectorStoreError
from ragsync.vectors.adapter import VectorStoreAdapter, clean_metadata, flatten_metadata
from ragsync.vectors.stores.local import LocalVectorStore
from ragsync.vectors.types import DeleteResult, UpsertResult

_DIM = 4


class GeneratedIdStore(LocalVectorStore):
    """A local store that pretends it cannot keep caller-chosen ids."""

    @property
    def supports_custom_ids(self) -> bool:
        return False


@pytest.fixture
def store() -> LocalVectorStore:
    return LocalVectorStore(dimension=_DIM)


@pytest.fixture
def adapter(store: LocalVectorStore) -> VectorStoreAdapter:
    return VectorStoreAdapter(store, "ns")


# ==================================================================
# Metadata helpers
# ==================================================================


class TestMetadata:
    def test_clean_drops_none_and_empty(self):
        meta = {"a": 1, "b": None, "c": "", "d": [], "e": {"x": None}, "f": 0, "g": False}
        assert clean_metadata(meta) == {"a": 1, "f": 0, "g": False}

    def test_clean_recurses(self):
        assert clean_metadata({"pdf": {"info": {"Title": "T", "Author": None}}}) == {
            "pdf": {"info": {"Title": "T"}}
        }

    def test_flatten(self):
        assert flatten_metadata({"loc": {"page_number": 2}, "text": "t"}) == {
            "loc.page_number": 2,
            "text": "t",
        }

    def test_flatten_deep(self):
        assert flatten_metadata({"a": {"b": {"c": 1}}}) == {"a.b.c": 1}


# ==================================================================
# Upload
# ==================================================================


class TestUpload:
    @pytest.mark.asyncio
    async def test_custom_ids_used(self, adapter: VectorStoreAdapter, store: LocalVectorStore):
        count = await adapter.upload(
            [[1.0, 0, 0, 0], [0, 1.0, 0, 0]],
            ["h1", "h2"],
            [{"text": "one"}, {"text": "two", "loc": {"page_number": 3}}],
        )
        assert count == 2
        assert store.has("h1", namespace="ns")
        [entry] = await store.fetch(["h2"], namespace="ns")
        assert entry is not None
        assert entry.metadata == {"text": "two", "loc.page_number": 3}

    @pytest.mark.asyncio
    async def test_reupload_is_idempotent(self, adapter: VectorStoreAdapter, store):
        for _ in range(3):
            await adapter.upload([[1.0, 0, 0, 0]], ["h1"], [{}])
        assert store.count(namespace="ns") == 1

    @pytest.mark.asyncio
    async def test_generated_ids_carry_hash(self):
        store = GeneratedIdStore(dimension=_DIM)
        adapter = VectorStoreAdapter(store, "ns")
        assert not adapter.supports_custom_ids
        await adapter.upload([[1.0, 0, 0, 0]], ["h1"], [{"text": "x"}])
        assert not store.has("h1", namespace="ns")
        [hit] = await adapter.search([1.0, 0, 0, 0], k=1)
        assert hit.metadata["content_hash"] == "h1"

    @pytest.mark.asyncio
    async def test_length_mismatch(self, adapter: VectorStoreAdapter):
        with pytest.raises(ValueError, match="same length"):
            await adapter.upload([[1.0, 0, 0, 0]], ["a", "b"], [{}])

    @pytest.mark.asyncio
    async def test_empty_upload_skips_store(self):
        store = AsyncMock()
        adapter = VectorStoreAdapter(store, "ns")
        assert await adapter.upload([], [], []) == 0
        store.upsert.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_exception_wrapped(self):
        store = AsyncMock()
        store.supports_custom_ids = True
        store.upsert.side_effect = ConnectionError("down")
        adapter = VectorStoreAdapter(store, "ns")
        with pytest.raises(VectorStoreError, match="down") as exc_info:
            await adapter.upload([[1.0]], ["a"], [{}])
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_reported_errors_raise(self):
        store = AsyncMock()
        store.supports_custom_ids = True
        store.upsert.return_value = UpsertResult(upserted_count=0, errors=["rejected"])
        adapter = VectorStoreAdapter(store, "ns")
        with pytest.raises(VectorStoreError, match="rejected"):
            await adapter.upload([[1.0]], ["a"], [{}])

    @pytest.mark.asyncio
    async def test_passes_namespace(self):
        store = AsyncMock()
        store.supports_custom_ids = True
        store.upsert.return_value = UpsertResult(upserted_count=1)
        await VectorStoreAdapter(store, "my-ns").upload([[1.0]], ["a"], [{}])
        assert store.upsert.call_args.kwargs["namespace"] == "my-ns"


# ==================================================================
# Delete
# ==================================================================


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_by_hash(self, adapter: VectorStoreAdapter, store: LocalVectorStore):
        await adapter.upload([[1.0, 0, 0, 0], [0, 1.0, 0, 0]], ["h1", "h2"], [{}, {}])
        assert await adapter.delete(["h1", "missing"]) == 1
        assert not store.has("h1", namespace="ns")
        assert store.has("h2", namespace="ns")

    @pytest.mark.asyncio
    async def test_delete_empty(self, adapter: VectorStoreAdapter):
        assert await adapter.delete([]) == 0

    @pytest.mark.asyncio
    async def test_delete_unsupported(self):
        adapter = VectorStoreAdapter(GeneratedIdStore(dimension=_DIM), "ns")
        with pytest.raises(CapabilityNotSupportedError):
            await adapter.delete(["h1"])

    @pytest.mark.asyncio
    async def test_delete_failure_wrapped(self):
        store = AsyncMock()
        store.supports_custom_ids = True
        store.delete.side_effect = TimeoutError("slow")
        with pytest.raises(VectorStoreError):
            await VectorStoreAdapter(store, "ns").delete(["a"])

    @pytest.mark.asyncio
    async def test_delete_scoped_to_namespace(self, store: LocalVectorStore):
        a = VectorStoreAdapter(store, "a")
        b = VectorStoreAdapter(store, "b")
        await a.upload([[1.0, 0, 0, 0]], ["h"], [{}])
        await b.upload([[1.0, 0, 0, 0]], ["h"], [{}])
        store_delete = await a.delete(["h"])
        assert store_delete == 1
        assert store.has("h", namespace="b")

    @pytest.mark.asyncio
    async def test_returns_store_count(self):
        store = AsyncMock()
        store.supports_custom_ids = True
        store.delete.return_value = DeleteResult(deleted_count=7)
        assert await VectorStoreAdapter(store, "ns").delete(["a"]) == 7
