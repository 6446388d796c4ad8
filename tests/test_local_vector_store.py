"""LocalVectorStore: namespaces, replacement by id and on-disk persistence."""

from __future__ import annotations

import pytest

from conftest import hash_vector
from ragsync.exceptions import DimensionMismatchError
from ragsync.vectors.protocols import SupportsNamespaces, VectorStore
from ragsync.vectors.stores.local import LocalVectorStore
from ragsync.vectors.types import DeleteResult, UpsertResult, VectorEntry, VectorSearchResult

# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

_DIM = 32


def _make_entry(entry_id: str, content: str) -> VectorEntry:
    return VectorEntry(id=entry_id, vector=hash_vector(content, _DIM), metadata={"text": content})


@pytest.fixture
def store() -> LocalVectorStore:
    return LocalVectorStore(dimension=_DIM)


# ==================================================================
# Protocols
# ==================================================================


class TestProtocols:
    def test_conforms(self, store: LocalVectorStore):
        assert isinstance(store, VectorStore)
        assert isinstance(store, SupportsNamespaces)
        assert store.supports_custom_ids
        assert store.index_name == "local"


# ==================================================================
# Upsert
# ==================================================================


class TestUpsert:
    @pytest.mark.asyncio
    async def test_upsert_single(self, store: LocalVectorStore):
        result = await store.upsert([_make_entry("a", "hello")])
        assert isinstance(result, UpsertResult)
        assert result.upserted_count == 1
        assert len(store) == 1
        assert store.has("a")

    @pytest.mark.asyncio
    async def test_upsert_replaces_same_id(self, store: LocalVectorStore):
        await store.upsert([_make_entry("a", "version 1")])
        await store.upsert([_make_entry("a", "version 2")])
        assert len(store) == 1
        [entry] = await store.fetch(["a"])
        assert entry is not None
        assert entry.metadata["text"] == "version 2"

    @pytest.mark.asyncio
    async def test_wrong_dimension(self, store: LocalVectorStore):
        with pytest.raises(DimensionMismatchError):
            await store.upsert([VectorEntry(id="a", vector=[1.0, 0.0])])

    @pytest.mark.asyncio
    async def test_default_namespace(self):
        store = LocalVectorStore(dimension=_DIM, namespace="default")
        await store.upsert([_make_entry("a", "x")])
        assert store.count(namespace="default") == 1
        assert store.count(namespace="") == 0


# ==================================================================
# Search
# ==================================================================


class TestSearch:
    @pytest.mark.asyncio
    async def test_nearest_first(self, store: LocalVectorStore):
        await store.upsert([_make_entry(f"e{i}", f"content {i}") for i in range(10)])
        results = await store.search(hash_vector("content 3", _DIM), k=3)
        assert len(results) == 3
        assert isinstance(results[0], VectorSearchResult)
        assert results[0].id == "e3"
        assert results[0].score == pytest.approx(1.0, abs=1e-3)
        assert results[0].metadata == {"text": "content 3"}
        assert [r.score for r in results] == sorted((r.score for r in results), reverse=True)

    @pytest.mark.asyncio
    async def test_k_larger_than_store(self, store: LocalVectorStore):
        await store.upsert([_make_entry("a", "x")])
        assert len(await store.search(hash_vector("x", _DIM), k=10)) == 1

    @pytest.mark.asyncio
    async def test_empty_namespace(self, store: LocalVectorStore):
        assert await store.search(hash_vector("x", _DIM), namespace="nothing") == []

    @pytest.mark.asyncio
    async def test_score_threshold(self, store: LocalVectorStore):
        await store.upsert([_make_entry("a", "x"), _make_entry("b", "y")])
        results = await store.search(hash_vector("x", _DIM), k=2, score_threshold=0.999)
        assert [r.id for r in results] == ["a"]

    @pytest.mark.asyncio
    async def test_without_metadata(self, store: LocalVectorStore):
        await store.upsert([_make_entry("a", "x")])
        [hit] = await store.search(hash_vector("x", _DIM), k=1, include_metadata=False)
        assert hit.metadata == {}
        assert hit.vector is None


# ==================================================================
# Namespaces
# ==================================================================


class TestNamespaces:
    @pytest.mark.asyncio
    async def test_isolated(self, store: LocalVectorStore):
        await store.upsert([_make_entry("a", "x")], namespace="one")
        await store.upsert([_make_entry("b", "y")], namespace="two")
        results = await store.search(hash_vector("x", _DIM), k=5, namespace="two")
        assert [r.id for r in results] == ["b"]
        assert not store.has("a", namespace="two")

    @pytest.mark.asyncio
    async def test_list_and_delete(self, store: LocalVectorStore):
        await store.upsert([_make_entry("a", "x")], namespace="beta")
        await store.upsert([_make_entry("b", "y")], namespace="alpha")
        assert await store.list_namespaces() == ["alpha", "beta"]
        await store.delete_namespace("beta")
        assert await store.list_namespaces() == ["alpha"]
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_emptied_namespace_not_listed(self, store: LocalVectorStore):
        await store.upsert([_make_entry("a", "x")], namespace="ns")
        await store.delete(["a"], namespace="ns")
        assert await store.list_namespaces() == []


# ==================================================================
# Delete / Fetch
# ==================================================================


class TestDeleteFetch:
    @pytest.mark.asyncio
    async def test_delete_ignores_unknown(self, store: LocalVectorStore):
        await store.upsert([_make_entry("a", "x"), _make_entry("b", "y")])
        result = await store.delete(["a", "zzz"])
        assert isinstance(result, DeleteResult)
        assert result.deleted_count == 1
        assert not store.has("a")
        assert store.has("b")

    @pytest.mark.asyncio
    async def test_delete_unknown_namespace(self, store: LocalVectorStore):
        assert (await store.delete(["a"], namespace="nope")).deleted_count == 0

    @pytest.mark.asyncio
    async def test_fetch(self, store: LocalVectorStore):
        entry = _make_entry("a", "x")
        await store.upsert([entry])
        found, missing = await store.fetch(["a", "b"])
        assert missing is None
        assert found is not None
        assert found.vector == pytest.approx(entry.vector)
        assert found.metadata == {"text": "x"}


# ==================================================================
# Persistence
# ==================================================================


class TestPersistence:
    @pytest.mark.asyncio
    async def test_save_and_load(self, store: LocalVectorStore, tmp_path):
        await store.upsert([_make_entry("a", "x"), _make_entry("b", "y")], namespace="one")
        await store.upsert([_make_entry("c", "z")], namespace="two")
        store.save(tmp_path)

        loaded = LocalVectorStore(dimension=_DIM)
        loaded.load(tmp_path)
        assert len(loaded) == 3
        assert loaded.has("c", namespace="two")
        [hit] = await loaded.search(hash_vector("y", _DIM), k=1, namespace="one")
        assert hit.id == "b"
        assert hit.metadata == {"text": "y"}
        [fetched] = await loaded.fetch(["a"], namespace="one")
        assert fetched is not None
        assert fetched.vector == pytest.approx(hash_vector("x", _DIM), abs=1e-6)

    @pytest.mark.asyncio
    async def test_keys_continue_after_load(self, store: LocalVectorStore, tmp_path):
        await store.upsert([_make_entry("a", "x")])
        store.save(tmp_path)
        loaded = LocalVectorStore(dimension=_DIM)
        loaded.load(tmp_path)
        await loaded.upsert([_make_entry("b", "y")])
        assert loaded.has("a")
        assert loaded.has("b")
        assert len(loaded) == 2

    @pytest.mark.asyncio
    async def test_connect_and_close_use_path(self, tmp_path):
        store = LocalVectorStore(dimension=_DIM, path=tmp_path / "vectors")
        await store.connect()
        assert len(store) == 0
        await store.upsert([_make_entry("a", "x")], namespace="ns")
        await store.close()

        reopened = LocalVectorStore(dimension=_DIM, path=tmp_path / "vectors")
        await reopened.connect()
        assert reopened.has("a", namespace="ns")

    def test_load_dimension_mismatch(self, tmp_path):
        LocalVectorStore(dimension=_DIM).save(tmp_path)
        with pytest.raises(DimensionMismatchError):
            LocalVectorStore(dimension=_DIM * 2).load(tmp_path)
