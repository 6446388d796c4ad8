"""Tests for IndexSyncStatus.compute — set algebra between a collection and an index."""

from __future__ import annotations

import random

import pytest

from ragsync.models.chunks import Splitting
from ragsync.models.documents import Document
from ragsync.models.indexes import CollectionIndex
from ragsync.sync_status import IndexSyncStatus
from ragsync.types import IndexedCollection


def _doc(doc_id: int) -> Document:
    return Document(id=doc_id, filepath=f"/docs/{doc_id}.txt", filename=f"{doc_id}.txt")


def _index(indexed: list[int]) -> IndexedCollection:
    index = CollectionIndex(
        name="notes",
        collection_id=1,
        embeddings_config_id=1,
        vector_store_config_id=1,
        splitting_id=1,
        namespace="notes-1-1-1-1",
    )
    return IndexedCollection(
        index=index,
        splitting=Splitting(id=1, chunk_size=100, chunk_overlap=10),
        indexed_documents=list(indexed),
    )


A, B, C = 1, 2, 3


# ==================================================================
# Scenarios
# ==================================================================


class TestScenarios:
    def test_new_document_only(self):
        status = IndexSyncStatus.compute([_doc(A), _doc(B), _doc(C)], _index([A, B]))
        assert [d.id for d in status.to_indexed] == [C]
        assert status.to_deleted == set()
        assert not status.clean

    def test_new_and_removed_document(self):
        status = IndexSyncStatus.compute([_doc(A), _doc(C)], _index([A, B]))
        assert [d.id for d in status.to_indexed] == [C]
        assert status.to_deleted == {B}

    def test_in_sync_is_clean(self):
        status = IndexSyncStatus.compute([_doc(A), _doc(B)], _index([B, A]))
        assert status.clean
        assert status.to_indexed == []
        assert status.to_deleted == set()

    def test_empty_collection_deletes_everything(self):
        status = IndexSyncStatus.compute([], _index([A, B]))
        assert status.to_indexed == []
        assert status.to_deleted == {A, B}

    def test_empty_index_indexes_everything_in_order(self):
        docs = [_doc(C), _doc(A), _doc(B)]
        status = IndexSyncStatus.compute(docs, _index([]))
        assert [d.id for d in status.to_indexed] == [C, A, B]

    def test_keeps_inputs(self):
        docs = [_doc(A)]
        index = _index([B])
        status = IndexSyncStatus.compute(docs, index)
        assert status.all == docs
        assert status.index is index
        # compute is pure
        assert index.indexed_documents == [B]


# ==================================================================
# Set algebra
# ==================================================================


class TestSetAlgebra:
    @pytest.mark.parametrize("seed", range(20))
    def test_differences(self, seed: int):
        rng = random.Random(seed)
        live = rng.sample(range(1, 40), rng.randint(0, 20))
        indexed = rng.sample(range(1, 40), rng.randint(0, 20))

        status = IndexSyncStatus.compute([_doc(i) for i in live], _index(indexed))

        assert [d.id for d in status.to_indexed] == [i for i in live if i not in set(indexed)]
        assert status.to_deleted == set(indexed) - set(live)
        assert status.clean == (set(live) == set(indexed))


# ==================================================================
# clear
# ==================================================================


class TestClear:
    def test_clear_empties_work_lists(self):
        status = IndexSyncStatus.compute([_doc(A), _doc(C)], _index([A, B]))
        status.clear()
        assert status.clean
        assert len(status.all) == 2
