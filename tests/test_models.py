"""Tests for the SQLModel tables and the vector byte codec."""

from __future__ import annotations

import json
import struct

import pytest
from sqlalchemy.exc import IntegrityError

from ragsync.models import (
    Collection,
    CollectionDocument,
    CollectionIndex,
    DocumentChunk,
    EmbeddingsConfig,
    EmbeddingVector,
    IndexedDocument,
    Splitting,
    VectorStoreConfig,
    decode_vector,
    encode_vector,
)

# ==================================================================
# Vector codec
# ==================================================================


class TestVectorCodec:
    def test_big_endian_float32(self):
        blob = encode_vector([1.0, -2.5])
        assert blob == struct.pack(">ff", 1.0, -2.5)

    def test_decode_roundtrip_exact_for_float32_values(self):
        values = [0.5, 0.25, -1.0, 3.0]
        assert decode_vector(encode_vector(values)) == values

    def test_decode_returns_python_floats(self):
        decoded = decode_vector(encode_vector([0.1]))
        assert isinstance(decoded[0], float)
        assert decoded[0] == pytest.approx(0.1, rel=1e-6)

    def test_empty(self):
        assert decode_vector(encode_vector([])) == []


# ==================================================================
# Defaults and JSON helpers
# ==================================================================


class TestDefaults:
    def test_splitting_defaults(self):
        s = Splitting()
        assert (s.chunk_size, s.chunk_overlap) == (1000, 200)

    def test_chunk_meta_decodes_json(self):
        chunk = DocumentChunk(
            document_id=1,
            splitting_id=1,
            content="x",
            metadata_json=json.dumps({"loc": {"page_number": 2}}),
        )
        assert chunk.meta == {"loc": {"page_number": 2}}

    def test_chunk_meta_empty(self):
        assert DocumentChunk(document_id=1, splitting_id=1, metadata_json="").meta == {}

    def test_config_meta(self):
        config = EmbeddingsConfig(name="e", meta_json='{"batch_size": 16}')
        assert config.kind == "openai"
        assert config.meta == {"batch_size": 16}
        assert VectorStoreConfig(name="v").kind == "pinecone"

    def test_index_id_is_uuid_string(self):
        a = CollectionIndex(
            collection_id=1, embeddings_config_id=1, vector_store_config_id=1, splitting_id=1
        )
        b = CollectionIndex(
            collection_id=1, embeddings_config_id=1, vector_store_config_id=1, splitting_id=1
        )
        assert isinstance(a.id, str)
        assert len(a.id) == 36
        assert a.id != b.id

    def test_created_at_is_timezone_aware(self):
        assert Collection(name="c").created_at.tzinfo is not None


# ==================================================================
# Unique constraints
# ==================================================================


class TestUniqueConstraints:
    @pytest.mark.asyncio
    async def test_splitting_pair_unique(self, async_session):
        async_session.add(Splitting(chunk_size=100, chunk_overlap=10))
        await async_session.flush()
        async_session.add(Splitting(chunk_size=100, chunk_overlap=10))
        with pytest.raises(IntegrityError):
            await async_session.flush()

    @pytest.mark.asyncio
    async def test_embedding_key_unique(self, async_session):
        async_session.add(EmbeddingVector(embeddings_config_id=1, content_hash="h"))
        await async_session.flush()
        async_session.add(EmbeddingVector(embeddings_config_id=1, content_hash="h"))
        with pytest.raises(IntegrityError):
            await async_session.flush()

    @pytest.mark.asyncio
    async def test_same_hash_other_config_allowed(self, async_session):
        async_session.add(EmbeddingVector(embeddings_config_id=1, content_hash="h"))
        async_session.add(EmbeddingVector(embeddings_config_id=2, content_hash="h"))
        await async_session.flush()

    @pytest.mark.asyncio
    async def test_collection_link_unique(self, async_session):
        async_session.add(CollectionDocument(collection_id=1, document_id=1))
        await async_session.flush()
        async_session.add(CollectionDocument(collection_id=1, document_id=1))
        with pytest.raises(IntegrityError):
            await async_session.flush()

    @pytest.mark.asyncio
    async def test_indexed_document_unique(self, async_session):
        async_session.add(IndexedDocument(index_id="i", document_id=1))
        await async_session.flush()
        async_session.add(IndexedDocument(index_id="i", document_id=1))
        with pytest.raises(IntegrityError):
            await async_session.flush()
