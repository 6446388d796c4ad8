"""SQLModel database models for ragsync."""

from ragsync.models.chunks import DocumentChunk, Splitting
from ragsync.models.documents import Collection, CollectionDocument, Document
from ragsync.models.embeddings import (
    EmbeddingsConfig,
    EmbeddingVector,
    decode_vector,
    encode_vector,
)
from ragsync.models.indexes import CollectionIndex, IndexedDocument, VectorStoreConfig

__all__ = [
    "Collection",
    "CollectionDocument",
    "CollectionIndex",
    "Document",
    "DocumentChunk",
    "EmbeddingVector",
    "EmbeddingsConfig",
    "IndexedDocument",
    "Splitting",
    "VectorStoreConfig",
    "decode_vector",
    "encode_vector",
]
