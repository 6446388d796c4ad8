"""Vector stores — VectorStore protocol implementations."""

from ragsync.vectors.stores.local import LocalVectorStore

__all__ = [
    "LocalVectorStore",
]

# Optional stores, import-guarded: available only when their deps are installed.
try:
    from ragsync.vectors.stores.pinecone import PineconeVectorStore

    __all__.append("PineconeVectorStore")
except ImportError:  # pragma: no cover
    pass
