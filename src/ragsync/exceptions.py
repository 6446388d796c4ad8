"""Custom exception hierarchy for ragsync."""


class RagSyncError(Exception):
    """Base exception for all ragsync errors."""


class NotFoundError(RagSyncError):
    """Raised when a collection, document, config, or index id does not exist."""


class ConfigurationError(RagSyncError):
    """Raised on invalid configuration (unsupported kind, missing API key, etc.)."""


class DimensionMismatchError(ConfigurationError):
    """Raised when embedding vectors do not match the configured dimensionality."""


class CapabilityNotSupportedError(RagSyncError):
    """Raised when a vector store doesn't support a requested capability."""


class StorageError(RagSyncError):
    """Raised on local persistence failures (chunks, embedding cache, bookkeeping)."""


class VectorStoreError(RagSyncError):
    """Raised on remote vector store failures."""


class EmbeddingError(RagSyncError):
    """Raised when an embedding provider returns unusable output."""


class IndexingError(RagSyncError):
    """Raised when indexing a single document fails.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, document_id: int | None, message: str) -> None:
        super().__init__(message)
        self.document_id = document_id
