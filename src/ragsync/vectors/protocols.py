"""Interfaces the indexer relies on for turning chunks into stored vectors.

Concrete backends never inherit from these; they are matched structurally,
so a third-party object with the right async methods plugs in unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ragsync.vectors.types import (
        DeleteResult,
        UpsertResult,
        VectorEntry,
        VectorSearchResult,
    )


# ------------------------------------------------------------------
# Embedding
# ------------------------------------------------------------------


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns chunk text into vectors of a fixed width.

    The indexer sends only cache misses through ``embed_batch`` and zips the
    answer back onto the chunks positionally, so the result must line up
    one-to-one with *texts*.
    """

    async def embed(self, text: str) -> list[float]: ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]: ...

    @property
    def dimensions(self) -> int:
        """Vector width, recorded on the index and checked against the store."""
        ...

    @property
    def model_name(self) -> str:
        """Model identifier, used in logs and error messages."""
        ...


# ------------------------------------------------------------------
# Storage
# ------------------------------------------------------------------


@runtime_checkable
class VectorStore(Protocol):
    """A remote or local home for chunk vectors.

    Each collection index writes into its own namespace.  Passing
    ``namespace=None`` targets whatever default the store was built with.
    """

    @property
    def index_name(self) -> str: ...

    @property
    def supports_custom_ids(self) -> bool:
        """True when records are stored under the id the caller supplies.

        Otherwise the adapter writes random ids and keeps the chunk hash
        under ``content_hash`` in the metadata.
        """
        ...

    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def upsert(
        self,
        entries: list[VectorEntry],
        *,
        namespace: str | None = None,
    ) -> UpsertResult: ...

    async def delete(
        self,
        ids: list[str],
        *,
        namespace: str | None = None,
    ) -> DeleteResult: ...

    async def fetch(
        self,
        ids: list[str],
        *,
        namespace: str | None = None,
    ) -> list[VectorEntry | None]:
        """Look up records by id; unknown ids come back as ``None`` in place."""
        ...

    async def search(
        self,
        vector: list[float],
        *,
        k: int = 10,
        namespace: str | None = None,
        include_metadata: bool = True,
        score_threshold: float | None = None,
    ) -> list[VectorSearchResult]:
        """Best *k* matches for *vector*, highest score first."""
        ...


@runtime_checkable
class SupportsNamespaces(Protocol):
    """Optional: the store can enumerate and drop whole namespaces.

    Dropping an index uses ``delete_namespace`` when available instead of
    deleting its vectors id by id.
    """

    async def list_namespaces(self) -> list[str]: ...

    async def delete_namespace(self, namespace: str) -> None: ...
