"""Pinecone-backed vector store: one Pinecone index, one namespace per collection index."""

from __future__ import annotations

import logging
import os
from typing import Any

from ragsync.exceptions import ConfigurationError, VectorStoreError
from ragsync.vectors.types import (
    DeleteResult,
    UpsertResult,
    VectorEntry,
    VectorSearchResult,
)
from ragsync.vectors.utils import batched

try:
    from pinecone import PineconeAsyncio

    _HAS_PINECONE = True
except ImportError:  # pragma: no cover
    PineconeAsyncio = None  # type: ignore[assignment,misc]
    _HAS_PINECONE = False

logger = logging.getLogger(__name__)

# Pinecone caps both upsert and delete requests at 1000 ids.
_REQUEST_LIMIT = 1000


class PineconeVectorStore:
    """Vector store backed by a serverless or pod-based Pinecone index.

    Record ids are caller-chosen, so chunk content hashes serve as ids and
    uploading the same chunk twice overwrites a single record.  The index
    must already exist; ragsync never creates or deletes Pinecone indexes,
    only namespaces inside them.

    The API key falls back to ``PINECONE_API_KEY``.
    """

    def __init__(
        self,
        *,
        index_name: str,
        api_key: str | None = None,
        namespace: str = "",
    ) -> None:
        if not _HAS_PINECONE:
            msg = (
                "pinecone is required for PineconeVectorStore. "
                "Install it with: pip install ragsync[pinecone]"
            )
            raise ImportError(msg)
        if not index_name:
            msg = "PineconeVectorStore requires an index_name"
            raise ConfigurationError(msg)

        self._index_name = index_name
        self._api_key = api_key or os.environ.get("PINECONE_API_KEY", "")
        self._default_namespace = namespace
        self._client: Any = None
        self._index: Any = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the asyncio client and resolve the index host."""
        self._client = PineconeAsyncio(api_key=self._api_key)
        description = await self._client.describe_index(self._index_name)
        self._index = self._client.IndexAsyncio(host=description.host)
        logger.debug("Pinecone index %s resolved to %s", self._index_name, description.host)

    async def close(self) -> None:
        """Release the index handle, then the client."""
        index, self._index = self._index, None
        client, self._client = self._client, None
        if index is not None:
            await index.close()
        if client is not None:
            await client.close()

    @property
    def index_name(self) -> str:
        return self._index_name

    @property
    def supports_custom_ids(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def upsert(
        self,
        entries: list[VectorEntry],
        *,
        namespace: str | None = None,
    ) -> UpsertResult:
        """Write *entries*, one request per 1000 records."""
        index = self._connected()
        target = self._namespace(namespace)
        written = 0
        for batch in batched(entries, _REQUEST_LIMIT):
            response = await index.upsert(
                vectors=[_to_record(entry) for entry in batch],
                namespace=target,
            )
            written += getattr(response, "upserted_count", len(batch))
        return UpsertResult(upserted_count=written)

    async def delete(
        self,
        ids: list[str],
        *,
        namespace: str | None = None,
    ) -> DeleteResult:
        """Delete records by id, one request per 1000 ids.

        Pinecone does not report how many ids existed, so the count is the
        number of ids requested.
        """
        index = self._connected()
        target = self._namespace(namespace)
        for batch in batched(ids, _REQUEST_LIMIT):
            await index.delete(ids=list(batch), namespace=target)
        return DeleteResult(deleted_count=len(ids))

    async def fetch(
        self,
        ids: list[str],
        *,
        namespace: str | None = None,
    ) -> list[VectorEntry | None]:
        """Return one entry per id, ``None`` where the id is unknown."""
        index = self._connected()
        response = await index.fetch(ids=ids, namespace=self._namespace(namespace))
        found = response.vectors or {}
        return [_to_entry(found[i]) if i in found else None for i in ids]

    async def search(
        self,
        vector: list[float],
        *,
        k: int = 10,
        namespace: str | None = None,
        include_metadata: bool = True,
        score_threshold: float | None = None,
    ) -> list[VectorSearchResult]:
        """Top-*k* query; matches under *score_threshold* are dropped."""
        index = self._connected()
        response = await index.query(
            vector=vector,
            top_k=k,
            namespace=self._namespace(namespace),
            include_metadata=include_metadata,
            include_values=include_metadata,
        )
        return [
            _to_result(match)
            for match in response.matches
            if score_threshold is None or match.score >= score_threshold
        ]

    # ------------------------------------------------------------------
    # SupportsNamespaces
    # ------------------------------------------------------------------

    async def list_namespaces(self) -> list[str]:
        """Names of every namespace in the index, across result pages."""
        names: list[str] = []
        async for page in self._connected().list_namespaces():
            for item in getattr(page, "namespaces", None) or []:
                names.append(getattr(item, "name", str(item)))
        return names

    async def delete_namespace(self, namespace: str) -> None:
        index = self._connected()
        try:
            await index.delete_namespace(namespace)
        except Exception as e:
            msg = f"Deleting namespace {namespace!r} from {self._index_name} failed: {e}"
            raise VectorStoreError(msg) from e

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _connected(self) -> Any:
        if self._index is None:
            msg = "Not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._index

    def _namespace(self, namespace: str | None) -> str:
        return self._default_namespace if namespace is None else namespace


def _to_record(entry: VectorEntry) -> dict[str, Any]:
    return {"id": entry.id, "values": entry.vector, "metadata": entry.metadata}


def _to_entry(vec: Any) -> VectorEntry:
    return VectorEntry(
        id=vec.id,
        vector=list(vec.values or []),
        metadata=dict(vec.metadata or {}),
    )


def _to_result(match: Any) -> VectorSearchResult:
    return VectorSearchResult(
        id=match.id,
        score=match.score,
        metadata=dict(match.metadata or {}),
        vector=list(match.values) if match.values else None,
    )
