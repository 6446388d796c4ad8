"""IndexService — splittings, collection indexes, and indexed-document bookkeeping."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from sqlalchemy import delete
from sqlmodel import select

from ragsync.exceptions import ConfigurationError
from ragsync.models.chunks import Splitting
from ragsync.models.indexes import CollectionIndex, IndexedDocument

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

_WORD_RE = re.compile(r"[A-Za-z0-9]+")


def camel_case(name: str) -> str:
    """``"My research notes"`` → ``"myResearchNotes"``."""
    words = _WORD_RE.findall(name)
    if not words:
        return ""
    return words[0].lower() + "".join(w[:1].upper() + w[1:].lower() for w in words[1:])


def namespace_of(
    name: str,
    collection_id: int,
    splitting_id: int,
    embeddings_config_id: int,
    vector_store_config_id: int,
) -> str:
    """Vector-store namespace for an index.

    Every component that changes the stored vectors is part of the name, so
    two indexes never share a namespace unless they would hold identical data.
    """
    return "-".join(
        [
            camel_case(name),
            str(collection_id),
            str(splitting_id),
            str(embeddings_config_id),
            str(vector_store_config_id),
        ]
    )


class IndexService:
    """Stateless helpers for splitting, index, and bookkeeping rows."""

    # ------------------------------------------------------------------
    # Splittings
    # ------------------------------------------------------------------

    async def get_or_create_splitting(
        self,
        session: AsyncSession,
        chunk_size: int,
        chunk_overlap: int,
    ) -> Splitting:
        """Return the splitting for ``(chunk_size, chunk_overlap)``, creating it if needed."""
        if chunk_size <= 0 or chunk_overlap < 0 or chunk_overlap >= chunk_size:
            msg = f"Invalid splitting: chunk_size={chunk_size}, chunk_overlap={chunk_overlap}"
            raise ConfigurationError(msg)

        result = await session.execute(
            select(Splitting)
            .where(Splitting.chunk_size == chunk_size)
            .where(Splitting.chunk_overlap == chunk_overlap)
        )
        existing = result.scalars().first()
        if existing is not None:
            return existing

        splitting = Splitting(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        session.add(splitting)
        await session.flush()
        return splitting

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    async def create_index(
        self,
        session: AsyncSession,
        *,
        name: str,
        collection_id: int,
        embeddings_config_id: int,
        vector_store_config_id: int,
        splitting_id: int,
    ) -> CollectionIndex:
        index = CollectionIndex(
            name=name,
            collection_id=collection_id,
            embeddings_config_id=embeddings_config_id,
            vector_store_config_id=vector_store_config_id,
            splitting_id=splitting_id,
            namespace=namespace_of(
                name, collection_id, splitting_id, embeddings_config_id, vector_store_config_id
            ),
        )
        session.add(index)
        await session.flush()
        return index

    async def list_indexes(
        self, session: AsyncSession, collection_id: int
    ) -> list[CollectionIndex]:
        result = await session.execute(
            select(CollectionIndex).where(CollectionIndex.collection_id == collection_id)
        )
        return list(result.scalars().all())

    async def delete_index(self, session: AsyncSession, index_id: str) -> bool:
        """Delete an index and its bookkeeping rows. Returns True if it existed."""
        await session.execute(delete(IndexedDocument).where(IndexedDocument.index_id == index_id))
        index = await session.get(CollectionIndex, index_id)
        if index is None:
            return False
        await session.delete(index)
        await session.flush()
        return True

    # ------------------------------------------------------------------
    # Indexed documents
    # ------------------------------------------------------------------

    async def indexed_document_ids(self, session: AsyncSession, index_id: str) -> list[int]:
        result = await session.execute(
            select(IndexedDocument.document_id)
            .where(IndexedDocument.index_id == index_id)
            .order_by(IndexedDocument.id)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def add_indexed_documents(
        self,
        session: AsyncSession,
        index_id: str,
        document_ids: Sequence[int],
    ) -> int:
        """Add bookkeeping rows for ids not already recorded. Returns count added."""
        existing = set(await self.indexed_document_ids(session, index_id))
        added = 0
        for document_id in dict.fromkeys(document_ids):
            if document_id in existing:
                continue
            session.add(IndexedDocument(index_id=index_id, document_id=document_id))
            added += 1
        if added:
            await session.flush()
        return added

    async def remove_indexed_documents(
        self,
        session: AsyncSession,
        index_id: str,
        document_ids: Sequence[int],
    ) -> int:
        """Delete bookkeeping rows for *document_ids*. Returns count removed."""
        if not document_ids:
            return 0
        result = await session.execute(
            delete(IndexedDocument)
            .where(IndexedDocument.index_id == index_id)
            .where(IndexedDocument.document_id.in_(list(document_ids)))  # type: ignore[attr-defined]
        )
        return result.rowcount or 0
