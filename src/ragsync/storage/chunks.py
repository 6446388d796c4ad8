"""ChunkService — stateless chunk CRUD for DB-backed chunk storage."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from sqlmodel import select

from ragsync.hashing import content_hash
from ragsync.models.chunks import DocumentChunk
from ragsync.storage.embeddings import LOOKUP_BATCH_SIZE

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from ragsync.types import RawChunk


class ChunkService:
    """Stateless helpers for document chunk records.

    Works inside the session it is handed; the caller owns the transaction.
    """

    def __init__(self, hash_content: Callable[[str], str] = content_hash) -> None:
        self._hash_content = hash_content

    async def list_chunks(
        self,
        session: AsyncSession,
        document_id: int,
        splitting_id: int,
    ) -> list[DocumentChunk]:
        """List chunks of *document_id* under *splitting_id*, ordered by ``chunk_no``."""
        result = await session.execute(
            select(DocumentChunk)
            .where(DocumentChunk.document_id == document_id)
            .where(DocumentChunk.splitting_id == splitting_id)
            .order_by(DocumentChunk.chunk_no)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def create_chunks(
        self,
        session: AsyncSession,
        document_id: int,
        splitting_id: int,
        raw_chunks: Sequence[RawChunk],
    ) -> list[DocumentChunk]:
        """Insert *raw_chunks* in order, hashing each chunk's content."""
        records = [
            DocumentChunk(
                document_id=document_id,
                splitting_id=splitting_id,
                chunk_no=no,
                content=raw.content,
                content_hash=self._hash_content(raw.content),
                metadata_json=json.dumps(raw.metadata, default=str),
            )
            for no, raw in enumerate(raw_chunks)
        ]
        session.add_all(records)
        await session.flush()
        return records

    async def delete_chunks(
        self,
        session: AsyncSession,
        document_id: int,
        splitting_id: int | None = None,
    ) -> int:
        """Delete chunks of *document_id* (optionally one splitting only)."""
        stmt = select(DocumentChunk).where(DocumentChunk.document_id == document_id)
        if splitting_id is not None:
            stmt = stmt.where(DocumentChunk.splitting_id == splitting_id)
        result = await session.execute(stmt)
        rows = list(result.scalars().all())
        for row in rows:
            await session.delete(row)
        if rows:
            await session.flush()
        return len(rows)

    async def hashes_by_documents(
        self,
        session: AsyncSession,
        document_ids: Sequence[int],
        splitting_id: int,
    ) -> list[str]:
        """Distinct content hashes of every chunk of *document_ids*."""
        ids = list(dict.fromkeys(document_ids))
        hashes: dict[str, None] = {}
        for start in range(0, len(ids), LOOKUP_BATCH_SIZE):
            batch = ids[start : start + LOOKUP_BATCH_SIZE]
            result = await session.execute(
                select(DocumentChunk.content_hash)
                .where(DocumentChunk.document_id.in_(batch))  # type: ignore[attr-defined]
                .where(DocumentChunk.splitting_id == splitting_id)
                .distinct()
            )
            hashes.update(dict.fromkeys(result.scalars().all()))
        return list(hashes)
