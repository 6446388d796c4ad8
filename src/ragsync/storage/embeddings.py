"""EmbeddingService — the content-addressed embedding cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import select

from ragsync.models.embeddings import EmbeddingVector, decode_vector, encode_vector

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from ragsync.types import EmbeddingRecord

# Keeps IN (...) clauses well under SQLite's bound-parameter limit.
LOOKUP_BATCH_SIZE = 500


class EmbeddingService:
    """Stateless get/upsert helpers for :class:`EmbeddingVector` rows."""

    async def get(
        self,
        session: AsyncSession,
        embeddings_config_id: int,
        content_hash: str,
    ) -> list[float] | None:
        """Return the cached vector for one key, or ``None``."""
        result = await session.execute(
            select(EmbeddingVector)
            .where(EmbeddingVector.embeddings_config_id == embeddings_config_id)
            .where(EmbeddingVector.content_hash == content_hash)
        )
        row = result.scalars().first()
        return decode_vector(row.vector) if row is not None else None

    async def get_many(
        self,
        session: AsyncSession,
        embeddings_config_id: int,
        content_hashes: Sequence[str],
    ) -> dict[str, list[float]]:
        """Return ``{content_hash: vector}`` for every cached hash."""
        rows = await self._rows(session, embeddings_config_id, content_hashes)
        return {h: decode_vector(row.vector) for h, row in rows.items()}

    async def upsert(self, session: AsyncSession, records: Sequence[EmbeddingRecord]) -> int:
        """Insert new keys and overwrite existing ones. Returns count written."""
        if not records:
            return 0

        by_config: dict[int, list[EmbeddingRecord]] = {}
        for record in records:
            by_config.setdefault(record.embeddings_config_id, []).append(record)

        count = 0
        for config_id, group in by_config.items():
            existing = await self._rows(session, config_id, [r.content_hash for r in group])
            for record in group:
                blob = encode_vector(record.vector)
                row = existing.get(record.content_hash)
                if row is None:
                    row = EmbeddingVector(
                        embeddings_config_id=config_id,
                        content_hash=record.content_hash,
                        vector=blob,
                    )
                    existing[record.content_hash] = row
                else:
                    row.vector = blob
                session.add(row)
                count += 1

        await session.flush()
        return count

    async def _rows(
        self,
        session: AsyncSession,
        embeddings_config_id: int,
        content_hashes: Sequence[str],
    ) -> dict[str, EmbeddingVector]:
        unique = list(dict.fromkeys(content_hashes))
        rows: dict[str, EmbeddingVector] = {}
        for start in range(0, len(unique), LOOKUP_BATCH_SIZE):
            batch = unique[start : start + LOOKUP_BATCH_SIZE]
            result = await session.execute(
                select(EmbeddingVector)
                .where(EmbeddingVector.embeddings_config_id == embeddings_config_id)
                .where(EmbeddingVector.content_hash.in_(batch))  # type: ignore[attr-defined]
            )
            for row in result.scalars().all():
                rows[row.content_hash] = row
        return rows
