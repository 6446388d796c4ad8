"""DocumentService — collections and their documents."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from sqlmodel import select

from ragsync.models.documents import Collection, CollectionDocument, Document

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


class DocumentService:
    """Stateless helpers for collection and document rows."""

    async def create_collection(
        self, session: AsyncSession, name: str, description: str = ""
    ) -> Collection:
        collection = Collection(name=name, description=description)
        session.add(collection)
        await session.flush()
        return collection

    async def get_or_create_document(
        self,
        session: AsyncSession,
        filepath: str,
        *,
        content_hash: str,
        size_bytes: int = 0,
    ) -> Document:
        """Reuse the document row with the same path and content, or create one."""
        result = await session.execute(
            select(Document)
            .where(Document.filepath == filepath)
            .where(Document.content_hash == content_hash)
        )
        document = result.scalars().first()
        if document is not None:
            return document

        document = Document(
            filepath=filepath,
            filename=Path(filepath).name,
            content_hash=content_hash,
            size_bytes=size_bytes,
        )
        session.add(document)
        await session.flush()
        return document

    async def add_to_collection(
        self, session: AsyncSession, collection_id: int, document_id: int
    ) -> bool:
        """Link a document to a collection. Returns False if it was already linked."""
        result = await session.execute(
            select(CollectionDocument)
            .where(CollectionDocument.collection_id == collection_id)
            .where(CollectionDocument.document_id == document_id)
        )
        if result.scalars().first() is not None:
            return False
        session.add(CollectionDocument(collection_id=collection_id, document_id=document_id))
        await session.flush()
        return True

    async def remove_from_collection(
        self, session: AsyncSession, collection_id: int, document_id: int
    ) -> bool:
        """Unlink a document from a collection; the document row is kept."""
        result = await session.execute(
            select(CollectionDocument)
            .where(CollectionDocument.collection_id == collection_id)
            .where(CollectionDocument.document_id == document_id)
        )
        link = result.scalars().first()
        if link is None:
            return False
        await session.delete(link)
        await session.flush()
        return True

    async def documents_in_collection(
        self, session: AsyncSession, collection_id: int
    ) -> list[Document]:
        """Documents of a collection, in the order they were added."""
        result = await session.execute(
            select(Document)
            .join(CollectionDocument, CollectionDocument.document_id == Document.id)  # type: ignore[arg-type]
            .where(CollectionDocument.collection_id == collection_id)
            .order_by(CollectionDocument.id)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def unlink_other_versions(
        self, session: AsyncSession, collection_id: int, filepath: str, keep_document_id: int
    ) -> int:
        """Unlink older rows for *filepath* from the collection, keeping *keep_document_id*."""
        result = await session.execute(
            select(CollectionDocument)
            .join(Document, CollectionDocument.document_id == Document.id)  # type: ignore[arg-type]
            .where(CollectionDocument.collection_id == collection_id)
            .where(Document.filepath == filepath)
            .where(CollectionDocument.document_id != keep_document_id)
        )
        links = list(result.scalars().all())
        for link in links:
            await session.delete(link)
        if links:
            await session.flush()
        return len(links)
