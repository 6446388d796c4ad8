"""Shared fixtures for ragsync tests."""

from __future__ import annotations

import hashlib
import math
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

import ragsync.models  # noqa: F401  (registers the tables)
from ragsync.storage.database import DatabaseStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine


FAKE_DIM = 8


def hash_vector(text: str, dim: int = FAKE_DIM) -> list[float]:
    """Deterministic unit vector from the text's sha256 digest."""
    digest = hashlib.sha256(text.encode()).digest()
    raw = [float(b) + 1.0 for b in digest[:dim]]
    norm = math.sqrt(sum(x * x for x in raw))
    return [x / norm for x in raw]


class FakeEmbeddingProvider:
    """Deterministic provider that records every batch it is asked to embed."""

    def __init__(self, dim: int = FAKE_DIM) -> None:
        self._dim = dim
        self.batches: list[list[str]] = []
        self.closed = False

    async def embed(self, text: str) -> list[float]:
        return hash_vector(text, self._dim)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batches.append(list(texts))
        return [hash_vector(t, self._dim) for t in texts]

    @property
    def dimensions(self) -> int:
        return self._dim

    @property
    def model_name(self) -> str:
        return "fake-hash"

    @property
    def embedded_texts(self) -> list[str]:
        return [t for batch in self.batches for t in batch]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Async in-memory SQLite engine with all tables created."""
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> Callable[..., AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def async_session(
    session_factory: Callable[..., AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Async SQLModel session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def db_store(session_factory: Callable[..., AsyncSession]) -> DatabaseStore:
    return DatabaseStore(session_factory)


@pytest.fixture
def provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()
