"""Content hashing for chunk cache keys and change detection."""

from __future__ import annotations

import hashlib
from pathlib import Path


def content_hash(content: str) -> str:
    """Return the hex MD5 digest of *content* (UTF-8).

    Used both as the embedding-cache key and as the vector-store record id,
    so it must stay stable across releases.
    """
    return hashlib.md5(content.encode("utf-8")).hexdigest()


def file_hash(path: str | Path, *, block_size: int = 1 << 16) -> str:
    """Return the hex MD5 digest of the file at *path*, read in blocks."""
    digest = hashlib.md5()
    with Path(path).open("rb") as f:
        for block in iter(lambda: f.read(block_size), b""):
            digest.update(block)
    return digest.hexdigest()
