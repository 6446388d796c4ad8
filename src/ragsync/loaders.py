"""Document loaders — turn a file on disk into ``LoadedPart`` items.

Loaders are picked by file extension.  PDF support needs the optional
``pdfplumber`` dependency.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ragsync.types import LoadedPart
from ragsync.vectors.adapter import clean_metadata

if TYPE_CHECKING:
    from collections.abc import Callable

try:
    import pdfplumber

    _HAS_PDFPLUMBER = True
except ImportError:  # pragma: no cover
    pdfplumber = None  # type: ignore[assignment]
    _HAS_PDFPLUMBER = False

logger = logging.getLogger(__name__)


class TextLoader:
    """Plain text: one part holding the whole file."""

    kind = "text"

    def __init__(self, *, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    def read(self, path: Path) -> str:
        return path.read_text(encoding=self._encoding, errors="replace")

    def load(self, path: str | Path) -> list[LoadedPart]:
        path = Path(path)
        text = self.read(path)
        return [LoadedPart(text=text, metadata={"source": str(path)})]

    def extract_meta(self, path: str | Path) -> dict[str, Any]:
        """Cheap descriptive metadata about the file."""
        path = Path(path)
        return {"source": str(path), self.kind: {"length": len(self.read(path))}}


class MarkdownLoader(TextLoader):
    """Markdown is loaded as text; the splitter's separators handle structure."""

    kind = "md"


class PDFLoader:
    """One part per page, text extracted with pdfplumber.

    Every page carries the document level ``pdf`` metadata plus its
    1-based page number under ``loc``.
    """

    def __init__(self) -> None:
        if not _HAS_PDFPLUMBER:
            msg = (
                "pdfplumber is required for PDF documents. "
                "Install it with: pip install ragsync[pdf]"
            )
            raise ImportError(msg)

    def load(self, path: str | Path) -> list[LoadedPart]:
        path = Path(path)
        parts: list[LoadedPart] = []
        with pdfplumber.open(path) as pdf:
            base = self._document_meta(path, pdf)
            for number, page in enumerate(pdf.pages, start=1):
                text = page.extract_text() or ""
                parts.append(
                    LoadedPart(text=text, metadata={**base, "loc": {"page_number": number}})
                )
        logger.debug("Loaded %d pages from %s", len(parts), path)
        return parts

    def extract_meta(self, path: str | Path) -> dict[str, Any]:
        path = Path(path)
        with pdfplumber.open(path) as pdf:
            return self._document_meta(path, pdf)

    @staticmethod
    def _document_meta(path: Path, pdf: Any) -> dict[str, Any]:
        info = {str(k): str(v) for k, v in (pdf.metadata or {}).items() if v is not None}
        return clean_metadata(
            {"source": str(path), "pdf": {"info": info, "total_pages": len(pdf.pages)}}
        )


Loader = TextLoader | PDFLoader

_LOADERS: dict[str, Callable[[], Loader]] = {
    ".txt": TextLoader,
    ".md": MarkdownLoader,
    ".markdown": MarkdownLoader,
    ".pdf": PDFLoader,
}


def loader_for(path: str | Path) -> Loader:
    """Return the loader for *path*'s extension; unknown extensions read as text."""
    factory = _LOADERS.get(Path(path).suffix.lower(), TextLoader)
    return factory()
