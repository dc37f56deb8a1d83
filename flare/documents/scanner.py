"""Scan a document directory for publishable files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Protocol

from ..models import Document

logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
    """Read-only provider of documents to publish."""

    def list_documents(self) -> list[Document]: ...

    def read_document(self, path: str) -> str: ...


class DocumentScanner:
    """Directory-backed document source.

    Documents are addressed by their POSIX path relative to the root,
    which is also where they land inside the mirror.
    """

    def __init__(
        self,
        root_path: str | Path,
        patterns: Iterable[str] = ("*.md",),
        skip_hidden: bool = True,
    ):
        self.root = Path(root_path)
        self.patterns = list(patterns)
        self.skip_hidden = skip_hidden

    def _is_skipped(self, file_path: Path) -> bool:
        if not self.skip_hidden:
            return False
        relative = file_path.relative_to(self.root)
        return any(part.startswith(".") for part in relative.parts)

    def scan(self) -> list[Path]:
        """Return matching files, sorted by relative path."""
        if not self.root.is_dir():
            logger.warning(f"Document root does not exist: {self.root}")
            return []

        found: set[Path] = set()
        for pattern in self.patterns:
            for file_path in self.root.rglob(pattern):
                if file_path.is_file() and not self._is_skipped(file_path):
                    found.add(file_path)
        return sorted(found, key=lambda p: p.relative_to(self.root).as_posix())

    def list_documents(self) -> list[Document]:
        documents = []
        for file_path in self.scan():
            logical_path = file_path.relative_to(self.root).as_posix()
            try:
                documents.append(
                    Document(path=logical_path, content=self.read_document(logical_path))
                )
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Failed to read {file_path}: {e}")
        return documents

    def read_document(self, path: str) -> str:
        # newline="" keeps line endings exactly as stored
        with open(self.root / path, encoding="utf-8", newline="") as f:
            return f.read()
