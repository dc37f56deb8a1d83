"""Detect documents that differ from their mirror entries."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from ..models import ChangeSet, Document

if TYPE_CHECKING:
    from .mirror_store import MirrorStore

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Compare documents against the mirror, byte for byte.

    Read-only: mirror entries are written by the publisher after
    detection.
    """

    def __init__(self, mirror: MirrorStore):
        self._mirror = mirror

    def is_changed(self, document: Document) -> bool:
        """Check a single document.

        New documents (no mirror entry) always count as changed, and so
        does any document whose entry cannot be read.
        """
        try:
            entry = self._mirror.read_entry(document.path)
        except OSError as e:
            logger.warning(f"Cannot read mirror entry {document.path}, treating as changed: {e}")
            return True

        if entry is None:
            return True
        return entry != document.content.encode("utf-8")

    def detect_changes(self, documents: Iterable[Document]) -> ChangeSet:
        """Return changed documents, in the order given."""
        changed = [doc for doc in documents if self.is_changed(doc)]
        logger.info(f"Detected {len(changed)} changed document(s)")
        return ChangeSet(documents=changed)
