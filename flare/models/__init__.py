"""Data models for documents and publish attempts."""

from .document import ChangeSet, Document
from .publish import PublishResult, PublishStatus, RepositoryState

__all__ = [
    "ChangeSet",
    "Document",
    "PublishResult",
    "PublishStatus",
    "RepositoryState",
]
