"""Local document source."""

from .scanner import DocumentScanner, DocumentSource

__all__ = ["DocumentScanner", "DocumentSource"]
