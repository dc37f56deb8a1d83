"""Document and change set models."""

from __future__ import annotations

from pathlib import PurePosixPath

from pydantic import BaseModel, Field


class Document(BaseModel):
    """A locally edited document, addressed by its logical path."""

    path: str = Field(..., description="Logical path, relative to the document root")
    content: str = Field(default="", description="Document body, treated as opaque text")

    @property
    def name(self) -> str:
        """Short display name (file name without extension).

        Example: "notes/hello.md" -> "hello"
        """
        return PurePosixPath(self.path).stem


class ChangeSet(BaseModel):
    """Ordered documents whose content differs from their mirror entry."""

    documents: list[Document] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def is_empty(self) -> bool:
        return not self.documents

    @property
    def paths(self) -> list[str]:
        return [doc.path for doc in self.documents]

    @property
    def names(self) -> list[str]:
        return [doc.name for doc in self.documents]
