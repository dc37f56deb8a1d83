"""Models describing remote state and publish outcomes."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class RepositoryState(BaseModel):
    """Remote repository state, fetched fresh for every publish attempt."""

    default_branch: str
    is_empty: bool = False


class PublishStatus(str, Enum):
    """Outcome kind of a publish attempt."""

    PULL_REQUEST_CREATED = "pull_request_created"
    FIRST_COMMIT = "first_commit"  # Seeded an empty repository
    NOTHING_TO_PUBLISH = "nothing_to_publish"
    NOT_CONFIGURED = "not_configured"
    FAILED = "failed"


class PublishResult(BaseModel):
    """Result of a publish attempt."""

    success: bool
    status: PublishStatus
    message: str
    branch: str | None = None
    pr_url: str | None = None
    files: list[str] = Field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.files)
