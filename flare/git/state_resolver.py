"""Determine the default branch and emptiness of the remote repository."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..models import RepositoryState
from .errors import RemoteApiError, RemoteStateError

if TYPE_CHECKING:
    from .github_api import GitHubClient

logger = logging.getLogger(__name__)


class RepositoryKind(Enum):
    """Outcome of probing the remote repository."""

    EMPTY = "empty"  # Default branch does not exist yet (no commits)
    NON_EMPTY = "non_empty"
    ERROR = "error"


@dataclass
class ProbeResult:
    """Tagged probe outcome; state is set unless kind is ERROR."""

    kind: RepositoryKind
    state: RepositoryState | None = None
    error: str | None = None


class RepositoryStateResolver:
    """Resolve remote repository state.

    GitHub has no "empty repository" flag, so emptiness is inferred: the
    repository reports a default branch, and a 404 on that branch means
    nothing has been committed yet. Any other failure is an error.
    """

    def __init__(self, client: GitHubClient):
        self._client = client

    def probe(self, owner: str, name: str) -> ProbeResult:
        try:
            info = self._client.get_repository(owner, name)
        except RemoteApiError as e:
            return ProbeResult(RepositoryKind.ERROR, error=str(e))

        try:
            exists = self._client.get_branch(owner, name, info.default_branch)
        except RemoteApiError as e:
            return ProbeResult(RepositoryKind.ERROR, error=str(e))

        kind = RepositoryKind.NON_EMPTY if exists else RepositoryKind.EMPTY
        return ProbeResult(
            kind,
            state=RepositoryState(
                default_branch=info.default_branch,
                is_empty=kind is RepositoryKind.EMPTY,
            ),
        )

    def resolve_state(self, owner: str, name: str) -> RepositoryState:
        """Resolve state or raise.

        Raises:
            RemoteStateError: Metadata or branch lookup failed.
        """
        result = self.probe(owner, name)
        if result.kind is RepositoryKind.ERROR or result.state is None:
            raise RemoteStateError(
                f"Could not determine state of {owner}/{name}: {result.error}"
            )

        logger.info(
            f"{owner}/{name}: default branch {result.state.default_branch}"
            f" ({result.kind.value})"
        )
        return result.state
