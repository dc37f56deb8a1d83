"""Establish the local branch a publish attempt commits to."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Callable

from .errors import GitOperationError
from .naming import publish_branch_name

if TYPE_CHECKING:
    from ..models import ChangeSet, RepositoryState
    from .mirror_store import MirrorStore

logger = logging.getLogger(__name__)


BranchStrategy = tuple[str, Callable[["MirrorStore", str], bool]]


def _checkout(mirror: MirrorStore, branch: str) -> bool:
    return mirror.checkout(branch)


def _create(mirror: MirrorStore, branch: str) -> bool:
    return mirror.create_branch(branch)


def _checkout_and_pull(mirror: MirrorStore, branch: str) -> bool:
    return mirror.checkout(branch) and mirror.pull(branch)


def _force_tracking(mirror: MirrorStore, branch: str) -> bool:
    return mirror.force_branch(branch, track=f"{mirror.REMOTE}/{branch}")


def _force_plain(mirror: MirrorStore, branch: str) -> bool:
    return mirror.force_branch(branch)


# Tried in order; the first strategy that succeeds wins.
EMPTY_REPO_STRATEGIES: list[BranchStrategy] = [
    ("checkout", _checkout),
    ("create", _create),
]

NON_EMPTY_REPO_STRATEGIES: list[BranchStrategy] = [
    ("checkout+pull", _checkout_and_pull),
    ("force-create tracking", _force_tracking),
    ("force-create plain", _force_plain),
]


class BranchMode(Enum):
    """Which path the publish attempt takes."""

    EMPTY_REPO = "empty_repo"  # First commit lands on the default branch
    NON_EMPTY_REPO = "non_empty_repo"  # Commit on a publish branch, then PR


@dataclass
class BranchPlan:
    """Branches chosen for a publish attempt."""

    mode: BranchMode
    default_branch: str
    work_branch: str  # Branch that receives the commit and gets pushed
    strategy: str  # Strategy that established the default branch

    @property
    def opens_pull_request(self) -> bool:
        return self.mode is BranchMode.NON_EMPTY_REPO


class BranchOrchestrator:
    """State machine for branch setup, entered once per publish attempt.

    EMPTY_REPO: check out or create the default branch and commit there,
    since a PR cannot target a branch that does not exist upstream.

    NON_EMPTY_REPO: bring the default branch up to date (falling back
    when tracking refs or local branches are missing), then branch off
    a fresh post-<timestamp> publish branch.
    """

    def __init__(self, mirror: MirrorStore):
        self._mirror = mirror

    def establish(self, branch: str, strategies: list[BranchStrategy]) -> str:
        """Run strategies in order until one succeeds.

        Returns:
            Name of the strategy that succeeded.

        Raises:
            GitOperationError: Every strategy failed.
        """
        for index, (name, strategy) in enumerate(strategies):
            if strategy(self._mirror, branch):
                if index > 0:
                    logger.warning(f"Established {branch} via fallback: {name}")
                return name
            logger.debug(f"Strategy {name} failed for {branch}")

        tried = ", ".join(name for name, _ in strategies)
        raise GitOperationError(
            ["checkout", branch], f"could not establish branch (tried: {tried})"
        )

    def prepare(self, state: RepositoryState, now: datetime) -> BranchPlan:
        default_branch = state.default_branch

        if state.is_empty:
            strategy = self.establish(default_branch, EMPTY_REPO_STRATEGIES)
            return BranchPlan(
                mode=BranchMode.EMPTY_REPO,
                default_branch=default_branch,
                work_branch=default_branch,
                strategy=strategy,
            )

        strategy = self.establish(default_branch, NON_EMPTY_REPO_STRATEGIES)
        publish_branch = publish_branch_name(now)
        if not self._mirror.create_branch(publish_branch):
            raise GitOperationError(
                ["checkout", "-b", publish_branch], "could not create publish branch"
            )

        return BranchPlan(
            mode=BranchMode.NON_EMPTY_REPO,
            default_branch=default_branch,
            work_branch=publish_branch,
            strategy=strategy,
        )

    def stage(self, change_set: ChangeSet) -> list[str]:
        """Materialize every changed document into the mirror and stage it."""
        staged = []
        for document in change_set.documents:
            self._mirror.write_entry(document.path, document.content)
            self._mirror.add(document.path)
            staged.append(document.path)
        logger.info(f"Staged {len(staged)} file(s)")
        return staged
