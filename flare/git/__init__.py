"""Git and GitHub integration for publishing documents."""

from .branch_orchestrator import BranchMode, BranchOrchestrator, BranchPlan
from .change_detector import ChangeDetector
from .errors import (
    ConfigurationError,
    FlareError,
    GitOperationError,
    GitTimeoutError,
    PublishTimeoutError,
    PullRequestError,
    RemoteApiError,
    RemoteStateError,
    RemoteTimeoutError,
)
from .github_api import GitHubClient, PullRequest, RepositoryInfo
from .mirror_store import MirrorSnapshot, MirrorStore
from .publisher import PublishContext, Publisher
from .state_resolver import ProbeResult, RepositoryKind, RepositoryStateResolver

__all__ = [
    "BranchMode",
    "BranchOrchestrator",
    "BranchPlan",
    "ChangeDetector",
    "ConfigurationError",
    "FlareError",
    "GitHubClient",
    "GitOperationError",
    "GitTimeoutError",
    "MirrorSnapshot",
    "MirrorStore",
    "ProbeResult",
    "PublishContext",
    "PublishTimeoutError",
    "Publisher",
    "PullRequest",
    "PullRequestError",
    "RemoteApiError",
    "RemoteStateError",
    "RemoteTimeoutError",
    "RepositoryInfo",
    "RepositoryKind",
    "RepositoryStateResolver",
]
