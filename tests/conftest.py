"""Shared pytest fixtures for flare tests."""

from __future__ import annotations

import shutil
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from flare.config import Credentials
from flare.git import GitHubClient, MirrorStore, PullRequest, RepositoryInfo
from flare.models import Document

FIXED_NOW = datetime(2024, 5, 1, 9, 30, 15, 123000, tzinfo=timezone.utc)
FIXED_BRANCH = "post-2024-05-01T09-30-15-123Z"


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "git: mark test as requiring the git executable"
    )


def pytest_collection_modifyitems(config, items):
    """Skip git-backed tests when git is not installed."""
    if shutil.which("git"):
        return
    skip_git = pytest.mark.skip(reason="git executable not available")
    for item in items:
        if "git" in item.keywords:
            item.add_marker(skip_git)


class RecordingMirror(MirrorStore):
    """MirrorStore whose git commands are recorded instead of executed.

    Mirror entries are real files under the mirror path. Commands whose
    leading arguments match a tuple in ``failures`` report failure. Paths
    in ``identical_paths`` stage as unchanged, like content the remote
    already holds.
    """

    def __init__(self, path: Path, failures: tuple[tuple[str, ...], ...] = ()):
        super().__init__(path)
        self.commands: list[list[str]] = []
        self.failures = set(failures)
        self.identical_paths: set[str] = set()
        self._remote_url: str | None = None
        self._staged: list[str] = []

    def run_git_command(self, args, network=False):
        args = list(args)
        self.commands.append(args)
        for prefix in self.failures:
            if tuple(args[: len(prefix)]) == prefix:
                return False, "simulated failure"

        if args[0] == "init":
            (self.path / ".git").mkdir(parents=True, exist_ok=True)
        elif args[:2] == ["remote", "add"]:
            self._remote_url = args[3]
        elif args[:2] == ["remote", "get-url"]:
            return self._remote_url is not None, self._remote_url or ""
        elif args[0] == "add":
            path = args[-1]
            if path not in self.identical_paths and path not in self._staged:
                self._staged.append(path)
        elif args[:3] == ["diff", "--cached", "--name-only"]:
            return True, "".join(f"{path}\0" for path in self._staged)
        elif args[:2] == ["branch", "--show-current"]:
            return True, "main\n"
        elif args[0] in ("commit", "read-tree"):
            self._staged = []
        return True, ""

    def ran(self, *prefix: str) -> bool:
        """Whether any recorded command starts with prefix."""
        return any(tuple(cmd[: len(prefix)]) == prefix for cmd in self.commands)


class InMemorySource:
    """Document source backed by a list."""

    def __init__(self, documents: list[Document] | None = None):
        self.documents = list(documents or [])

    def list_documents(self) -> list[Document]:
        return list(self.documents)

    def read_document(self, path: str) -> str:
        for doc in self.documents:
            if doc.path == path:
                return doc.content
        raise FileNotFoundError(path)

    def put(self, path: str, content: str) -> None:
        self.documents = [d for d in self.documents if d.path != path]
        self.documents.append(Document(path=path, content=content))


@pytest.fixture
def credentials():
    return Credentials(token="ghs_test", owner="alice", repo_name="blog")


@pytest.fixture
def mirror(tmp_path):
    return RecordingMirror(tmp_path / "mirror")


@pytest.fixture
def source():
    return InMemorySource()


@pytest.fixture
def github_client():
    """Mock GitHubClient for a non-empty repository with default branch main."""
    client = MagicMock(spec=GitHubClient)
    client.get_repository.return_value = RepositoryInfo(
        full_name="alice/blog", default_branch="main"
    )
    client.get_branch.return_value = True
    client.create_pull_request.return_value = PullRequest(
        number=7,
        html_url="https://github.com/alice/blog/pull/7",
        head=FIXED_BRANCH,
        base="main",
    )
    return client
