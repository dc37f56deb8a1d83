"""Local git mirror of the publishing repository."""

from __future__ import annotations

import base64
import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..config import GitSettings
from .errors import GitOperationError, GitTimeoutError

if TYPE_CHECKING:
    from ..config import Credentials

logger = logging.getLogger(__name__)


class MirrorStore:
    """Isolated working copy used only for git operations.

    Mirror entries (files in the working tree) are the baseline the
    change detector compares documents against.
    """

    REMOTE = "origin"

    def __init__(self, mirror_path: Path, settings: GitSettings | None = None):
        """Initialize mirror store.

        Args:
            mirror_path: Directory holding the working copy
            settings: Git settings (defaults if None)
        """
        self._path = Path(mirror_path)
        self._settings = settings or GitSettings()
        self._token: str | None = None

    @property
    def path(self) -> Path:
        return self._path

    def remote_url_for(self, credentials: Credentials) -> str:
        """Pattern: https://{host}/{owner}/{repo}.git"""
        return (
            f"https://{self._settings.host}/"
            f"{credentials.owner}/{credentials.repo_name}.git"
        )

    # ------------------------------------------------------------------
    # Command execution
    # ------------------------------------------------------------------

    def _environment(self) -> dict[str, str]:
        env = os.environ.copy()
        # Fail fast instead of prompting for credentials
        env["GIT_TERMINAL_PROMPT"] = "0"
        if self._token:
            basic = base64.b64encode(f"x-access-token:{self._token}".encode()).decode()
            env["GIT_CONFIG_COUNT"] = "1"
            env["GIT_CONFIG_KEY_0"] = f"http.https://{self._settings.host}/.extraheader"
            env["GIT_CONFIG_VALUE_0"] = f"AUTHORIZATION: basic {basic}"
        return env

    def run_git_command(
        self, args: list[str], network: bool = False
    ) -> tuple[bool, str]:
        """Run a git command inside the mirror.

        Args:
            args: git arguments (without the leading "git")
            network: Use the network timeout instead of the local one

        Returns:
            (success, output) tuple; output is stderr on failure.

        Raises:
            GitTimeoutError: The command exceeded its timeout.
            GitOperationError: git is not installed.
        """
        timeout = (
            self._settings.network_timeout if network else self._settings.command_timeout
        )
        try:
            result = subprocess.run(
                ["git", "-C", str(self._path), *args],
                capture_output=True,
                text=True,
                timeout=timeout,
                env=self._environment(),
            )
        except subprocess.TimeoutExpired as e:
            raise GitTimeoutError(f"git {' '.join(args)} timed out after {timeout}s") from e
        except FileNotFoundError as e:
            raise GitOperationError(args, "git executable not found") from e

        if result.returncode == 0:
            return True, result.stdout
        logger.debug(f"git {' '.join(args)} failed: {result.stderr.strip()}")
        return False, result.stderr or result.stdout

    def _require(self, args: list[str], network: bool = False) -> str:
        success, output = self.run_git_command(args, network=network)
        if not success:
            raise GitOperationError(args, output)
        return output

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def is_initialized(self) -> bool:
        return (self._path / ".git").exists()

    def get_remote_url(self) -> str | None:
        if not self.is_initialized():
            return None
        success, output = self.run_git_command(["remote", "get-url", self.REMOTE])
        return output.strip() if success else None

    def init(self, remote_url: str) -> None:
        """Create an empty repository with origin pointing at remote_url."""
        self._path.mkdir(parents=True, exist_ok=True)
        self._require(["init"])
        self._require(["remote", "add", self.REMOTE, remote_url])
        self._require(["config", "user.name", self._settings.user_name])
        self._require(["config", "user.email", self._settings.user_email])
        self._require(["config", "pull.rebase", "false"])
        logger.info(f"Initialized mirror at {self._path} for {remote_url}")

    def reset(self, remote_url: str | None = None) -> None:
        """Delete the mirror entirely, optionally re-initializing it.

        No mirror entry survives a reset, so every document becomes new.
        """
        if self._path.exists():
            shutil.rmtree(self._path)
            logger.info(f"Removed mirror at {self._path}")
        if remote_url:
            self.init(remote_url)

    def ensure_ready(
        self, credentials: Credentials, remote_url: str | None = None
    ) -> None:
        """Make the mirror usable for the given repository identity.

        A mirror bound to a different remote is reset first.
        """
        self._token = credentials.token
        remote_url = remote_url or self.remote_url_for(credentials)

        if not self.is_initialized():
            self.reset(remote_url)
            return

        current = self.get_remote_url()
        if current != remote_url:
            logger.info(f"Repository changed ({current} -> {remote_url}), resetting mirror")
            self.reset(remote_url)

    # ------------------------------------------------------------------
    # Mirror entries
    # ------------------------------------------------------------------

    def _entry_path(self, path: str) -> Path:
        entry = (self._path / path).resolve()
        if not entry.is_relative_to(self._path.resolve()):
            raise ValueError(f"Document path escapes the mirror: {path}")
        return entry

    def read_entry(self, path: str) -> bytes | None:
        """Read a mirror entry.

        Returns:
            Entry bytes, or None if no entry exists.

        Raises:
            OSError: The entry exists but cannot be read.
        """
        entry = self._entry_path(path)
        if not entry.exists():
            return None
        return entry.read_bytes()

    def write_entry(self, path: str, content: str) -> Path:
        """Materialize document content at path, creating parent directories."""
        entry = self._entry_path(path)
        entry.parent.mkdir(parents=True, exist_ok=True)
        entry.write_bytes(content.encode("utf-8"))
        return entry

    # ------------------------------------------------------------------
    # Git operations
    # ------------------------------------------------------------------

    def fetch(self) -> None:
        self._require(["fetch", self.REMOTE], network=True)
        logger.info(f"Fetched {self.REMOTE}")

    def checkout(self, branch: str) -> bool:
        success, output = self.run_git_command(["checkout", branch])
        if success:
            logger.info(f"Checked out: {branch}")
        else:
            logger.debug(f"Checkout of {branch} failed: {output.strip()}")
        return success

    def create_branch(self, branch: str) -> bool:
        """Create and check out a new branch (git checkout -b)."""
        success, output = self.run_git_command(["checkout", "-b", branch])
        if success:
            logger.info(f"Created branch: {branch}")
        else:
            logger.debug(f"Branch creation of {branch} failed: {output.strip()}")
        return success

    def force_branch(self, branch: str, track: str | None = None) -> bool:
        """Force-create a branch, optionally tracking a remote ref (git checkout -B)."""
        args = ["checkout", "-B", branch]
        if track:
            args += ["--track", track]
        success, output = self.run_git_command(args)
        if success:
            logger.info(f"Force-created branch: {branch}" + (f" tracking {track}" if track else ""))
        else:
            logger.debug(f"Force-create of {branch} failed: {output.strip()}")
        return success

    def pull(self, branch: str) -> bool:
        success, output = self.run_git_command(["pull", self.REMOTE, branch], network=True)
        if success:
            logger.info(f"Pulled {self.REMOTE}/{branch}")
        else:
            logger.debug(f"Pull of {branch} failed: {output.strip()}")
        return success

    def add(self, path: str) -> None:
        self._require(["add", "--", path])

    def staged_files(self) -> list[str]:
        """Paths whose staged content differs from HEAD (all paths when unborn)."""
        output = self._require(["diff", "--cached", "--name-only", "-z"])
        return [path for path in output.split("\0") if path]

    def commit(self, message: str) -> None:
        self._require(["commit", "-m", message])
        logger.info(f"Committed: {message}")

    def push(self, branch: str) -> None:
        self._require(["push", "-u", self.REMOTE, branch], network=True)
        logger.info(f"Pushed to {self.REMOTE}/{branch}")

    def get_current_branch(self) -> str | None:
        success, output = self.run_git_command(["branch", "--show-current"])
        if not success:
            return None
        return output.strip() or None

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def snapshot(self) -> MirrorSnapshot:
        """Record the checked-out branch and commit before an attempt."""
        success, output = self.run_git_command(["rev-parse", "--verify", "-q", "HEAD"])
        head = output.strip() if success else ""
        return MirrorSnapshot(branch=self.get_current_branch(), head=head or None)

    def restore(self, snapshot: MirrorSnapshot, discard_branch: str | None = None) -> None:
        """Put the working tree, index and branch back to a snapshot.

        Content written or committed since the snapshot is dropped, so
        the change detector sees those documents as changed again.
        discard_branch is deleted locally unless it is the snapshot branch.

        Raises:
            GitOperationError: The mirror could not be restored.
        """
        if snapshot.head is None:
            # Unborn branch: point HEAD back at it and empty the index
            ref = f"refs/heads/{snapshot.branch}"
            self._require(["symbolic-ref", "HEAD", ref])
            self.run_git_command(["update-ref", "-d", ref])
            self._require(["read-tree", "--empty"])
        elif snapshot.branch:
            self._require(["checkout", "-f", "-B", snapshot.branch, snapshot.head])
        else:
            self._require(["checkout", "-f", "--detach", snapshot.head])

        if discard_branch and discard_branch != snapshot.branch:
            self.run_git_command(["branch", "-D", discard_branch])
        self._require(["clean", "-fd"])
        logger.info(f"Restored mirror to {snapshot.head or 'empty'} on {snapshot.branch}")


@dataclass(frozen=True)
class MirrorSnapshot:
    """Checked-out branch and commit of the mirror at one point in time.

    head is None while the branch has no commits yet.
    """

    branch: str | None
    head: str | None
