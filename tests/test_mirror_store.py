"""Tests for MirrorStore, including end-to-end runs against a local bare remote."""

from __future__ import annotations

import base64
import subprocess
from unittest.mock import MagicMock

import pytest
from conftest import FIXED_BRANCH, FIXED_NOW, InMemorySource

from flare.config import GitSettings
from flare.git import (
    GitHubClient,
    GitOperationError,
    GitTimeoutError,
    MirrorStore,
    PublishContext,
    Publisher,
    PullRequest,
    RepositoryInfo,
)
from flare.models import PublishStatus


def _git(*args: str) -> str:
    result = subprocess.run(["git", *args], capture_output=True, text=True, check=True)
    return result.stdout.strip()


class TestEntries:
    def test_read_missing_entry(self, tmp_path):
        assert MirrorStore(tmp_path).read_entry("nope.md") is None

    def test_write_then_read_bytes(self, tmp_path):
        store = MirrorStore(tmp_path)
        store.write_entry("dir/a.md", "héllo\r\n")
        assert store.read_entry("dir/a.md") == "héllo\r\n".encode("utf-8")

    def test_path_outside_mirror_is_rejected(self, tmp_path):
        store = MirrorStore(tmp_path / "mirror")
        with pytest.raises(ValueError):
            store.write_entry("../escape.md", "x")

    def test_remote_url(self, tmp_path, credentials):
        store = MirrorStore(tmp_path, GitSettings(host="git.example.com"))
        assert store.remote_url_for(credentials) == "https://git.example.com/alice/blog.git"


class TestEnvironment:
    def test_token_is_sent_as_header_not_in_url(self, tmp_path, credentials):
        store = MirrorStore(tmp_path)
        store._token = credentials.token
        env = store._environment()

        assert env["GIT_TERMINAL_PROMPT"] == "0"
        assert env["GIT_CONFIG_KEY_0"] == "http.https://github.com/.extraheader"
        encoded = env["GIT_CONFIG_VALUE_0"].split()[-1]
        assert base64.b64decode(encoded).decode() == "x-access-token:ghs_test"

    def test_no_header_without_token(self, tmp_path):
        env = MirrorStore(tmp_path)._environment()
        assert env.get("GIT_CONFIG_KEY_0") != "http.https://github.com/.extraheader"


class TestTimeouts:
    """A git command that runs past its timeout is reported as GitTimeoutError."""

    @pytest.fixture
    def hanging_git(self, monkeypatch):
        calls = []

        def run(cmd, **kwargs):
            calls.append((cmd, kwargs["timeout"]))
            if "fetch" in cmd:
                raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        monkeypatch.setattr("flare.git.mirror_store.subprocess.run", run)
        return calls

    def test_local_command_timeout(self, tmp_path, monkeypatch):
        def run(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

        monkeypatch.setattr("flare.git.mirror_store.subprocess.run", run)
        store = MirrorStore(tmp_path, GitSettings(command_timeout=5))

        with pytest.raises(GitTimeoutError, match="git status timed out after 5s"):
            store.run_git_command(["status"])

    def test_network_command_uses_network_timeout(self, tmp_path, hanging_git):
        store = MirrorStore(tmp_path, GitSettings(network_timeout=60))

        with pytest.raises(GitTimeoutError, match="after 60s"):
            store.fetch()
        assert hanging_git[-1][1] == 60

    def test_publish_reports_timeout(self, tmp_path, hanging_git, credentials):
        source = InMemorySource()
        source.put("a.md", "A")
        client_factory = MagicMock()
        publisher = Publisher(source, MirrorStore(tmp_path / "mirror"), client_factory)

        result = publisher.publish(PublishContext(credentials=credentials))

        assert result.success is False
        assert result.status is PublishStatus.FAILED
        assert "timed out" in result.message
        client_factory.assert_not_called()


@pytest.mark.git
class TestLifecycle:
    def test_ensure_ready_initializes(self, tmp_path, credentials):
        store = MirrorStore(tmp_path / "mirror")
        store.ensure_ready(credentials)

        assert store.is_initialized()
        assert store.get_remote_url() == "https://github.com/alice/blog.git"

    def test_identity_change_resets(self, tmp_path, credentials):
        store = MirrorStore(tmp_path / "mirror")
        store.ensure_ready(credentials, remote_url="https://github.com/bob/other.git")
        store.write_entry("a.md", "A")

        store.ensure_ready(credentials)

        assert store.read_entry("a.md") is None
        assert store.get_remote_url() == "https://github.com/alice/blog.git"

    def test_same_identity_keeps_entries(self, tmp_path, credentials):
        store = MirrorStore(tmp_path / "mirror")
        store.ensure_ready(credentials)
        store.write_entry("a.md", "A")

        store.ensure_ready(credentials)

        assert store.read_entry("a.md") == b"A"

    def test_failed_command_raises(self, tmp_path, credentials):
        store = MirrorStore(tmp_path / "mirror")
        store.ensure_ready(credentials)
        with pytest.raises(GitOperationError) as exc_info:
            store.commit("nothing staged")
        assert exc_info.value.git_args == ["commit", "-m", "nothing staged"]

    def test_restore_unborn_branch_drops_commit(self, tmp_path, credentials):
        store = MirrorStore(tmp_path / "mirror")
        store.ensure_ready(credentials)
        snapshot = store.snapshot()
        assert snapshot.head is None

        store.write_entry("a.md", "A")
        store.add("a.md")
        assert store.staged_files() == ["a.md"]
        store.commit("Add blog post: a")
        store.write_entry("b.md", "B")

        store.restore(snapshot)

        assert store.read_entry("a.md") is None
        assert store.read_entry("b.md") is None
        assert store.snapshot() == snapshot


@pytest.mark.git
class TestPublishAgainstBareRemote:
    """Full publish attempts with real git and a mocked GitHub API."""

    @pytest.fixture
    def remote(self, tmp_path):
        path = tmp_path / "remote.git"
        _git("init", "--bare", str(path))
        return path

    @pytest.fixture
    def client(self):
        client = MagicMock(spec=GitHubClient)
        client.get_repository.return_value = RepositoryInfo(
            full_name="alice/blog", default_branch="main"
        )
        client.create_pull_request.return_value = PullRequest(
            number=1, html_url="https://github.com/alice/blog/pull/1", head="", base="main"
        )
        return client

    def test_first_commit_then_pull_request(self, tmp_path, remote, client, credentials):
        source = InMemorySource()
        store = MirrorStore(tmp_path / "mirror")
        publisher = Publisher(source, store, client_factory=lambda creds, api: client)
        context = PublishContext(
            credentials=credentials, clock=lambda: FIXED_NOW, remote_url=str(remote)
        )

        # Empty remote: first commit lands on main, no PR
        client.get_branch.return_value = False
        source.put("hello.md", "Hi")
        first = publisher.publish(context)

        assert first.status is PublishStatus.FIRST_COMMIT, first.message
        assert _git("--git-dir", str(remote), "log", "-1", "--format=%s", "main") == (
            "Add blog post: hello"
        )
        client.create_pull_request.assert_not_called()

        # Remote now has main: change goes to a publish branch plus PR
        client.get_branch.return_value = True
        source.put("hello.md", "Hi again")
        second = publisher.publish(context)

        assert second.status is PublishStatus.PULL_REQUEST_CREATED, second.message
        assert second.branch == FIXED_BRANCH
        assert _git(
            "--git-dir", str(remote), "log", "-1", "--format=%s", FIXED_BRANCH
        ) == "Update post: hello"
        # main did not receive the update directly
        assert _git("--git-dir", str(remote), "show", "main:hello.md") == "Hi"
        assert client.create_pull_request.call_args.kwargs["base"] == "main"

        assert publisher.pending_changes().is_empty

    def _push_while_offline(self, monkeypatch, store, remote):
        """Make the remote unreachable for the next push only."""
        real_push = store.push
        offline = remote.with_name("offline.git")

        def push(branch):
            remote.rename(offline)
            try:
                real_push(branch)
            finally:
                offline.rename(remote)

        monkeypatch.setattr(store, "push", push)

    def test_failed_push_is_published_on_retry(
        self, tmp_path, remote, client, credentials, monkeypatch
    ):
        source = InMemorySource()
        store = MirrorStore(tmp_path / "mirror")
        publisher = Publisher(source, store, client_factory=lambda creds, api: client)
        context = PublishContext(
            credentials=credentials, clock=lambda: FIXED_NOW, remote_url=str(remote)
        )
        client.get_branch.return_value = False
        source.put("hello.md", "Hi")

        self._push_while_offline(monkeypatch, store, remote)
        failed = publisher.publish(context)
        monkeypatch.undo()

        assert failed.status is PublishStatus.FAILED
        assert "git push" in failed.message
        assert store.read_entry("hello.md") is None
        assert publisher.pending_changes().paths == ["hello.md"]

        retried = publisher.publish(context)

        assert retried.status is PublishStatus.FIRST_COMMIT, retried.message
        assert retried.files == ["hello.md"]
        assert _git("--git-dir", str(remote), "show", "main:hello.md") == "Hi"

    def test_failed_pull_request_push_is_published_on_retry(
        self, tmp_path, remote, client, credentials, monkeypatch
    ):
        source = InMemorySource()
        store = MirrorStore(tmp_path / "mirror")
        publisher = Publisher(source, store, client_factory=lambda creds, api: client)
        context = PublishContext(
            credentials=credentials, clock=lambda: FIXED_NOW, remote_url=str(remote)
        )
        client.get_branch.return_value = False
        source.put("hello.md", "Hi")
        assert publisher.publish(context).status is PublishStatus.FIRST_COMMIT

        client.get_branch.return_value = True
        source.put("hello.md", "Hi again")
        self._push_while_offline(monkeypatch, store, remote)
        failed = publisher.publish(context)
        monkeypatch.undo()

        assert failed.status is PublishStatus.FAILED
        assert store.read_entry("hello.md") == b"Hi"
        client.create_pull_request.assert_not_called()

        retried = publisher.publish(context)

        assert retried.status is PublishStatus.PULL_REQUEST_CREATED, retried.message
        assert _git("--git-dir", str(remote), "show", f"{FIXED_BRANCH}:hello.md") == "Hi again"
