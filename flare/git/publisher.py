"""Publish changed documents to GitHub as a commit and pull request."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from ..config import ApiSettings, Credentials, FlareConfig
from ..models import ChangeSet, PublishResult, PublishStatus
from .branch_orchestrator import BranchOrchestrator, BranchPlan
from .change_detector import ChangeDetector
from .errors import ConfigurationError, FlareError, PullRequestError, RemoteApiError
from .github_api import GitHubClient
from .naming import commit_message
from .state_resolver import RepositoryStateResolver

if TYPE_CHECKING:
    from ..documents import DocumentSource
    from .mirror_store import MirrorSnapshot, MirrorStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PublishContext:
    """Everything a single publish attempt depends on."""

    credentials: Credentials | None
    config: FlareConfig = field(default_factory=FlareConfig)
    clock: Callable[[], datetime] = _utc_now
    remote_url: str | None = None  # Overrides https://{host}/{owner}/{repo}.git


ClientFactory = Callable[[Credentials, ApiSettings], GitHubClient]


def default_client_factory(credentials: Credentials, api: ApiSettings) -> GitHubClient:
    return GitHubClient(credentials.token, base_url=api.base_url, timeout=api.timeout)


class Publisher:
    """Runs publish attempts: detect, branch, commit, push, open PR.

    Attempts are strictly sequential and must not overlap; the mirror is
    not locked.
    """

    def __init__(
        self,
        source: DocumentSource,
        mirror: MirrorStore,
        client_factory: ClientFactory | None = None,
    ):
        """Initialize publisher.

        Args:
            source: Provider of the documents to publish
            mirror: Local git mirror of the target repository
            client_factory: Builds the API client from credentials
        """
        self._source = source
        self._mirror = mirror
        self._client_factory = client_factory or default_client_factory
        self._detector = ChangeDetector(mirror)
        self._orchestrator = BranchOrchestrator(mirror)

    @property
    def mirror(self) -> MirrorStore:
        return self._mirror

    def pending_changes(self) -> ChangeSet:
        """Documents that a publish attempt would include right now."""
        return self._detector.detect_changes(self._source.list_documents())

    def publish(
        self,
        context: PublishContext,
        on_progress: Callable[[str], None] | None = None,
    ) -> PublishResult:
        """Run one publish attempt.

        Errors never propagate: every failure becomes a PublishResult
        with success=False. Pushed branches are left as they are.
        """
        try:
            return self._publish(context, on_progress)
        except ConfigurationError as e:
            logger.error(f"Not configured: {e}")
            return PublishResult(
                success=False, status=PublishStatus.NOT_CONFIGURED, message=str(e)
            )
        except PullRequestError as e:
            logger.error(f"PR creation failed for {e.branch}: {e}")
            return PublishResult(
                success=False,
                status=PublishStatus.FAILED,
                message=(
                    f"Failed to publish: {e}. Branch {e.branch} was pushed;"
                    " open a pull request from it manually."
                ),
                branch=e.branch,
            )
        except FlareError as e:
            logger.error(f"Publishing error: {e}")
            return PublishResult(
                success=False, status=PublishStatus.FAILED, message=f"Failed to publish: {e}"
            )
        except Exception as e:
            logger.exception("Unexpected publishing error")
            return PublishResult(
                success=False, status=PublishStatus.FAILED, message=f"Failed to publish: {e}"
            )

    def _publish(
        self,
        context: PublishContext,
        on_progress: Callable[[str], None] | None,
    ) -> PublishResult:
        def progress(message: str) -> None:
            logger.debug(message)
            if on_progress:
                on_progress(message)

        credentials = context.credentials
        if credentials is None:
            raise ConfigurationError("Please connect to GitHub first (flare connect)")

        self._mirror.ensure_ready(credentials, remote_url=context.remote_url)

        progress("Detecting changes...")
        change_set = self.pending_changes()
        if change_set.is_empty:
            return PublishResult(
                success=True,
                status=PublishStatus.NOTHING_TO_PUBLISH,
                message="Nothing to publish",
            )

        progress("Fetching from remote...")
        self._mirror.fetch()

        progress("Checking repository state...")
        client = self._client_factory(credentials, context.config.api)
        resolver = RepositoryStateResolver(client)
        state = resolver.resolve_state(credentials.owner, credentials.repo_name)

        progress("Preparing branch...")
        snapshot = self._mirror.snapshot()
        plan = self._orchestrator.prepare(state, context.clock())

        try:
            progress("Staging changes...")
            self._orchestrator.stage(change_set)
            files = self._mirror.staged_files()
            if not files:
                # Remote already holds this content
                return PublishResult(
                    success=True,
                    status=PublishStatus.NOTHING_TO_PUBLISH,
                    message="Nothing new to commit",
                    branch=plan.work_branch,
                )

            staged = ChangeSet(
                documents=[doc for doc in change_set.documents if doc.path in files]
            )
            files = staged.paths
            message = commit_message(staged, first_publish=not plan.opens_pull_request)
            progress("Committing changes...")
            self._mirror.commit(message)

            progress(f"Pushing {plan.work_branch}...")
            self._mirror.push(plan.work_branch)
        except Exception:
            self._restore(snapshot, plan)
            raise

        if not plan.opens_pull_request:
            return PublishResult(
                success=True,
                status=PublishStatus.FIRST_COMMIT,
                message=(
                    f"Published {len(files)} file(s) as the first commit"
                    f" on {plan.work_branch}"
                ),
                branch=plan.work_branch,
                files=files,
            )

        progress("Creating Pull Request...")
        return self._open_pull_request(client, credentials, context, plan, message, files)

    def _open_pull_request(
        self,
        client: GitHubClient,
        credentials: Credentials,
        context: PublishContext,
        plan: BranchPlan,
        title: str,
        files: list[str],
    ) -> PublishResult:
        api = context.config.api
        try:
            pr = client.create_pull_request(
                credentials.owner,
                credentials.repo_name,
                title=title,
                head=plan.work_branch,
                base=plan.default_branch,
                body=api.pr_body,
                auto_merge=api.auto_merge,
            )
        except RemoteApiError as e:
            raise PullRequestError(str(e), branch=plan.work_branch) from e

        merge_note = " with auto-merge enabled" if api.auto_merge else ""
        return PublishResult(
            success=True,
            status=PublishStatus.PULL_REQUEST_CREATED,
            message=f"Published {len(files)} file(s): created PR{merge_note}",
            branch=plan.work_branch,
            pr_url=pr.html_url,
            files=files,
        )

    def _restore(self, snapshot: MirrorSnapshot, plan: BranchPlan) -> None:
        """Drop an unpublished attempt so its documents stay pending."""
        try:
            self._mirror.restore(snapshot, discard_branch=plan.work_branch)
        except FlareError as e:
            logger.error(f"Could not restore mirror after failed attempt: {e}")
