"""Exceptions raised while publishing documents."""

from __future__ import annotations


class FlareError(Exception):
    """Base class for all publish errors.

    Caught once by the publisher and turned into a user-facing message.
    """


class ConfigurationError(FlareError):
    """No credentials are stored, or they are unusable."""


class RemoteApiError(FlareError):
    """GitHub REST API answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.body:
            return f"{self.args[0]}: {self.body}"
        return self.args[0]


class RemoteStateError(FlareError):
    """Repository metadata could not be determined."""


class GitOperationError(FlareError):
    """A git command failed outside a documented fallback."""

    def __init__(self, args: list[str], stderr: str = ""):
        self.git_args = list(args)
        self.stderr = stderr.strip()
        command = " ".join(self.git_args)
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"git {command} failed{detail}")


class PullRequestError(FlareError):
    """GitHub rejected pull request creation.

    The publish branch is already pushed when this is raised, so a pull
    request can still be opened manually from it.
    """

    def __init__(self, message: str, branch: str):
        super().__init__(message)
        self.branch = branch


class PublishTimeoutError(FlareError):
    """A network or git operation exceeded its timeout."""


class GitTimeoutError(PublishTimeoutError):
    """A git command exceeded its timeout."""


class RemoteTimeoutError(PublishTimeoutError):
    """A GitHub API request exceeded its timeout."""
