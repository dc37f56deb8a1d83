"""GitHub REST API client for repository metadata and pull requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import requests

from .errors import RemoteApiError, RemoteTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class RepositoryInfo:
    """Subset of the get-repository response."""

    full_name: str
    default_branch: str
    private: bool = False
    html_url: str | None = None


@dataclass
class PullRequest:
    """Created pull request."""

    number: int
    html_url: str
    head: str
    base: str


class GitHubClient:
    """Thin bearer-token client for the GitHub REST API."""

    API_VERSION_HEADER = "application/vnd.github.v3+json"

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        if session is None:
            session = requests.Session()
        session.headers.update(self._headers(token))
        self._session = session

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": self.API_VERSION_HEADER,
        }

    def _request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> requests.Response:
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            return self._session.request(
                method, url, json=payload, timeout=self._timeout
            )
        except requests.Timeout as e:
            raise RemoteTimeoutError(f"{method} {url} timed out after {self._timeout}s") from e
        except requests.RequestException as e:
            raise RemoteApiError(f"{method} {url} failed", body=str(e)) from e

    def _raise_for_status(self, response: requests.Response, what: str) -> None:
        if 200 <= response.status_code < 300:
            return
        raise RemoteApiError(
            f"Failed to {what} (HTTP {response.status_code})",
            status_code=response.status_code,
            body=response.text,
        )

    def get_repository(self, owner: str, name: str) -> RepositoryInfo:
        """Fetch repository metadata.

        Raises:
            RemoteApiError: Non-success status.
        """
        response = self._request("GET", f"repos/{owner}/{name}")
        self._raise_for_status(response, f"get repository {owner}/{name}")
        data = response.json()
        return RepositoryInfo(
            full_name=data.get("full_name", f"{owner}/{name}"),
            default_branch=data["default_branch"],
            private=bool(data.get("private", False)),
            html_url=data.get("html_url"),
        )

    def get_branch(self, owner: str, name: str, branch: str) -> bool:
        """Check whether a branch exists.

        Returns:
            True if the branch exists, False on 404.

        Raises:
            RemoteApiError: Any other non-success status.
        """
        response = self._request(
            "GET", f"repos/{owner}/{name}/branches/{quote(branch, safe='')}"
        )
        if response.status_code == 404:
            return False
        self._raise_for_status(response, f"get branch {branch}")
        return True

    def create_pull_request(
        self,
        owner: str,
        name: str,
        title: str,
        head: str,
        base: str,
        body: str = "",
        auto_merge: bool = True,
    ) -> PullRequest:
        """Open a pull request.

        Raises:
            RemoteApiError: GitHub rejected the request.
        """
        response = self._request(
            "POST",
            f"repos/{owner}/{name}/pulls",
            {
                "title": title,
                "head": head,
                "base": base,
                "body": body,
                "auto_merge": auto_merge,
            },
        )
        self._raise_for_status(response, "create PR")
        data = response.json()
        pr = PullRequest(
            number=data.get("number", 0),
            html_url=data.get("html_url", ""),
            head=head,
            base=base,
        )
        logger.info(f"Created PR: {pr.html_url}")
        return pr
