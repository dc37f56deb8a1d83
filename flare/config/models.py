"""Configuration models for flare."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    """GitHub token plus the repository it grants publishing to."""

    token: str = Field(..., description="GitHub access token (bearer)")
    owner: str = Field(..., description="Repository owner/organization")
    repo_name: str = Field(..., description="Repository name")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo_name}"


class DocumentSettings(BaseModel):
    """Where local documents live and which files count as documents."""

    patterns: list[str] = Field(
        default_factory=lambda: ["*.md"], description="Glob patterns for documents"
    )
    skip_hidden: bool = Field(
        default=True, description="Skip dot-directories such as .git or .obsidian"
    )


class GitSettings(BaseModel):
    """Git mirror settings."""

    host: str = Field(default="github.com", description="Git host for HTTPS remotes")
    mirror_path: str = Field(
        default=str(Path.home() / ".flare" / "mirror"),
        description="Local working copy used only for git operations",
    )
    user_name: str = Field(default="Flare")
    user_email: str = Field(default="flare@frontier.sh")
    command_timeout: int = Field(default=30, description="Local git command timeout (s)")
    network_timeout: int = Field(
        default=120, description="fetch/pull/push timeout (s)"
    )


class ApiSettings(BaseModel):
    """GitHub REST API settings."""

    base_url: str = Field(default="https://api.github.com")
    timeout: float = Field(default=30.0, description="HTTP request timeout (s)")
    pr_body: str = Field(default="Created via Flare")
    auto_merge: bool = Field(default=True, description="Request auto-merge on new PRs")


class FlareConfig(BaseModel):
    """Root configuration model."""

    version: int = Field(default=1)
    documents: DocumentSettings = Field(default_factory=DocumentSettings)
    git: GitSettings = Field(default_factory=GitSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
