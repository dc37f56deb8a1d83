"""Branch names and commit messages derived from a publish attempt."""

from __future__ import annotations

from datetime import datetime, timezone

from ..models import ChangeSet

BRANCH_PREFIX = "post-"


def iso_timestamp(now: datetime) -> str:
    """UTC ISO 8601 timestamp with millisecond precision.

    Example: 2024-05-01T09:30:15.123Z
    """
    utc = now.astimezone(timezone.utc)
    return f"{utc:%Y-%m-%dT%H:%M:%S}.{utc.microsecond // 1000:03d}Z"


def publish_branch_name(now: datetime) -> str:
    """Branch name for a publish attempt.

    Example: post-2024-05-01T09-30-15-123Z
    """
    stamp = iso_timestamp(now).replace(":", "-").replace(".", "-")
    return f"{BRANCH_PREFIX}{stamp}"


def commit_message(change_set: ChangeSet, first_publish: bool = False) -> str:
    """Commit (and PR title) message for a change set.

    Names keep change set order. The first publish into an empty
    repository says "Add" instead of "Update".
    """
    names = change_set.names
    if not names:
        raise ValueError("Cannot build a commit message for an empty change set")

    if first_publish:
        noun = "blog post" if len(names) == 1 else "blog posts"
        return f"Add {noun}: {', '.join(names)}"
    if len(names) == 1:
        return f"Update post: {names[0]}"
    return f"Update posts: {', '.join(names)}"
