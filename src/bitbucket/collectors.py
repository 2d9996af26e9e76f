"""Typed fetchers for repositories, branches, and creator-window commits."""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from .config import (
    BASE_URL,
    COMMIT_DATE_FORMAT,
    CREATION_WINDOW_DAYS_AFTER,
    CREATION_WINDOW_DAYS_BEFORE,
    PAGELEN,
)
from .http_client import BitbucketClient, MalformedResponseError, NoCommitsFoundError
from .models import Branch, Commit, Repository


def split_full_name(repo_full_name: str) -> tuple[str, str]:
    """Split `workspace/name`, rejecting anything else."""
    parts = repo_full_name.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"invalid repository name format: {repo_full_name!r}")
    return parts[0], parts[1]


def list_repositories(client: BitbucketClient, workspace: str) -> List[Repository]:
    """Return every repository in `workspace`, in server order."""
    url = f"{BASE_URL}/repositories/{workspace}?pagelen={PAGELEN}"
    return [Repository.from_api(entry) for entry in client.paged_get(url)]


def get_repository(client: BitbucketClient, workspace: str, name: str) -> Repository:
    """Fetch a single repository; a missing one surfaces as ApiError(404)."""
    url = f"{BASE_URL}/repositories/{workspace}/{name}"
    return Repository.from_api(client.get_json(url))


def list_branches(client: BitbucketClient, repo_full_name: str) -> List[Branch]:
    url = f"{BASE_URL}/repositories/{repo_full_name}/refs/branches?pagelen={PAGELEN}"
    return [Branch.from_api(entry) for entry in client.paged_get(url)]


def creation_window(created_at: dt.datetime) -> tuple[str, str]:
    """Return the (since, until) bounds used to look for a repository's first commits."""
    created_utc = created_at.astimezone(dt.timezone.utc)
    since = created_utc - dt.timedelta(days=CREATION_WINDOW_DAYS_BEFORE)
    until = created_utc + dt.timedelta(days=CREATION_WINDOW_DAYS_AFTER)
    return since.strftime(COMMIT_DATE_FORMAT), until.strftime(COMMIT_DATE_FORMAT)


def find_earliest_commit_near_creation(
    client: BitbucketClient,
    repo_full_name: str,
    created_at: Optional[dt.datetime] = None,
) -> Commit:
    """Approximate a repository's first commit.

    Bitbucket does not expose who created a repository, so the author of the
    oldest commit within a day before / thirty days after creation is used as a
    proxy. Only the first page is read; the API lists newest first, so its last
    entry is the oldest one in the window. Imported or mirrored repositories
    can yield the wrong author.
    """
    workspace, name = split_full_name(repo_full_name)
    if created_at is None:
        created_at = get_repository(client, workspace, name).created_at

    since, until = creation_window(created_at)
    url = (
        f"{BASE_URL}/repositories/{repo_full_name}/commits"
        f"?pagelen={PAGELEN}&since={since}&until={until}"
    )
    payload = client.get_json(url)
    values = payload.get("values")
    if values is None:
        values = []
    if not isinstance(values, list):
        raise MalformedResponseError(f"{url} has no 'values' list")
    if not values:
        raise NoCommitsFoundError(f"no commits found near creation date of {repo_full_name}")
    return Commit.from_api(values[-1])


__all__ = [
    "split_full_name",
    "list_repositories",
    "get_repository",
    "list_branches",
    "creation_window",
    "find_earliest_commit_near_creation",
]
