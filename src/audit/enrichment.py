"""Concurrent creator lookup for a batch of repositories."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, List, Sequence

from src.bitbucket.collectors import find_earliest_commit_near_creation
from src.bitbucket.config import DEFAULT_CONCURRENCY
from src.bitbucket.http_client import BitbucketClient
from src.bitbucket.models import UNKNOWN_CREATOR, EnrichedRepository, Repository


def enrich_repository(client: BitbucketClient, repo: Repository) -> EnrichedRepository:
    """Look up one repository's creator; failures become the sentinel, never an exception."""
    try:
        commit = find_earliest_commit_near_creation(client, repo.full_name, repo.created_at)
    except Exception as exc:
        return EnrichedRepository(repository=repo, creator_display_name=UNKNOWN_CREATOR, enrichment_error=exc)
    creator = commit.author_display_name or UNKNOWN_CREATOR
    return EnrichedRepository(repository=repo, creator_display_name=creator)


def enrich_repositories(
    client: BitbucketClient,
    repositories: Sequence[Repository],
    concurrency_limit: int = DEFAULT_CONCURRENCY,
) -> List[EnrichedRepository]:
    """Enrich every repository with at most `concurrency_limit` lookups in flight.

    Returns exactly one result per input, in completion order.
    """
    if concurrency_limit < 1:
        raise ValueError(f"concurrency_limit must be >= 1, got {concurrency_limit}")
    if not repositories:
        return []

    results: List[EnrichedRepository] = []
    with ThreadPoolExecutor(max_workers=concurrency_limit) as executor:
        futures = [executor.submit(enrich_repository, client, repo) for repo in repositories]
        for future in as_completed(futures):
            results.append(future.result())
    return results


def order_like(enriched: Iterable[EnrichedRepository], repositories: Sequence[Repository]) -> List[EnrichedRepository]:
    """Re-key enrichment results by full name and return them in `repositories` order."""
    by_name = {item.full_name: item for item in enriched}
    return [by_name[repo.full_name] for repo in repositories if repo.full_name in by_name]


__all__ = ["enrich_repository", "enrich_repositories", "order_like"]
