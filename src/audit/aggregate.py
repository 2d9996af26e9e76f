"""Filtering, summary statistics, CSV rows and the stale-branch feed."""

from __future__ import annotations

import datetime as dt
import sys
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from src.bitbucket.collectors import list_branches
from src.bitbucket.http_client import BitbucketClient, BitbucketError
from src.bitbucket.models import Branch, EnrichedRepository, Repository

from .classify import is_stale_branch, is_stale_repository, months_between, utc_now

PROTECTED_BRANCHES = ("main", "master", "develop")
CSV_DATE_FORMAT = "%Y-%m-%d"
CSV_COLUMNS = (
    "Repository Name",
    "Owner",
    "Creator",
    "Date Created",
    "Date Last Accessed",
    "Main Branch",
    "Repo Age (months)",
    "Last Access (months)",
    "Branch Name",
    "Branch Date Created",
    "Branch Last Pushed",
    "Branch Last Pushed By",
    "Branch Age (months)",
)
CSV_HEADER = ",".join(CSV_COLUMNS)


def _normalize_terms(terms: Optional[Iterable[str]]) -> List[str]:
    return [term.strip().lower() for term in (terms or []) if term and term.strip()]


def name_matches(name: str, terms: Iterable[str]) -> bool:
    """Case-insensitive substring match against any of `terms` (already lowercased)."""
    lowered = name.lower()
    return any(term in lowered for term in terms)


def filter_repositories(
    repos: Sequence[Repository],
    include_terms: Optional[Iterable[str]] = None,
    exclude_terms: Optional[Iterable[str]] = None,
) -> List[Repository]:
    """Keep repositories matching the include terms, else drop those matching the exclude terms."""
    include = _normalize_terms(include_terms)
    exclude = _normalize_terms(exclude_terms)
    if include and exclude:
        print("[warn] both include and exclude filters given; include takes precedence", file=sys.stderr)
    if include:
        return [repo for repo in repos if name_matches(repo.name, include)]
    if exclude:
        return [repo for repo in repos if not name_matches(repo.name, exclude)]
    return list(repos)


@dataclass(frozen=True)
class SummaryStats:
    total_repos: int = 0
    total_branches: int = 0
    old_repos: int = 0
    recent_repos: int = 0
    old_branches: int = 0
    recent_branches: int = 0

    @property
    def old_repo_percent(self) -> float:
        if not self.total_repos:
            return 0.0
        return self.old_repos / self.total_repos * 100

    @property
    def old_branch_percent(self) -> float:
        if not self.total_branches:
            return 0.0
        return self.old_branches / self.total_branches * 100

    @property
    def avg_branches_per_repo(self) -> float:
        if not self.total_repos:
            return 0.0
        return self.total_branches / self.total_repos


def build_summary_stats(
    client: BitbucketClient,
    repos: Sequence[Repository],
    now: Optional[dt.datetime] = None,
) -> SummaryStats:
    """Count stale/recent repositories and branches.

    A repository whose branches cannot be listed still counts towards the
    repository totals and contributes nothing to the branch totals.
    """
    now = now or utc_now()
    old_repos = recent_repos = 0
    old_branches = recent_branches = 0

    for repo in repos:
        if is_stale_repository(repo.updated_at, now):
            old_repos += 1
        else:
            recent_repos += 1

        try:
            branches = list_branches(client, repo.full_name)
        except BitbucketError as exc:
            print(f"[warn] skipping branches of {repo.full_name}: {exc}", file=sys.stderr)
            continue

        for branch in branches:
            if is_stale_branch(branch.target_date, now):
                old_branches += 1
            else:
                recent_branches += 1

    return SummaryStats(
        total_repos=len(repos),
        total_branches=old_branches + recent_branches,
        old_repos=old_repos,
        recent_repos=recent_repos,
        old_branches=old_branches,
        recent_branches=recent_branches,
    )


def escape_csv(field: str) -> str:
    """Quote a field containing a comma, quote or newline, doubling inner quotes."""
    if "," in field or '"' in field or "\n" in field:
        return '"' + field.replace('"', '""') + '"'
    return field


def _repo_fields(enriched: EnrichedRepository, now: dt.datetime) -> List[str]:
    repo = enriched.repository
    return [
        escape_csv(repo.name),
        escape_csv(repo.owner_display_name),
        escape_csv(enriched.creator_display_name),
        repo.created_at.strftime(CSV_DATE_FORMAT),
        repo.updated_at.strftime(CSV_DATE_FORMAT),
        escape_csv(repo.main_branch_name),
        str(months_between(repo.created_at, now)),
        str(months_between(repo.updated_at, now)),
    ]


def _branch_fields(branch: Branch, now: dt.datetime) -> List[str]:
    pushed = branch.target_date.strftime(CSV_DATE_FORMAT)
    return [
        escape_csv(branch.name),
        pushed,
        pushed,
        escape_csv(branch.target_author_display_name),
        str(months_between(branch.target_date, now)),
    ]


def csv_rows(
    client: BitbucketClient,
    enriched: EnrichedRepository,
    repo_only: bool = False,
    now: Optional[dt.datetime] = None,
) -> List[str]:
    """Build the CSV rows for one repository: one per branch, or a single row."""
    now = now or utc_now()
    repo_fields = _repo_fields(enriched, now)
    empty_branch = [""] * (len(CSV_COLUMNS) - len(repo_fields))

    if repo_only:
        return [",".join(repo_fields + empty_branch)]

    try:
        branches = list_branches(client, enriched.full_name)
    except BitbucketError as exc:
        error_fields = [escape_csv(f"ERROR: {exc}")] + empty_branch[1:]
        return [",".join(repo_fields + error_fields)]

    return [",".join(repo_fields + _branch_fields(branch, now)) for branch in branches]


def stale_branch_lines(
    client: BitbucketClient,
    repos: Sequence[Repository],
    now: Optional[dt.datetime] = None,
) -> List[str]:
    """Return `workspace/repo:branch` for every stale, non-protected branch.

    Output is meant for piping, so repositories whose branches cannot be
    listed are skipped without any diagnostics.
    """
    now = now or utc_now()
    lines: List[str] = []
    for repo in repos:
        try:
            branches = list_branches(client, repo.full_name)
        except BitbucketError:
            continue
        for branch in branches:
            if branch.name in PROTECTED_BRANCHES:
                continue
            if is_stale_branch(branch.target_date, now):
                lines.append(f"{repo.full_name}:{branch.name}")
    return lines


__all__ = [
    "PROTECTED_BRANCHES",
    "CSV_COLUMNS",
    "CSV_HEADER",
    "name_matches",
    "filter_repositories",
    "SummaryStats",
    "build_summary_stats",
    "escape_csv",
    "csv_rows",
    "stale_branch_lines",
]
