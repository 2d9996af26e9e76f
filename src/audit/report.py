"""Colorized text rendering for repository listings and workspace summaries."""

from __future__ import annotations

import datetime as dt
from typing import Optional, Sequence

from colorama import Fore, Style

from src.bitbucket.models import Branch, EnrichedRepository

from .aggregate import SummaryStats
from .classify import is_stale_branch, is_stale_repository

DISPLAY_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _colorize(text: str, color: str) -> str:
    return f"{color}{text}{Style.RESET_ALL}"


def yellow(text: str) -> str:
    return _colorize(text, Fore.YELLOW)


def red(text: str) -> str:
    return _colorize(text, Fore.RED)


def green(text: str) -> str:
    return _colorize(text, Fore.GREEN + Style.BRIGHT)


def cyan(text: str) -> str:
    return _colorize(text, Fore.CYAN + Style.BRIGHT)


def format_date(value: dt.datetime) -> str:
    return value.strftime(DISPLAY_DATE_FORMAT)


def display_repository(
    enriched: EnrichedRepository,
    branches: Optional[Sequence[Branch]] = None,
    branch_error: Optional[BaseException] = None,
    repo_only: bool = False,
    now: Optional[dt.datetime] = None,
) -> None:
    """Print one repository block, followed by its branches unless `repo_only`."""
    repo = enriched.repository
    print(f"\n{green('Repository: ' + repo.name)}")
    print(f"  Name: {repo.name}")
    print(f"  Owner: {repo.owner_display_name} ({repo.owner_username})")
    print(f"  Creator: {enriched.creator_display_name}")
    print(f"  Date Created: {format_date(repo.created_at)}")

    last_accessed = format_date(repo.updated_at)
    if is_stale_repository(repo.updated_at, now):
        last_accessed = yellow(last_accessed)
    print(f"  Date Last Accessed: {last_accessed}")
    print(f"  Main Branch: {repo.main_branch_name}")

    if repo_only:
        return

    print("\n  Branches:")
    if branch_error is not None:
        print(f"    Error fetching branches: {branch_error}")
        return
    for branch in branches or []:
        pushed_by = branch.target_author_display_name
        print(f"    {cyan('Branch: ' + branch.name)}")
        print(f"      Name: {branch.name}")
        print(f"      Date Created: {format_date(branch.target_date)}")

        last_push = format_date(branch.target_date)
        if is_stale_branch(branch.target_date, now):
            last_push = red(last_push)
        print(f"      Date Last Pushed: {last_push}")
        print(f"      Last Pushed By: {pushed_by}")
        print(f"      Created By: {pushed_by}")


def display_summary(stats: SummaryStats) -> None:
    """Print repository/branch statistics and cleanup recommendations."""
    print(f"\n{green('=== BITBUCKET WORKSPACE SUMMARY ===')}")

    print(f"\n{cyan('Repository Statistics:')}")
    print(f"  Total Repositories: {stats.total_repos}")
    old_repos = str(stats.old_repos)
    if stats.old_repos > 0:
        old_repos = yellow(old_repos)
    print(f"  Recent Repositories (accessed within 12 months): {stats.recent_repos}")
    print(f"  Old Repositories (no access for >12 months): {old_repos}")
    if stats.total_repos > 0:
        print(f"  Old Repository Percentage: {stats.old_repo_percent:.1f}%")

    print(f"\n{cyan('Branch Statistics:')}")
    print(f"  Total Branches: {stats.total_branches}")
    old_branches = str(stats.old_branches)
    if stats.old_branches > 0:
        old_branches = red(old_branches)
    print(f"  Recent Branches (updated within 6 months): {stats.recent_branches}")
    print(f"  Old Branches (no updates for >6 months): {old_branches}")
    if stats.total_branches > 0:
        print(f"  Old Branch Percentage: {stats.old_branch_percent:.1f}%")
        print(f"  Average Branches per Repository: {stats.avg_branches_per_repo:.1f}")

    print(f"\n{cyan('Cleanup Recommendations:')}")
    if stats.old_branches > 0:
        print(f"  • Consider cleaning up {red(str(stats.old_branches))} old branches")
        print("  • Use: bhunter --output | bkiller --dry-run")
    if stats.old_repos > 0:
        print(f"  • Review {yellow(str(stats.old_repos))} repositories with no recent activity")
    if stats.old_branches == 0 and stats.old_repos == 0:
        print(f"  • {green('✓')} No cleanup needed - workspace is well maintained!")
    print()


__all__ = [
    "DISPLAY_DATE_FORMAT",
    "format_date",
    "display_repository",
    "display_summary",
]
