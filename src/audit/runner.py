"""Entry point for auditing a Bitbucket workspace."""

from __future__ import annotations

import sys
from typing import List, Optional

import colorama

from src.bitbucket.collectors import get_repository, list_branches, list_repositories
from src.bitbucket.http_client import BitbucketClient, BitbucketError
from src.bitbucket.models import Repository
from src.secrets import write_sample_config

from .aggregate import CSV_HEADER, build_summary_stats, csv_rows, filter_repositories, stale_branch_lines
from .config import AuditSettings, MissingCredentialsError, parse_args, resolve_settings
from .enrichment import enrich_repositories, order_like
from .report import display_repository, display_summary


def fetch_repositories(client: BitbucketClient, settings: AuditSettings) -> List[Repository]:
    """Fetch the named repository or the whole workspace, then apply name filters."""
    if settings.repo:
        repos = [get_repository(client, settings.workspace, settings.repo)]
    else:
        repos = list_repositories(client, settings.workspace)
    return filter_repositories(repos, settings.include_terms, settings.exclude_terms)


def run_stale_branch_feed(client: BitbucketClient, settings: AuditSettings) -> None:
    """Print `workspace/repo:branch` lines and nothing else."""
    try:
        repos = fetch_repositories(client, settings)
    except BitbucketError:
        sys.exit(1)
    for line in stale_branch_lines(client, repos):
        print(line)


def describe_mode(settings: AuditSettings) -> str:
    if settings.repo_only:
        return "repository information only"
    if settings.summary:
        return "summary statistics"
    return "full analysis"


def run_audit(client: BitbucketClient, settings: AuditSettings) -> None:
    """Run the summary, CSV or text listing for the configured repositories."""
    if not settings.quiet:
        target = f"repository: {settings.repo}" if settings.repo else "repositories"
        print(f"Fetching {target} ({describe_mode(settings)})...")

    try:
        repos = fetch_repositories(client, settings)
    except BitbucketError as exc:
        if not settings.quiet:
            what = f"repository '{settings.repo}'" if settings.repo else "repositories"
            print(f"[error] fetching {what}: {exc}", file=sys.stderr)
            if settings.repo:
                print("\nTip: Repository name is case-sensitive. Try listing all repos first:", file=sys.stderr)
                print("     bhunter --repo-only", file=sys.stderr)
        sys.exit(1)

    if settings.summary:
        display_summary(build_summary_stats(client, repos))
        return

    if not settings.quiet:
        print(f"\nFound {len(repos)} repositories:")
        print("Processing creator information concurrently...")
    enriched = order_like(enrich_repositories(client, repos, settings.concurrency), repos)

    if settings.csv:
        print(CSV_HEADER)
        for item in enriched:
            for row in csv_rows(client, item, settings.repo_only):
                print(row)
        return

    for item in enriched:
        if settings.repo_only:
            display_repository(item, repo_only=True)
            continue
        try:
            branches = list_branches(client, item.full_name)
        except BitbucketError as exc:
            display_repository(item, branch_error=exc)
        else:
            display_repository(item, branches=branches)


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point used by both CLI and imports; accepts argv overrides."""
    args = parse_args(argv)

    if args.config:
        path = write_sample_config()
        print(f"Sample config file '{path}' created. Please edit it with your credentials.")
        return

    try:
        settings = resolve_settings(args)
    except MissingCredentialsError as exc:
        if not args.output:
            print(exc, file=sys.stderr)
        sys.exit(1)

    if settings.config_path and not settings.quiet:
        print(f"Loaded configuration from {settings.config_path}")

    colorama.just_fix_windows_console()
    client = BitbucketClient(settings.username, settings.app_password)

    if settings.output_mode:
        run_stale_branch_feed(client, settings)
        return

    if not settings.quiet:
        print(f"Connecting to Bitbucket workspace: {settings.workspace}")
    run_audit(client, settings)


if __name__ == "__main__":
    main()
