"""Tests for src.audit.aggregate: filters, summary stats, CSV rows and the stale feed.

Run with:
    pytest tests/test_aggregate.py --maxfail=1 -v --cov=src.audit.aggregate --cov-report=term-missing
"""

import datetime as dt
from unittest.mock import MagicMock, patch

from src.audit import aggregate
from src.bitbucket.http_client import ApiError, TransportError
from src.bitbucket.models import Branch, EnrichedRepository, Repository

NOW = dt.datetime(2024, 12, 1, 12, 0, tzinfo=dt.timezone.utc)


def _ago(days: int) -> dt.datetime:
    return NOW - dt.timedelta(days=days)


def _repo(name: str, updated_days_ago: int = 10, **kwargs) -> Repository:
    return Repository(
        name=name,
        full_name=f"workspace/{name}",
        created_at=kwargs.pop("created_at", dt.datetime(2023, 1, 15, tzinfo=dt.timezone.utc)),
        updated_at=_ago(updated_days_ago),
        owner_display_name=kwargs.pop("owner", "Acme"),
        main_branch_name="main",
        **kwargs,
    )


def _branch(name: str, days_ago: int, author: str = "Ann") -> Branch:
    return Branch(name=name, target_date=_ago(days_ago), target_author_display_name=author)


def test_filter_exclude_terms():
    repos = [_repo("api-core"), _repo("web-ui"), _repo("archive-old")]
    kept = aggregate.filter_repositories(repos, exclude_terms=["archive"])
    assert [repo.name for repo in kept] == ["api-core", "web-ui"]


def test_filter_include_wins_with_warning(capsys):
    repos = [_repo("api-core"), _repo("web-ui"), _repo("archive-old")]
    kept = aggregate.filter_repositories(repos, include_terms=["api"], exclude_terms=["archive"])
    assert [repo.name for repo in kept] == ["api-core"]
    assert "include takes precedence" in capsys.readouterr().err


def test_filter_is_case_insensitive_and_noop_without_terms(capsys):
    repos = [_repo("API-Core"), _repo("web-ui")]
    assert [r.name for r in aggregate.filter_repositories(repos, include_terms=["api"])] == ["API-Core"]
    assert aggregate.filter_repositories(repos) == repos
    assert capsys.readouterr().err == ""


@patch("src.audit.aggregate.list_branches")
def test_build_summary_stats_counts_and_skips_branch_failures(mock_branches, capsys):
    repos = [_repo("fresh", 10), _repo("stale", 400), _repo("broken", 20)]

    def branches_for(client, full_name):
        if full_name == "workspace/broken":
            raise ApiError(500, "url")
        if full_name == "workspace/fresh":
            return [_branch("main", 5), _branch("feature/x", 240)]
        return [_branch("master", 300)]

    mock_branches.side_effect = branches_for
    stats = aggregate.build_summary_stats(MagicMock(), repos, NOW)

    assert stats == aggregate.SummaryStats(
        total_repos=3,
        total_branches=3,
        old_repos=1,
        recent_repos=2,
        old_branches=2,
        recent_branches=1,
    )
    assert round(stats.old_branch_percent, 1) == 66.7
    assert stats.avg_branches_per_repo == 1.0
    assert "workspace/broken" in capsys.readouterr().err


def test_summary_percentages_guard_zero_totals():
    stats = aggregate.SummaryStats()
    assert stats.old_repo_percent == 0.0
    assert stats.old_branch_percent == 0.0
    assert stats.avg_branches_per_repo == 0.0


def test_escape_csv():
    assert aggregate.escape_csv("O'Brien, Inc.\"") == '"O\'Brien, Inc."""'
    assert aggregate.escape_csv("line\nbreak") == '"line\nbreak"'
    assert aggregate.escape_csv("plain") == "plain"


def test_csv_header_has_thirteen_columns():
    assert len(aggregate.CSV_HEADER.split(",")) == 13
    assert aggregate.CSV_HEADER.startswith("Repository Name,Owner,Creator")


def test_csv_rows_repo_only_single_row():
    client = MagicMock()
    enriched = EnrichedRepository(repository=_repo("api-core", owner="Smith, J"), creator_display_name="Ann")
    rows = aggregate.csv_rows(client, enriched, repo_only=True, now=NOW)
    assert rows == ['api-core,"Smith, J",Ann,2023-01-15,2024-11-21,main,22,0,,,,,']
    client.assert_not_called()


@patch("src.audit.aggregate.list_branches")
def test_csv_rows_one_per_branch(mock_branches):
    mock_branches.return_value = [_branch("main", 30), _branch("feature/x", 240, author="Bob")]
    enriched = EnrichedRepository(repository=_repo("api-core"), creator_display_name="Ann")
    rows = aggregate.csv_rows(MagicMock(), enriched, now=NOW)
    assert len(rows) == 2
    fields = rows[1].split(",")
    assert len(fields) == 13
    assert fields[8:] == ["feature/x", "2024-04-05", "2024-04-05", "Bob", "7"]


@patch("src.audit.aggregate.list_branches", side_effect=TransportError("timeout, retry later"))
def test_csv_rows_branch_error_row(mock_branches):
    enriched = EnrichedRepository(repository=_repo("api-core"))
    rows = aggregate.csv_rows(MagicMock(), enriched, now=NOW)
    assert len(rows) == 1
    assert rows[0].endswith(',"ERROR: timeout, retry later",,,,')
    assert "(unable to determine)" in rows[0]


@patch("src.audit.aggregate.list_branches")
def test_stale_branch_lines(mock_branches):
    mock_branches.return_value = [_branch("main", 30), _branch("feature/x", 240)]
    lines = aggregate.stale_branch_lines(MagicMock(), [_repo("repo")], NOW)
    assert lines == ["workspace/repo:feature/x"]


@patch("src.audit.aggregate.list_branches")
def test_stale_branch_lines_skip_protected_and_failures_silently(mock_branches, capsys):
    def branches_for(client, full_name):
        if full_name == "workspace/broken":
            raise ApiError(404, "url")
        return [_branch("master", 900), _branch("develop", 900), _branch("old", 900)]

    mock_branches.side_effect = branches_for
    lines = aggregate.stale_branch_lines(MagicMock(), [_repo("broken"), _repo("ok")], NOW)
    assert lines == ["workspace/ok:old"]
    captured = capsys.readouterr()
    assert captured.out == "" and captured.err == ""
