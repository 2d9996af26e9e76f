"""Tests for src.bitbucket.collectors and the payload models they build.

Run with coverage to exercise the repository API:
    pytest tests/test_collectors.py --maxfail=1 -v --cov=src.bitbucket.collectors --cov-report=term-missing
"""

import datetime as dt
from unittest.mock import MagicMock

import pytest

from src.bitbucket import collectors
from src.bitbucket.config import BASE_URL
from src.bitbucket.http_client import MalformedResponseError, NoCommitsFoundError
from src.bitbucket.models import Branch, Repository

REPO_PAYLOAD = {
    "name": "api-core",
    "full_name": "acme/api-core",
    "created_on": "2023-03-10T08:30:00.123456+00:00",
    "updated_on": "2024-06-01T12:00:00+00:00",
    "owner": {"display_name": "Acme Team", "username": "acme"},
    "mainbranch": {"name": "main"},
}


def _commit(hash_: str, author: str) -> dict:
    return {
        "hash": hash_,
        "date": "2023-03-11T10:00:00+00:00",
        "author": {"raw": f"{author} <x@y>", "user": {"display_name": author}},
        "message": "msg",
    }


def _client() -> MagicMock:
    return MagicMock()


def test_repository_from_api_maps_fields():
    repo = Repository.from_api(REPO_PAYLOAD)
    assert repo.full_name == "acme/api-core"
    assert repo.owner_display_name == "Acme Team"
    assert repo.owner_username == "acme"
    assert repo.main_branch_name == "main"
    assert repo.created_at == dt.datetime(2023, 3, 10, 8, 30, 0, 123456, tzinfo=dt.timezone.utc)


def test_repository_from_api_rejects_missing_dates():
    payload = dict(REPO_PAYLOAD)
    del payload["updated_on"]
    with pytest.raises(MalformedResponseError):
        Repository.from_api(payload)


def test_branch_from_api_tolerates_missing_author():
    branch = Branch.from_api({"name": "feature/x", "target": {"date": "2024-01-01T00:00:00Z"}})
    assert branch.target_author_display_name == ""
    assert branch.target_date.tzinfo is not None


def test_list_repositories_builds_url_and_models():
    client = _client()
    client.paged_get.return_value = [REPO_PAYLOAD]
    repos = collectors.list_repositories(client, "acme")
    assert [repo.name for repo in repos] == ["api-core"]
    client.paged_get.assert_called_once_with(f"{BASE_URL}/repositories/acme?pagelen=100")


def test_get_repository_uses_single_get():
    client = _client()
    client.get_json.return_value = REPO_PAYLOAD
    repo = collectors.get_repository(client, "acme", "api-core")
    assert repo.name == "api-core"
    client.get_json.assert_called_once_with(f"{BASE_URL}/repositories/acme/api-core")


def test_list_branches_paginates_branch_refs():
    client = _client()
    client.paged_get.return_value = [
        {"name": "main", "target": {"date": "2024-01-01T00:00:00+00:00", "author": {"user": {"display_name": "Ann"}}}},
    ]
    branches = collectors.list_branches(client, "acme/api-core")
    assert branches[0].target_author_display_name == "Ann"
    client.paged_get.assert_called_once_with(f"{BASE_URL}/repositories/acme/api-core/refs/branches?pagelen=100")


def test_creation_window_bounds():
    created = dt.datetime(2023, 3, 10, 8, 30, 15, tzinfo=dt.timezone.utc)
    assert collectors.creation_window(created) == ("2023-03-09T08:30:15Z", "2023-04-09T08:30:15Z")


def test_find_earliest_commit_returns_last_entry_of_first_page():
    client = _client()
    client.get_json.side_effect = [
        REPO_PAYLOAD,
        {"values": [_commit("newest", "Bob"), _commit("oldest", "Alice")], "next": "ignored"},
    ]
    commit = collectors.find_earliest_commit_near_creation(client, "acme/api-core")
    assert commit.hash == "oldest"
    assert commit.author_display_name == "Alice"
    commits_url = client.get_json.call_args_list[1].args[0]
    assert commits_url == (
        f"{BASE_URL}/repositories/acme/api-core/commits"
        "?pagelen=100&since=2023-03-09T08:30:00Z&until=2023-04-09T08:30:00Z"
    )
    assert client.get_json.call_count == 2


def test_find_earliest_commit_skips_repo_fetch_when_created_at_known():
    client = _client()
    client.get_json.return_value = {"values": [_commit("only", "Alice")]}
    created = dt.datetime(2023, 3, 10, tzinfo=dt.timezone.utc)
    collectors.find_earliest_commit_near_creation(client, "acme/api-core", created)
    client.get_json.assert_called_once()


def test_find_earliest_commit_empty_window():
    client = _client()
    client.get_json.return_value = {"values": []}
    created = dt.datetime(2023, 3, 10, tzinfo=dt.timezone.utc)
    with pytest.raises(NoCommitsFoundError):
        collectors.find_earliest_commit_near_creation(client, "acme/api-core", created)


def test_find_earliest_commit_rejects_bad_full_name():
    with pytest.raises(ValueError):
        collectors.find_earliest_commit_near_creation(_client(), "no-slash")
