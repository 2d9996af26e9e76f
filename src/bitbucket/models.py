"""Domain entities built from Bitbucket API payloads."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .http_client import MalformedResponseError

UNKNOWN_CREATOR = "(unable to determine)"


def parse_timestamp(value: Any, field: str) -> dt.datetime:
    """Parse an RFC3339 timestamp into an aware datetime (naive values are UTC)."""
    if not isinstance(value, str) or not value:
        raise MalformedResponseError(f"missing timestamp field '{field}'")
    try:
        parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise MalformedResponseError(f"invalid timestamp for '{field}': {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def _required_str(payload: Dict[str, Any], field: str) -> str:
    value = payload.get(field)
    if not isinstance(value, str) or not value:
        raise MalformedResponseError(f"missing string field '{field}'")
    return value


def _nested(payload: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(payload, dict):
            return None
        payload = payload.get(key)
    return payload


def _user_display_name(author: Any) -> str:
    return str(_nested(author, "user", "display_name") or "")


def _require_object(payload: Any, kind: str) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"{kind} payload is {type(payload).__name__}, expected an object")
    return payload


@dataclass(frozen=True)
class Repository:
    """Immutable repository entity."""

    name: str
    full_name: str
    created_at: dt.datetime
    updated_at: dt.datetime
    owner_display_name: str = ""
    owner_username: str = ""
    main_branch_name: str = ""

    @classmethod
    def from_api(cls, payload: Any) -> "Repository":
        payload = _require_object(payload, "repository")
        return cls(
            name=_required_str(payload, "name"),
            full_name=_required_str(payload, "full_name"),
            created_at=parse_timestamp(payload.get("created_on"), "created_on"),
            updated_at=parse_timestamp(payload.get("updated_on"), "updated_on"),
            owner_display_name=str(_nested(payload, "owner", "display_name") or ""),
            owner_username=str(
                _nested(payload, "owner", "username") or _nested(payload, "owner", "nickname") or ""
            ),
            main_branch_name=str(_nested(payload, "mainbranch", "name") or ""),
        )


@dataclass(frozen=True)
class Branch:
    """A branch ref; its target commit stands in for the last push."""

    name: str
    target_date: dt.datetime
    target_author_display_name: str = ""

    @classmethod
    def from_api(cls, payload: Any) -> "Branch":
        payload = _require_object(payload, "branch")
        return cls(
            name=_required_str(payload, "name"),
            target_date=parse_timestamp(_nested(payload, "target", "date"), "target.date"),
            target_author_display_name=_user_display_name(_nested(payload, "target", "author")),
        )


@dataclass(frozen=True)
class Commit:
    hash: str
    date: dt.datetime
    author_display_name: str = ""
    message: str = ""

    @classmethod
    def from_api(cls, payload: Any) -> "Commit":
        payload = _require_object(payload, "commit")
        return cls(
            hash=_required_str(payload, "hash"),
            date=parse_timestamp(payload.get("date"), "date"),
            author_display_name=_user_display_name(payload.get("author")),
            message=str(payload.get("message") or ""),
        )


@dataclass(frozen=True)
class EnrichedRepository:
    """A repository plus its inferred creator, or the error that prevented inference."""

    repository: Repository
    creator_display_name: str = UNKNOWN_CREATOR
    enrichment_error: Optional[BaseException] = None

    @property
    def full_name(self) -> str:
        return self.repository.full_name


__all__ = [
    "UNKNOWN_CREATOR",
    "parse_timestamp",
    "Repository",
    "Branch",
    "Commit",
    "EnrichedRepository",
]
