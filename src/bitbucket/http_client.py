"""HTTP helpers and cursor pagination for the Bitbucket REST API."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from .config import MAX_PAGES, REQUEST_TIMEOUT, USER_AGENT


class BitbucketError(Exception):
    """Base class for every failure raised by the Bitbucket client."""


class TransportError(BitbucketError):
    """Raised when the request never produced an HTTP response."""


class ApiError(BitbucketError):
    """Raised when Bitbucket answers with a non-success status."""

    def __init__(self, status_code: int, url: str, message: str = "") -> None:
        self.status_code = status_code
        self.url = url
        self.message = message
        detail = f" :: {message}" if message else ""
        super().__init__(f"API request failed with status: {status_code} ({url}){detail}")


class AuthError(ApiError):
    """Raised on 401/403, i.e. bad credentials or missing permissions."""


class MalformedResponseError(BitbucketError):
    """Raised when a payload does not have the expected shape."""


class NoCommitsFoundError(BitbucketError):
    """Raised when the commit window around a repository's creation is empty."""


AUTH_FAILURE_STATUSES = {401, 403}


def error_message(resp: requests.Response) -> str:
    """Return a short, human-readable message from a Bitbucket error body."""
    try:
        body = resp.json()
    except Exception:
        return (resp.text or "")[:300]
    if not isinstance(body, dict):
        return str(body)[:300]
    error = body.get("error")
    if isinstance(error, dict):
        return str(error.get("message") or "")
    return str(body.get("message") or error or "")


class BitbucketClient:
    """Thin wrapper around a requests session using HTTP Basic auth."""

    def __init__(
        self,
        username: str,
        app_password: str,
        *,
        timeout: int = REQUEST_TIMEOUT,
        max_pages: int = MAX_PAGES,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.username = username
        self.timeout = timeout
        self.max_pages = max_pages
        self.session = session or requests.Session()
        self.session.auth = (username, app_password)
        self.session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            }
        )

    def get_json(self, url: str) -> Dict[str, Any]:
        """GET `url` once and return the decoded JSON object."""
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"GET {url} failed: {exc}") from exc

        if resp.status_code in AUTH_FAILURE_STATUSES:
            raise AuthError(resp.status_code, url, error_message(resp))
        if not 200 <= resp.status_code < 300:
            raise ApiError(resp.status_code, url, error_message(resp))

        try:
            payload = resp.json()
        except ValueError as exc:
            raise MalformedResponseError(f"{url} did not return JSON") from exc
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"{url} returned {type(payload).__name__}, expected an object")
        return payload

    def paged_get(self, url: str) -> List[Dict[str, Any]]:
        """Follow `next` cursors from `url` and return every page's `values` in order.

        The whole call fails on the first bad page; nothing partial is returned.
        """
        results: List[Dict[str, Any]] = []
        seen = set()
        pages = 0
        next_url: Optional[str] = url
        while next_url:
            if next_url in seen:
                raise MalformedResponseError(f"pagination cursor repeated: {next_url}")
            seen.add(next_url)
            pages += 1
            if self.max_pages and pages > self.max_pages:
                raise MalformedResponseError(f"pagination exceeded {self.max_pages} pages for {url}")

            payload = self.get_json(next_url)
            values = payload.get("values")
            if not isinstance(values, list):
                raise MalformedResponseError(f"{next_url} has no 'values' list")
            results.extend(values)
            next_url = payload.get("next") or None
        return results


__all__ = [
    "BitbucketError",
    "TransportError",
    "ApiError",
    "AuthError",
    "MalformedResponseError",
    "NoCommitsFoundError",
    "error_message",
    "BitbucketClient",
]
