"""Central configuration constants for the Bitbucket API client."""

from __future__ import annotations

import os

USER_AGENT = "bitbucket-hunter/1.0"
BASE_URL = os.getenv("BITBUCKET_API_URL", "https://api.bitbucket.org/2.0").rstrip("/")
PAGELEN = 100
REQUEST_TIMEOUT = int(os.getenv("BHUNTER_REQUEST_TIMEOUT", "30"))
MAX_PAGES = int(os.getenv("BHUNTER_MAX_PAGES", "0"))  # 0 = no cap
DEFAULT_CONCURRENCY = int(os.getenv("BHUNTER_CONCURRENCY", "10"))

# Commit search window around a repository's creation date.
CREATION_WINDOW_DAYS_BEFORE = 1
CREATION_WINDOW_DAYS_AFTER = 30
COMMIT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

__all__ = [
    "USER_AGENT",
    "BASE_URL",
    "PAGELEN",
    "REQUEST_TIMEOUT",
    "MAX_PAGES",
    "DEFAULT_CONCURRENCY",
    "CREATION_WINDOW_DAYS_BEFORE",
    "CREATION_WINDOW_DAYS_AFTER",
    "COMMIT_DATE_FORMAT",
]
