"""Utilities for locating and loading local (gitignored) Bitbucket credentials."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

CONFIG_FILENAMES = [
    "bhunter.local.yaml",  # local override, highest priority
    "bhunter.local.yml",
    "bhunter.yaml",
    "bhunter.yml",
    ".bhunter.local.yaml",
    ".bhunter.local.yml",
    ".bhunter.yaml",
    ".bhunter.yml",
]
DEFAULT_SAMPLE_FILENAME = "bhunter.yaml"

SAMPLE_CONFIG = """# Bitbucket Hunter Configuration
username: your_username
app_password: your_app_password
workspace: your_workspace  # Optional, defaults to username
"""


def _default_search_dirs() -> List[Path]:
    return [Path.cwd(), Path.home()]


def find_config_file(search_dirs: Optional[Iterable[str | Path]] = None) -> Optional[Path]:
    """Return the first existing config file, checking each directory in order."""
    dirs = [Path(d) for d in search_dirs] if search_dirs is not None else _default_search_dirs()
    for directory in dirs:
        for filename in CONFIG_FILENAMES:
            candidate = directory.expanduser() / filename
            if candidate.is_file():
                return candidate
    return None


def load_local_secrets(
    path: Optional[str | Path] = None,
    search_dirs: Optional[Iterable[str | Path]] = None,
) -> Dict[str, Any]:
    """Load credentials from a YAML file; return {} when unavailable."""

    secrets_path = Path(path).expanduser() if path else find_config_file(search_dirs)
    if secrets_path is None or not secrets_path.exists():
        return {}
    try:
        with secrets_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except (OSError, yaml.YAMLError) as exc:
        print(f"[warn] could not read config file {secrets_path}: {exc}", file=sys.stderr)
        return {}
    if not isinstance(data, dict):
        return {}
    data["_path"] = str(secrets_path)
    return data


def write_sample_config(path: str | Path = DEFAULT_SAMPLE_FILENAME) -> Path:
    """Write a commented config template for the user to fill in."""
    target = Path(path)
    target.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return target


__all__ = [
    "CONFIG_FILENAMES",
    "DEFAULT_SAMPLE_FILENAME",
    "SAMPLE_CONFIG",
    "find_config_file",
    "load_local_secrets",
    "write_sample_config",
]
