"""Command-line parsing and credential resolution for the audit workflow."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.bitbucket.config import DEFAULT_CONCURRENCY
from src.secrets import load_local_secrets

ENV_USERNAME = "BITBUCKET_USERNAME"
ENV_APP_PASSWORD = "BITBUCKET_APP_PASSWORD"
ENV_WORKSPACE = "BITBUCKET_WORKSPACE"

EPILOG = """\
Examples:
  bhunter                                    # Analyze all repositories with branches
  bhunter --repo-only                        # Show only repository information
  bhunter --summary                          # Show summary statistics only
  bhunter -r MyRepo                          # Analyze only MyRepo
  bhunter --exclude archive,legacy --csv     # CSV for everything except archived repos
  bhunter --output | bkiller                 # Find old branches and pipe to bkiller
  bhunter -r MyRepo -o | bkiller             # Find old branches in a specific repo

Configuration File:
  The first file found is used, searching the current directory then the home directory:
    bhunter.local.yaml / bhunter.local.yml   (local overrides)
    bhunter.yaml / bhunter.yml               (standard config)
    .bhunter.local.yaml / .bhunter.local.yml (hidden local)
    .bhunter.yaml / .bhunter.yml             (hidden config)

  Example config file (bhunter.yaml):
    username: your_username
    app_password: your_app_password
    workspace: your_workspace

  Environment variables BITBUCKET_USERNAME, BITBUCKET_APP_PASSWORD and
  BITBUCKET_WORKSPACE are used when neither flags nor a config file provide
  credentials.

Get an app password at: https://bitbucket.org/account/settings/app-passwords/
"""

MISSING_CREDENTIALS_HELP = """\
Error: Username and app password are required

Options:
1. Use command line: bhunter -u username -p app_password
2. Create config file: bhunter -c
3. Use environment variables: BITBUCKET_USERNAME, BITBUCKET_APP_PASSWORD, BITBUCKET_WORKSPACE

For help: bhunter -h"""


class MissingCredentialsError(ValueError):
    """Raised when no source provides both a username and an app password."""


@dataclass(frozen=True)
class AuditSettings:
    """Resolved runtime settings for one audit invocation."""

    username: str
    app_password: str
    workspace: str
    repo: Optional[str] = None
    repo_only: bool = False
    output_mode: bool = False
    csv: bool = False
    summary: bool = False
    include_terms: Tuple[str, ...] = ()
    exclude_terms: Tuple[str, ...] = ()
    concurrency: int = DEFAULT_CONCURRENCY
    config_path: Optional[str] = None

    @property
    def quiet(self) -> bool:
        """True for machine-oriented modes that suppress progress chatter."""
        return self.output_mode or self.csv or self.summary


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return number


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser used by the audit entry point."""

    parser = argparse.ArgumentParser(
        prog="bhunter",
        description="Bitbucket Hunter - Repository and Branch Analysis Tool",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-u", "--username", default="", help="Bitbucket username")
    parser.add_argument("-p", "--password", default="", help="Bitbucket app password")
    parser.add_argument("-w", "--workspace", default="", help="Bitbucket workspace (optional, defaults to username)")
    parser.add_argument("-r", "--repo", default="", help="Repository name (optional, analyze only this repo)")
    parser.add_argument("--repo-only", action="store_true", help="Show only repository information (no branch details)")
    parser.add_argument(
        "-o", "--output", action="store_true", help="Output old branch names (>6 months) for piping to bkiller"
    )
    parser.add_argument("--csv", action="store_true", help="Output repository information in CSV format")
    parser.add_argument("--summary", action="store_true", help="Show summary statistics (repos, branches, old branches)")
    parser.add_argument("-c", "--config", action="store_true", help="Create sample config file")
    parser.add_argument(
        "--include",
        action="append",
        default=[],
        help="Only audit repositories whose name contains one of these terms (repeatable, comma-separated)",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Skip repositories whose name contains one of these terms (repeatable, comma-separated)",
    )
    parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=DEFAULT_CONCURRENCY,
        help=f"Maximum concurrent creator lookups (default: {DEFAULT_CONCURRENCY})",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    parser = build_arg_parser()
    return parser.parse_args(argv)


def split_terms(values: Optional[List[str]]) -> Tuple[str, ...]:
    """Flatten repeated, comma-separated filter flags into a tuple of terms."""
    terms: List[str] = []
    for value in values or []:
        terms.extend(part.strip() for part in value.split(",") if part.strip())
    return tuple(terms)


def resolve_settings(
    args: argparse.Namespace,
    environ: Optional[Mapping[str, str]] = None,
    file_config: Optional[Dict[str, Any]] = None,
) -> AuditSettings:
    """Merge flags, the config file and environment variables into settings.

    Flags win. The config file is only consulted when the username or the
    password is missing, and the environment only when they are still missing.
    """
    environ = os.environ if environ is None else environ
    username = args.username or ""
    app_password = args.password or ""
    workspace = args.workspace or ""
    config_path = None

    if not username or not app_password:
        file_config = load_local_secrets() if file_config is None else file_config
        if file_config:
            config_path = file_config.get("_path")
            username = username or str(file_config.get("username") or "")
            app_password = app_password or str(file_config.get("app_password") or "")
            workspace = workspace or str(file_config.get("workspace") or "")

    if not username or not app_password:
        env_username = environ.get(ENV_USERNAME, "")
        env_password = environ.get(ENV_APP_PASSWORD, "")
        if not (env_username and env_password):
            raise MissingCredentialsError(MISSING_CREDENTIALS_HELP)
        username, app_password = env_username, env_password
        workspace = environ.get(ENV_WORKSPACE, "") or workspace

    return AuditSettings(
        username=username,
        app_password=app_password,
        workspace=workspace or username,
        repo=args.repo or None,
        repo_only=bool(args.repo_only),
        output_mode=bool(args.output),
        csv=bool(args.csv),
        summary=bool(args.summary),
        include_terms=split_terms(args.include),
        exclude_terms=split_terms(args.exclude),
        concurrency=int(args.concurrency),
        config_path=config_path,
    )


__all__ = [
    "ENV_USERNAME",
    "ENV_APP_PASSWORD",
    "ENV_WORKSPACE",
    "MISSING_CREDENTIALS_HELP",
    "MissingCredentialsError",
    "AuditSettings",
    "build_arg_parser",
    "parse_args",
    "split_terms",
    "resolve_settings",
]
