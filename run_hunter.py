"""Convenience shim to run the Bitbucket workspace audit."""

from __future__ import annotations

import sys

from src.audit.runner import main as audit_main


if __name__ == "__main__":
    audit_main(sys.argv[1:])
