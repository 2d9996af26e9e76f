"""Bitbucket workspace audit: filtering, enrichment, aggregation and reporting."""

from .runner import main, run_audit

__all__ = ["main", "run_audit"]
