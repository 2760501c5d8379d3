"""Logging and metrics for graph computation."""

from resourcemap.observability.logging import setup_logging

__all__ = ["setup_logging"]
