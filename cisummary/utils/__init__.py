"""Utilities for cisummary."""

from .actions import escape_data, set_failed, set_output

__all__ = ["escape_data", "set_failed", "set_output"]
