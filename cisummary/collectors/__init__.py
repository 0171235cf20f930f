"""Workflow run collectors."""

from .base import BaseCollector
from .github import GitHubActionsCollector

__all__ = ["BaseCollector", "GitHubActionsCollector"]
