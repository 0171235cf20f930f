"""Services for summarizing and delivering CI failures."""

from .notifications import NotificationRouter, RouterConfig, SummaryTemplate, complete

__all__ = ["NotificationRouter", "RouterConfig", "SummaryTemplate", "complete"]
