"""cisummary - AI summaries of failed CI runs, delivered to Slack."""

__version__ = "0.1.0"
