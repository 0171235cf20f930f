"""AI summarization and Slack notification services."""

from .ai_provider import (
    AIProvider,
    AnthropicProvider,
    GeminiProvider,
    GroqProvider,
    DEFAULT_MODELS,
    complete,
    create_provider,
    resolve_provider,
)
from .template import SummaryTemplate
from .notifier import SlackAPI, SlackUser, SlackWebhook
from .router import NotificationRouter, RouterConfig

__all__ = [
    "SummaryTemplate",
    "SlackAPI",
    "SlackUser",
    "SlackWebhook",
    "NotificationRouter",
    "RouterConfig",
    "AIProvider",
    "AnthropicProvider",
    "GroqProvider",
    "GeminiProvider",
    "DEFAULT_MODELS",
    "complete",
    "create_provider",
    "resolve_provider",
]
