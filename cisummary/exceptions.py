"""Exception hierarchy for cisummary.

- CISummaryError: base for everything raised by this package
- ConfigurationError: invalid or missing settings, raised before any network call
- ProviderError: AI backend selection or call failures
- NotificationError: Slack routing failures, each carrying a failed NotificationResult
- LogSourceError: GitHub run/job/log retrieval failures
"""

from typing import Optional

from cisummary.schemas import DeliveryState, NotificationResult


class CISummaryError(Exception):
    """Base exception for all cisummary errors."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


class ConfigurationError(CISummaryError):
    """Raised when configuration is invalid or incomplete."""


class ProviderError(CISummaryError):
    """Raised when the AI provider cannot produce a completion."""


class ProviderConfigurationError(ProviderError, ConfigurationError):
    """Unknown provider selector or missing credential."""

    @classmethod
    def unknown_provider(cls, name: str, known: list[str]) -> "ProviderConfigurationError":
        return cls(f"Unknown provider: {name}. Use {', '.join(repr(k) for k in known)}")

    @classmethod
    def missing_credential(cls, name: str) -> "ProviderConfigurationError":
        return cls(f"{name}_api_key is required when using the {name} provider")


class ProviderCallError(ProviderError):
    """Backend returned a non-success or malformed response."""

    def __init__(
        self,
        message: str,
        detail: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message, detail)
        self.status = status


class NotificationError(CISummaryError):
    """Raised when a notification could not be delivered."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, detail)
        self.result = NotificationResult(
            state=DeliveryState.FAILED,
            reason=str(self),
        )


class NotificationConfigurationError(NotificationError, ConfigurationError):
    """Notification mode is missing the credentials or destinations it needs."""


class NotificationResolutionError(NotificationError):
    """No Slack user matched the commit author and no fallback channel is set."""


class NotificationTransportError(NotificationError):
    """Webhook or Slack Web API call failed."""


class LogSourceError(CISummaryError):
    """Raised when workflow run metadata or job logs cannot be retrieved."""
