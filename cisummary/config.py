"""Configuration settings for cisummary.

Every value can come from a ``CISUMMARY_*`` variable, the GitHub Action
``INPUT_*`` variable of the same name, or (for runner context) the standard
``GITHUB_*`` variable. Empty values count as unset.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cisummary.schemas import NotificationMode, ProviderName


def _env(name: str, *extra: str) -> AliasChoices:
    return AliasChoices(f"CISUMMARY_{name}", f"INPUT_{name}", *extra)


_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_ignore_empty=True,
    extra="ignore",
    frozen=True,
    populate_by_name=True,
)


class GitHubSettings(BaseSettings):
    token: str = Field("", validation_alias=_env("GITHUB_TOKEN", "GITHUB_TOKEN"))
    repository: str = Field("", validation_alias=_env("REPOSITORY", "GITHUB_REPOSITORY"))
    run_id: Optional[int] = Field(None, validation_alias=_env("RUN_ID", "GITHUB_RUN_ID"))
    api_url: str = Field("https://api.github.com", validation_alias=_env("API_URL", "GITHUB_API_URL"))
    server_url: str = Field("https://github.com", validation_alias=_env("SERVER_URL", "GITHUB_SERVER_URL"))

    model_config = _CONFIG


class AISettings(BaseSettings):
    # Kept as a plain string so an unknown selector surfaces as a provider error
    provider: str = Field("anthropic", validation_alias=_env("PROVIDER"))
    anthropic_api_key: str = Field("", validation_alias=_env("ANTHROPIC_API_KEY"))
    groq_api_key: str = Field("", validation_alias=_env("GROQ_API_KEY"))
    gemini_api_key: str = Field("", validation_alias=_env("GEMINI_API_KEY"))
    model: Optional[str] = Field(None, validation_alias=_env("MODEL"))
    max_tokens: int = Field(1024, validation_alias=_env("MAX_TOKENS"))

    model_config = _CONFIG

    def api_key_for(self, provider: ProviderName) -> str:
        return getattr(self, f"{provider.value}_api_key")


class SlackSettings(BaseSettings):
    bot_token: str = Field("", validation_alias=_env("SLACK_BOT_TOKEN"))
    webhook_url: str = Field("", validation_alias=_env("SLACK_WEBHOOK_URL"))
    notification_mode: NotificationMode = Field(
        NotificationMode.CHANNEL, validation_alias=_env("NOTIFICATION_MODE")
    )
    fallback_channel: str = Field("", validation_alias=_env("FALLBACK_CHANNEL"))

    model_config = _CONFIG


class ExtractionSettings(BaseSettings):
    max_log_lines: int = Field(500, ge=1, validation_alias=_env("MAX_LOG_LINES"))
    context_lines: int = Field(5, ge=0, validation_alias=_env("CONTEXT_LINES"))

    model_config = _CONFIG


class Settings(BaseSettings):
    """Global application settings."""
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    ai: AISettings = Field(default_factory=AISettings)
    slack: SlackSettings = Field(default_factory=SlackSettings)
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)

    log_level: str = Field("INFO", validation_alias=_env("LOG_LEVEL"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )
