"""Decide where a CI failure summary goes and deliver it.

Channel mode posts through the incoming webhook when one is configured,
otherwise through the bot token to the fallback channel. DM mode resolves the
commit author's email to a Slack user, opens a DM and posts there; if the user
cannot be resolved the message goes to the fallback channel instead.
"""

from typing import Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict

from cisummary.exceptions import (
    NotificationConfigurationError,
    NotificationResolutionError,
)
from cisummary.schemas import (
    Channel,
    CommitAuthor,
    DeliveryState,
    DirectMessage,
    NotificationMode,
    NotificationResult,
    RenderedMessage,
    Webhook,
)
from .notifier import SlackAPI, SlackWebhook


class RouterConfig(BaseModel):
    """Destinations and credentials available to the router."""
    model_config = ConfigDict(frozen=True)

    mode: NotificationMode = NotificationMode.CHANNEL
    webhook_url: Optional[str] = None
    bot_token: Optional[str] = None
    fallback_channel: Optional[str] = None

    def validate_destinations(self) -> None:
        """Fail before any network call when the mode cannot possibly deliver."""
        if self.mode == NotificationMode.DM:
            if not self.bot_token:
                raise NotificationConfigurationError("slack_bot_token is required for DM mode")
            return
        if self.webhook_url:
            return
        if not self.bot_token:
            raise NotificationConfigurationError(
                "slack_webhook_url or slack_bot_token is required for channel mode"
            )
        if not self.fallback_channel:
            raise NotificationConfigurationError(
                "fallback_channel is required to post to a channel with slack_bot_token"
            )


class NotificationRouter:
    """Routes a rendered message to a webhook, a channel or the commit author's DMs."""

    def __init__(
        self,
        config: RouterConfig,
        slack: Optional[SlackAPI] = None,
        webhook: Optional[SlackWebhook] = None,
    ):
        config.validate_destinations()
        self.config = config
        self._slack = slack
        self._webhook = webhook

    @property
    def slack(self) -> SlackAPI:
        if self._slack is None:
            self._slack = SlackAPI(self.config.bot_token or "")
        return self._slack

    @property
    def webhook(self) -> SlackWebhook:
        if self._webhook is None:
            self._webhook = SlackWebhook(self.config.webhook_url or "")
        return self._webhook

    async def close(self) -> None:
        if self._slack is not None:
            await self._slack.close()
        if self._webhook is not None:
            await self._webhook.close()

    async def notify(
        self,
        message: RenderedMessage,
        author: Optional[CommitAuthor] = None,
    ) -> NotificationResult:
        """
        Deliver the message according to the configured mode.

        Raises:
            NotificationResolutionError: DM target unresolved and no fallback channel.
            NotificationTransportError: A webhook or Slack API call failed.
        """
        if self.config.mode == NotificationMode.DM:
            logger.info("Notification mode: DM to committer")
            return await self._notify_dm(message, author)

        logger.info("Notification mode: Channel")
        return await self._notify_channel(message)

    async def _notify_channel(self, message: RenderedMessage) -> NotificationResult:
        if self.config.webhook_url:
            await self.webhook.send(message)
            logger.info("Summary posted to Slack webhook")
            return NotificationResult(
                state=DeliveryState.DELIVERED,
                target=Webhook(url=self.config.webhook_url),
            )

        channel_id = self.config.fallback_channel
        ts = await self.slack.post_message(channel_id, message)
        logger.info(f"Summary posted to Slack channel {channel_id}")
        return NotificationResult(
            state=DeliveryState.DELIVERED,
            target=Channel(channel_id=channel_id),
            timestamp=ts,
        )

    async def _notify_dm(
        self,
        message: RenderedMessage,
        author: Optional[CommitAuthor],
    ) -> NotificationResult:
        email = author.email if author else None

        user = None
        if email:
            user = await self.slack.lookup_user_by_email(email)

        if user is not None:
            logger.info(f"Found Slack user: {user.name} ({user.id})")
            channel_id = await self.slack.open_direct_channel(user.id)
            ts = await self.slack.post_message(channel_id, message)
            logger.info(f"DM sent to {user.name}")
            return NotificationResult(
                state=DeliveryState.DELIVERED,
                target=DirectMessage(user_id=user.id, channel_id=channel_id),
                notified_user=user.id,
                timestamp=ts,
            )

        logger.warning(f"Could not find Slack user for email: {email}")
        fallback = self.config.fallback_channel
        if not fallback:
            raise NotificationResolutionError(
                "Could not find Slack user and no fallback channel configured"
            )

        logger.info(f"Falling back to channel: {fallback}")
        ts = await self.slack.post_message(fallback, message)
        logger.info("Message sent to fallback channel")
        return NotificationResult(
            state=DeliveryState.DELIVERED_VIA_FALLBACK,
            target=Channel(channel_id=fallback),
            timestamp=ts,
            reason=f"No Slack user found for {email or 'commit author'}",
        )
