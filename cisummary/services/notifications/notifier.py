"""Slack delivery: incoming webhooks and the bot-token Web API."""

import asyncio
from typing import Any, Optional

import aiohttp
from loguru import logger

from cisummary.exceptions import NotificationTransportError
from cisummary.schemas import RenderedMessage


class SlackUser:
    """Slack user returned by an email lookup."""

    def __init__(self, id: str, name: str = ""):
        self.id = id
        self.name = name or id

    def __repr__(self) -> str:
        return f"SlackUser(id={self.id!r}, name={self.name!r})"


class SlackWebhook:
    """Post messages to a Slack incoming webhook."""

    def __init__(self, webhook_url: str):
        self.webhook_url = webhook_url
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def send(self, message: RenderedMessage) -> None:
        """Send blocks to the webhook. Any non-2xx response is a failure."""
        session = await self._get_session()
        try:
            async with session.post(self.webhook_url, json={"blocks": message.blocks}) as response:
                if not 200 <= response.status < 300:
                    error = await response.text()
                    logger.error(f"Slack webhook error: HTTP {response.status} {error}")
                    raise NotificationTransportError(
                        f"Slack webhook failed: {response.status}", detail=error or None
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NotificationTransportError(
                "Slack webhook failed", detail=str(e) or type(e).__name__
            ) from e


class SlackAPI:
    """Minimal Slack Web API client authenticated with a bot token."""

    API_BASE = "https://slack.com/api/"

    def __init__(self, bot_token: str, api_base: Optional[str] = None):
        self.bot_token = bot_token
        self.api_base = api_base or self.API_BASE
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            headers = {"Authorization": f"Bearer {self.bot_token}"}
            self._session = aiohttp.ClientSession(headers=headers)
        return self._session

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _call(self, method: str, http_method: str = "POST", **kwargs) -> dict[str, Any]:
        session = await self._get_session()
        url = self.api_base + method
        try:
            async with session.request(http_method, url, **kwargs) as response:
                if response.status != 200:
                    error = await response.text()
                    raise NotificationTransportError(
                        f"Slack {method} failed: HTTP {response.status}", detail=error or None
                    )
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NotificationTransportError(
                f"Slack {method} failed", detail=str(e) or type(e).__name__
            ) from e
        except ValueError as e:
            raise NotificationTransportError(f"Slack {method} returned invalid JSON", detail=str(e)) from e

    async def lookup_user_by_email(self, email: str) -> Optional[SlackUser]:
        """Find the Slack user registered with an email, or None."""
        data = await self._call("users.lookupByEmail", "GET", params={"email": email})
        if not data.get("ok"):
            logger.debug(f"users.lookupByEmail returned {data.get('error')}")
            return None
        user = data.get("user") or {}
        if not user.get("id"):
            logger.warning("users.lookupByEmail returned ok without a user id")
            return None
        return SlackUser(id=user["id"], name=user.get("name", ""))

    async def open_direct_channel(self, user_id: str) -> str:
        """Open (or reuse) the DM channel with a user and return its id."""
        data = await self._call("conversations.open", json={"users": user_id})
        if not data.get("ok"):
            raise NotificationTransportError("Failed to open DM", detail=data.get("error"))
        return data["channel"]["id"]

    async def post_message(self, channel_id: str, message: RenderedMessage) -> str:
        """Post a message and return its timestamp."""
        payload = {"channel": channel_id, **message.payload()}
        data = await self._call("chat.postMessage", json=payload)
        if not data.get("ok"):
            raise NotificationTransportError(
                f"Failed to send to {channel_id}", detail=data.get("error")
            )
        return data.get("ts", "")
