"""Shared fixtures and fakes."""

import json
from typing import Any, Optional

import pytest

from cisummary.exceptions import NotificationTransportError
from cisummary.schemas import CommitAuthor, LogCorpus, RenderedMessage, WorkflowRun
from cisummary.services.notifications.notifier import SlackUser


class FakeResponse:
    """Stands in for an aiohttp response used as an async context manager."""

    def __init__(self, status: int = 200, json_data: Any = None, text: Optional[str] = None):
        self.status = status
        self._json = json_data
        self._text = text

    async def json(self, content_type: Optional[str] = "application/json") -> Any:
        if self._json is None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._json

    async def text(self, errors: str = "strict") -> str:
        if self._text is not None:
            return self._text
        return json.dumps(self._json) if self._json is not None else ""

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info) -> bool:
        return False


class FakeSession:
    """Replays queued responses and records every request."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: list[tuple[str, str, dict]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url: str, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs):
        return self.request("POST", url, **kwargs)

    async def close(self) -> None:
        self.closed = True


class FakeSlack:
    """Records Slack Web API calls made by the router."""

    def __init__(self, users: Optional[dict[str, str]] = None, failing_channels=()):
        self.users = users or {}
        self.failing_channels = set(failing_channels)
        self.calls: list[tuple] = []
        self.closed = False

    async def lookup_user_by_email(self, email: str) -> Optional[SlackUser]:
        self.calls.append(("lookup", email))
        user_id = self.users.get(email)
        return SlackUser(id=user_id, name=email.split("@")[0]) if user_id else None

    async def open_direct_channel(self, user_id: str) -> str:
        self.calls.append(("open", user_id))
        return f"D{user_id}"

    async def post_message(self, channel_id: str, message: RenderedMessage) -> str:
        self.calls.append(("post", channel_id))
        if channel_id in self.failing_channels:
            raise NotificationTransportError(f"Failed to send to {channel_id}", detail="channel_not_found")
        return "1700000000.000100"

    async def close(self) -> None:
        self.closed = True


class FakeWebhook:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[RenderedMessage] = []
        self.closed = False

    async def send(self, message: RenderedMessage) -> None:
        self.sent.append(message)
        if self.fail:
            raise NotificationTransportError("Slack webhook failed: 500", detail="internal_error")

    async def close(self) -> None:
        self.closed = True


def make_corpus(count: int, errors: Optional[dict[int, str]] = None) -> LogCorpus:
    """Corpus of ``count`` unremarkable lines with error lines at the given indices."""
    errors = errors or {}
    return LogCorpus(lines=tuple(errors.get(i, f"step {i}: ok") for i in range(count)))


@pytest.fixture
def workflow_run():
    return WorkflowRun(
        id=42,
        name="CI",
        repository="acme/widgets",
        head_branch="main",
        head_sha="0123456789abcdef",
        commit_url="https://github.com/acme/widgets/commit/0123456789abcdef",
        html_url="https://github.com/acme/widgets/actions/runs/42",
        author=CommitAuthor(name="Alex Doe", email="alex@example.com"),
    )


@pytest.fixture
def message():
    return RenderedMessage(
        blocks=[{"type": "section", "text": {"type": "mrkdwn", "text": "Root cause"}}],
        text="CI Failed: CI",
    )
