"""Test AI provider dispatch."""

import asyncio

import aiohttp
import pytest

from conftest import FakeResponse, FakeSession

from cisummary.exceptions import (
    ConfigurationError,
    ProviderCallError,
    ProviderConfigurationError,
    ProviderError,
)
from cisummary.schemas import ProviderName
from cisummary.services.notifications import ai_provider
from cisummary.services.notifications.ai_provider import (
    DEFAULT_MODELS,
    PROVIDERS,
    AnthropicProvider,
    GeminiProvider,
    GroqProvider,
    complete,
    create_provider,
    resolve_provider,
)


@pytest.fixture
def no_network(monkeypatch):
    def _fail(*args, **kwargs):
        raise AssertionError("network session must not be created")

    monkeypatch.setattr(ai_provider.aiohttp, "ClientSession", _fail)


def test_every_provider_has_handler_and_default_model():
    assert set(PROVIDERS) == set(ProviderName)
    assert set(DEFAULT_MODELS) == set(ProviderName)
    assert DEFAULT_MODELS[ProviderName.ANTHROPIC] == "claude-sonnet-4-20250514"
    assert DEFAULT_MODELS[ProviderName.GROQ] == "llama-3.3-70b-versatile"
    assert DEFAULT_MODELS[ProviderName.GEMINI] == "gemini-2.0-flash"


def test_resolve_provider():
    assert resolve_provider("groq") is ProviderName.GROQ
    assert resolve_provider(" Gemini ") is ProviderName.GEMINI
    assert resolve_provider(ProviderName.ANTHROPIC) is ProviderName.ANTHROPIC


def test_unknown_provider_is_configuration_error():
    with pytest.raises(ProviderConfigurationError) as exc:
        resolve_provider("foo")

    assert "Unknown provider: foo" in str(exc.value)
    assert isinstance(exc.value, ConfigurationError)
    assert isinstance(exc.value, ProviderError)


@pytest.mark.asyncio
async def test_unknown_provider_fails_before_network(no_network):
    with pytest.raises(ProviderConfigurationError):
        await complete("foo", "key", None, "prompt")


@pytest.mark.asyncio
async def test_missing_credential_fails_before_network(no_network):
    with pytest.raises(ProviderConfigurationError) as exc:
        await complete("groq", "", None, "prompt")

    assert "groq_api_key is required" in str(exc.value)


def test_create_provider_uses_default_model():
    provider = create_provider("gemini", "key")
    assert isinstance(provider, GeminiProvider)
    assert provider.model == "gemini-2.0-flash"

    provider = create_provider("anthropic", "key", model="claude-3-5-haiku-20241022")
    assert provider.model == "claude-3-5-haiku-20241022"


@pytest.mark.asyncio
async def test_anthropic_completion():
    provider = AnthropicProvider(api_key="sk-test")
    provider._session = FakeSession(
        FakeResponse(200, {"content": [{"type": "text", "text": "  Root cause: typo  "}]})
    )

    text = await provider.complete("why did it fail?")

    assert text == "Root cause: typo"
    method, url, kwargs = provider._session.calls[0]
    assert url == "https://api.anthropic.com/v1/messages"
    assert kwargs["json"] == {
        "model": "claude-sonnet-4-20250514",
        "max_tokens": 1024,
        "messages": [{"role": "user", "content": "why did it fail?"}],
    }
    assert provider._headers()["x-api-key"] == "sk-test"


@pytest.mark.asyncio
async def test_groq_completion():
    provider = GroqProvider(api_key="gsk", max_tokens=256)
    provider._session = FakeSession(
        FakeResponse(200, {"choices": [{"message": {"content": "Missing dependency"}}]})
    )

    assert await provider.complete("prompt") == "Missing dependency"
    _, url, kwargs = provider._session.calls[0]
    assert url == "https://api.groq.com/openai/v1/chat/completions"
    assert kwargs["json"]["max_tokens"] == 256
    assert provider._headers() == {"Authorization": "Bearer gsk"}


@pytest.mark.asyncio
async def test_gemini_completion():
    provider = GeminiProvider(api_key="g-key", model="gemini-1.5-pro")
    provider._session = FakeSession(
        FakeResponse(200, {"candidates": [{"content": {"parts": [{"text": "Part one. "}, {"text": "Part two."}]}}]})
    )

    assert await provider.complete("prompt") == "Part one. Part two."
    _, url, kwargs = provider._session.calls[0]
    assert url.endswith("/models/gemini-1.5-pro:generateContent")
    assert kwargs["json"]["contents"][0]["parts"] == [{"text": "prompt"}]


@pytest.mark.asyncio
async def test_error_status_carries_backend_detail():
    provider = AnthropicProvider(api_key="bad")
    provider._session = FakeSession(
        FakeResponse(401, {"type": "error", "error": {"type": "authentication_error", "message": "invalid x-api-key"}})
    )

    with pytest.raises(ProviderCallError) as exc:
        await provider.complete("prompt")

    assert exc.value.status == 401
    assert exc.value.detail == "invalid x-api-key"
    assert "invalid x-api-key" in str(exc.value)


@pytest.mark.asyncio
async def test_error_status_with_plain_text_body():
    provider = GroqProvider(api_key="k")
    provider._session = FakeSession(FakeResponse(503, text="upstream unavailable"))

    with pytest.raises(ProviderCallError) as exc:
        await provider.complete("prompt")

    assert exc.value.status == 503
    assert exc.value.detail == "upstream unavailable"


@pytest.mark.asyncio
async def test_malformed_response():
    provider = GroqProvider(api_key="k")
    provider._session = FakeSession(FakeResponse(200, {"choices": []}))

    with pytest.raises(ProviderCallError, match="malformed"):
        await provider.complete("prompt")


@pytest.mark.asyncio
async def test_transport_error():
    provider = GeminiProvider(api_key="k")
    provider._session = FakeSession(aiohttp.ClientConnectionError("connection reset"))

    with pytest.raises(ProviderCallError) as exc:
        await provider.complete("prompt")

    assert "connection reset" in str(exc.value)


@pytest.mark.asyncio
async def test_timeout_is_provider_call_error():
    provider = AnthropicProvider(api_key="k")
    provider._session = FakeSession(asyncio.TimeoutError())

    with pytest.raises(ProviderCallError, match="anthropic request failed"):
        await provider.complete("prompt")


@pytest.mark.asyncio
async def test_complete_makes_one_call_and_closes_session(monkeypatch):
    session = FakeSession(
        FakeResponse(200, {"choices": [{"message": {"content": "Summary"}}]})
    )
    monkeypatch.setattr(ai_provider.aiohttp, "ClientSession", lambda **kwargs: session)

    text = await complete(ProviderName.GROQ, "gsk", None, "prompt")

    assert text == "Summary"
    assert len(session.calls) == 1
    assert session.calls[0][2]["json"]["model"] == "llama-3.3-70b-versatile"
    assert session.closed is True
