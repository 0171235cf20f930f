"""AI completion providers for CI failure summaries."""

import asyncio
from typing import Any, Optional, Union

import aiohttp
from loguru import logger

from cisummary.exceptions import ProviderCallError, ProviderConfigurationError
from cisummary.schemas import ProviderName


DEFAULT_MAX_TOKENS = 1024

DEFAULT_MODELS: dict[ProviderName, str] = {
    ProviderName.ANTHROPIC: "claude-sonnet-4-20250514",
    ProviderName.GROQ: "llama-3.3-70b-versatile",
    ProviderName.GEMINI: "gemini-2.0-flash",
}


def _error_detail(data: Any, fallback: str) -> str:
    """Pull the backend's own error message out of an error body."""
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return fallback


class AIProvider:
    """Base class for AI completion providers."""

    name: ProviderName

    def __init__(self, api_key: str, model: Optional[str] = None, max_tokens: int = DEFAULT_MAX_TOKENS):
        self.api_key = api_key
        self.model = model or DEFAULT_MODELS[self.name]
        self.max_tokens = max_tokens
        self._session: Optional[aiohttp.ClientSession] = None

    def _headers(self) -> dict[str, str]:
        return {}

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self._headers())
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "AIProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _endpoint(self) -> str:
        raise NotImplementedError

    def _build_payload(self, prompt: str) -> dict[str, Any]:
        raise NotImplementedError

    def _parse_response(self, data: dict[str, Any]) -> str:
        raise NotImplementedError

    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the completion text."""
        session = await self._get_session()
        payload = self._build_payload(prompt)

        try:
            async with session.post(self._endpoint(), json=payload) as response:
                if response.status != 200:
                    try:
                        body = await response.json(content_type=None)
                    except ValueError:
                        body = await response.text()
                    detail = _error_detail(body, body if isinstance(body, str) else "")
                    logger.error(f"{self.name.value} API error: HTTP {response.status} {detail}")
                    raise ProviderCallError(
                        f"{self.name.value} request failed with HTTP {response.status}",
                        detail=detail or None,
                        status=response.status,
                    )
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderCallError(
                f"{self.name.value} request failed", detail=str(e) or type(e).__name__
            ) from e
        except ValueError as e:
            raise ProviderCallError(
                f"{self.name.value} returned a malformed response", detail=str(e)
            ) from e

        try:
            text = self._parse_response(data)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ProviderCallError(
                f"{self.name.value} returned a malformed response", detail=repr(e)
            ) from e

        if not text or not text.strip():
            raise ProviderCallError(f"{self.name.value} returned an empty completion")
        return text.strip()


class AnthropicProvider(AIProvider):
    """Anthropic Messages API."""

    name = ProviderName.ANTHROPIC
    API_URL = "https://api.anthropic.com/v1/messages"

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
        }

    def _endpoint(self) -> str:
        return self.API_URL

    def _build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    def _parse_response(self, data: dict[str, Any]) -> str:
        return "".join(
            block["text"] for block in data["content"] if block.get("type", "text") == "text"
        )


class GroqProvider(AIProvider):
    """Groq's OpenAI-compatible chat completions API."""

    name = ProviderName.GROQ
    API_URL = "https://api.groq.com/openai/v1/chat/completions"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _endpoint(self) -> str:
        return self.API_URL

    def _build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    def _parse_response(self, data: dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]


class GeminiProvider(AIProvider):
    """Google Gemini generateContent API."""

    name = ProviderName.GEMINI
    API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    def _headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self.api_key}

    def _endpoint(self) -> str:
        return self.API_URL.format(model=self.model)

    def _build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"maxOutputTokens": self.max_tokens},
        }

    def _parse_response(self, data: dict[str, Any]) -> str:
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)


PROVIDERS: dict[ProviderName, type[AIProvider]] = {
    ProviderName.ANTHROPIC: AnthropicProvider,
    ProviderName.GROQ: GroqProvider,
    ProviderName.GEMINI: GeminiProvider,
}

_missing = set(ProviderName) - set(PROVIDERS)
if _missing:
    raise RuntimeError(f"No provider class registered for: {sorted(p.value for p in _missing)}")


def resolve_provider(provider: Union[ProviderName, str]) -> ProviderName:
    """Map a selector string onto the closed provider set."""
    if isinstance(provider, ProviderName):
        return provider
    try:
        return ProviderName(str(provider).strip().lower())
    except ValueError:
        raise ProviderConfigurationError.unknown_provider(
            str(provider), [p.value for p in ProviderName]
        ) from None


def default_model(provider: Union[ProviderName, str]) -> str:
    return DEFAULT_MODELS[resolve_provider(provider)]


def create_provider(
    provider: Union[ProviderName, str],
    api_key: Optional[str],
    model: Optional[str] = None,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> AIProvider:
    """Build the provider for a selector, validating it and its credential."""
    name = resolve_provider(provider)
    if not api_key:
        raise ProviderConfigurationError.missing_credential(name.value)
    return PROVIDERS[name](api_key=api_key, model=model, max_tokens=max_tokens)


async def complete(
    provider: Union[ProviderName, str],
    credential: Optional[str],
    model: Optional[str],
    prompt: str,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> str:
    """Run a single completion against the selected backend."""
    client = create_provider(provider, credential, model, max_tokens)
    logger.info(f"Using provider: {client.name.value}, model: {client.model}")
    async with client:
        return await client.complete(prompt)
