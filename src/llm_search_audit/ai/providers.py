"""Text-generation providers used for AI enhancement."""

import json
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from ..config import Settings


class AiError(Exception):
    """Base class for AI capability failures."""


class AiTimeoutError(AiError):
    pass


class AiProviderError(AiError):
    pass


class AiMalformedOutputError(AiError):
    """Response did not contain the expected JSON shape."""


_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_json_response(text: str, required_keys: tuple[str, ...] = ()) -> dict[str, Any]:
    """Pull the outermost JSON object out of a model reply.

    Raises:
        AiMalformedOutputError: if no object parses or a required key is missing
    """
    match = _JSON_OBJECT.search(text or "")
    if not match:
        raise AiMalformedOutputError("No JSON object in response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise AiMalformedOutputError(f"Invalid JSON in response: {e}") from e
    if not isinstance(data, dict):
        raise AiMalformedOutputError("Response JSON is not an object")

    missing = [key for key in required_keys if key not in data]
    if missing:
        raise AiMalformedOutputError(f"Response missing keys: {', '.join(missing)}")
    return data


class TextGenerator(ABC):
    """Generate text for a prompt. Fails with an AiError subclass."""

    name: str
    model: str

    @abstractmethod
    def generate(self, prompt: str, max_tokens: int = 1024) -> str:
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        pass


class HttpTextGenerator(TextGenerator):
    """Shared request handling for JSON-over-HTTP providers."""

    def __init__(self, timeout: float = 60.0, transport: Optional[httpx.BaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    def _post(self, url: str, headers: dict[str, str], payload: dict[str, Any]) -> dict[str, Any]:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(url, headers=headers, json=payload)
                resp.raise_for_status()
                return resp.json()
        except httpx.TimeoutException as e:
            raise AiTimeoutError(f"{self.name} timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise AiProviderError(f"{self.name} returned HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise AiProviderError(f"{self.name} request failed: {e}") from e
        except ValueError as e:
            raise AiProviderError(f"{self.name} returned a non-JSON body") from e

    def _require_key(self) -> str:
        api_key = getattr(self, "api_key", None)
        if not api_key:
            raise AiProviderError(f"{self.name} API key not set")
        return api_key


class AnthropicProvider(HttpTextGenerator):
    """Anthropic (Claude) provider."""

    name = "Anthropic"

    def __init__(self, api_key: Optional[str] = None, model: str = "claude-3-5-haiku-20241022", **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.model = model
        self.base_url = "https://api.anthropic.com/v1"

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def generate(self, prompt: str, max_tokens: int = 1024) -> str:
        data = self._post(
            f"{self.base_url}/messages",
            headers={
                "x-api-key": self._require_key(),
                "anthropic-version": "2023-06-01",
                "Content-Type": "application/json",
            },
            payload={
                "model": self.model,
                "max_tokens": max_tokens,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        try:
            return data["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise AiMalformedOutputError("Unexpected Anthropic response shape") from e


class OpenAIProvider(HttpTextGenerator):
    """OpenAI (ChatGPT) provider."""

    name = "OpenAI"

    def __init__(self, api_key: Optional[str] = None, model: str = "gpt-4o-mini", **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.model = model
        self.base_url = "https://api.openai.com/v1"

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def generate(self, prompt: str, max_tokens: int = 1024) -> str:
        data = self._post(
            f"{self.base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {self._require_key()}",
                "Content-Type": "application/json",
            },
            payload={
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "max_tokens": max_tokens,
                "temperature": 0.3,
            },
        )
        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AiMalformedOutputError("Unexpected OpenAI response shape") from e


class GoogleProvider(HttpTextGenerator):
    """Google Gemini provider."""

    name = "Google"

    def __init__(self, api_key: Optional[str] = None, model: str = "gemini-2.0-flash", **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.model = model

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def generate(self, prompt: str, max_tokens: int = 1024) -> str:
        url = (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            f"{self.model}:generateContent?key={self._require_key()}"
        )
        data = self._post(
            url,
            headers={"Content-Type": "application/json"},
            payload={
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {"maxOutputTokens": max_tokens},
            },
        )
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise AiMalformedOutputError("Unexpected Google response shape") from e


def get_all_providers(settings: Settings) -> list[TextGenerator]:
    """All known providers in preference order."""
    overrides = {"model": settings.ai_model} if settings.ai_model else {}
    return [
        AnthropicProvider(api_key=settings.anthropic_api_key, timeout=settings.ai_timeout, **overrides),
        OpenAIProvider(api_key=settings.openai_api_key, timeout=settings.ai_timeout, **overrides),
        GoogleProvider(api_key=settings.google_api_key, timeout=settings.ai_timeout, **overrides),
    ]


def get_configured_generator(settings: Settings) -> Optional[TextGenerator]:
    """The provider to use, or None when AI enhancement is unavailable."""
    if settings.ai_provider == "none":
        return None

    providers = [p for p in get_all_providers(settings) if p.is_configured()]
    if settings.ai_provider:
        providers = [p for p in providers if p.name.lower() == settings.ai_provider]
    return providers[0] if providers else None
