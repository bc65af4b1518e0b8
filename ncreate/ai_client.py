"""Async clients for AI text-generation providers.

Two providers are supported:

* ``ollama`` -- a local Ollama server (``/api/generate``).
* ``openai`` -- any OpenAI-compatible ``/chat/completions`` endpoint,
  authenticated with a bearer API key.

Clients never raise on transport problems: they return an ``AIResponse``
with ``success=False`` and an error message.  ``StructureGenerator`` sits on
top and turns a prompt into a validated ``ProjectStructure``, raising
``ProviderError`` for anything unusable.

Typical usage::

    generator = StructureGenerator.from_config(config.ai)
    structure = await generator.generate("a flask todo app")
"""

from __future__ import annotations

import time
from typing import Protocol

import httpx
from pydantic import BaseModel, Field

from ncreate.config import AIConfig
from ncreate.errors import ConfigError, ProviderError
from ncreate.scaffolder.models import ProjectStructure
from ncreate.scaffolder.normalizer import parse_structure

DEFAULT_URLS: dict[str, str] = {
    "ollama": "http://localhost:11434",
    "openai": "https://api.openai.com/v1",
}

DEFAULT_MODELS: dict[str, str] = {
    "ollama": "qwen2.5-coder:14b",
    "openai": "gpt-4o-mini",
}

STRUCTURE_SYSTEM_PROMPT = """\
You design starter project layouts. Reply with a single JSON object and
nothing else, using exactly this shape:

{"name": "<short-project-name>",
 "folders": ["<relative/dir>", ...],
 "files": [{"path": "<relative/file>", "content": "<full file text>", "executable": false}, ...]}

All paths are relative, use forward slashes and never contain "..".
"""


class AIResponse(BaseModel):
    """Structured response from a generation call."""

    text: str = Field(default="", description="Generated text")
    model: str = Field(default="", description="Model that produced the response")
    duration_ms: float = Field(default=0.0, description="Generation time in ms")
    success: bool = Field(default=True, description="Whether the request succeeded")
    error: str | None = Field(default=None, description="Error message on failure")


class TextClient(Protocol):
    provider: str

    async def generate(self, prompt: str, model: str, system: str = "") -> AIResponse: ...


# ---------------------------------------------------------------------------
# Ollama
# ---------------------------------------------------------------------------


class OllamaClient:
    """Async client for the Ollama REST API."""

    provider = "ollama"

    def __init__(self, base_url: str = DEFAULT_URLS["ollama"], timeout: int = 120) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    @staticmethod
    def _extract_text(data: dict) -> str:
        """Ollama's non-streaming response puts the full text in ``"response"``."""
        return data.get("response", "")

    @staticmethod
    def _extract_duration_ms(data: dict) -> float:
        """The API returns ``total_duration`` in **nanoseconds**."""
        ns = data.get("total_duration", 0)
        return ns / 1_000_000.0

    async def generate(
        self,
        prompt: str,
        model: str = DEFAULT_MODELS["ollama"],
        system: str = "",
    ) -> AIResponse:
        """Generate text from a prompt.

        Args:
            prompt: The user prompt.
            model: Ollama model tag to use.
            system: Optional system prompt.

        Returns:
            An ``AIResponse`` with the generated text or an error.
        """
        payload: dict = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "format": "json",
        }
        if system:
            payload["system"] = system

        try:
            async with self._client() as client:
                response = await client.post("/api/generate", json=payload)
                response.raise_for_status()
                data = response.json()
                return AIResponse(
                    text=self._extract_text(data),
                    model=data.get("model", model),
                    duration_ms=self._extract_duration_ms(data),
                    success=True,
                )
        except httpx.ConnectError:
            return AIResponse(
                model=model,
                success=False,
                error=f"Cannot connect to Ollama at {self.base_url}. Is the server running?",
            )
        except httpx.TimeoutException:
            return AIResponse(
                model=model,
                success=False,
                error=f"Request to Ollama timed out after {self.timeout}s.",
            )
        except httpx.HTTPStatusError as exc:
            return AIResponse(
                model=model,
                success=False,
                error=f"Ollama returned HTTP {exc.response.status_code}: {exc.response.text[:500]}",
            )
        except (httpx.HTTPError, ValueError) as exc:
            return AIResponse(
                model=model,
                success=False,
                error=f"Unexpected error during Ollama generate: {exc}",
            )


# ---------------------------------------------------------------------------
# OpenAI-compatible
# ---------------------------------------------------------------------------


class OpenAIClient:
    """Async client for OpenAI-compatible chat completion endpoints."""

    provider = "openai"

    def __init__(
        self,
        base_url: str = DEFAULT_URLS["openai"],
        api_key: str | None = None,
        timeout: int = 120,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    @staticmethod
    def _extract_text(data: dict) -> str:
        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    async def generate(
        self,
        prompt: str,
        model: str = DEFAULT_MODELS["openai"],
        system: str = "",
    ) -> AIResponse:
        """Generate text with a single chat completion round-trip."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        payload = {"model": model, "messages": messages, "temperature": 0}

        started = time.monotonic()
        try:
            async with self._client() as client:
                response = await client.post("/chat/completions", json=payload)
                response.raise_for_status()
                data = response.json()
                return AIResponse(
                    text=self._extract_text(data),
                    model=data.get("model", model),
                    duration_ms=(time.monotonic() - started) * 1000.0,
                    success=True,
                )
        except httpx.ConnectError:
            return AIResponse(
                model=model,
                success=False,
                error=f"Cannot connect to {self.base_url}.",
            )
        except httpx.TimeoutException:
            return AIResponse(
                model=model,
                success=False,
                error=f"Request timed out after {self.timeout}s.",
            )
        except httpx.HTTPStatusError as exc:
            return AIResponse(
                model=model,
                success=False,
                error=f"Provider returned HTTP {exc.response.status_code}: {exc.response.text[:500]}",
            )
        except (httpx.HTTPError, ValueError) as exc:
            return AIResponse(
                model=model,
                success=False,
                error=f"Unexpected error during chat completion: {exc}",
            )


def create_client(ai: AIConfig) -> TextClient:
    """Build the client named by ``ai.provider``.

    Raises:
        ConfigError: The provider is unknown.
    """
    url = ai.url or DEFAULT_URLS.get(ai.provider, "")
    if ai.provider == "ollama":
        return OllamaClient(base_url=url, timeout=ai.timeout)
    if ai.provider == "openai":
        return OpenAIClient(base_url=url, api_key=ai.api_key, timeout=ai.timeout)
    raise ConfigError(
        f"Unknown AI provider {ai.provider!r} (expected one of: {', '.join(sorted(DEFAULT_URLS))})"
    )


# ---------------------------------------------------------------------------
# Prompt -> ProjectStructure
# ---------------------------------------------------------------------------


class StructureGenerator:
    """Asks a provider for a project layout and validates the reply."""

    def __init__(self, client: TextClient, model: str, max_response_bytes: int = 1_000_000) -> None:
        self.client = client
        self.model = model
        self.max_response_bytes = max_response_bytes

    @classmethod
    def from_config(cls, ai: AIConfig) -> "StructureGenerator":
        client = create_client(ai)
        model = ai.model or DEFAULT_MODELS[client.provider]
        return cls(client, model, ai.max_response_bytes)

    async def generate(self, prompt: str) -> ProjectStructure:
        """Return the project structure the provider proposes for *prompt*.

        Raises:
            ProviderError: The call failed, or the reply is empty, too large,
                or not a valid project structure.
        """
        provider = self.client.provider
        if not prompt.strip():
            raise ProviderError("prompt is empty", provider)

        response = await self.client.generate(prompt, model=self.model, system=STRUCTURE_SYSTEM_PROMPT)
        if not response.success:
            raise ProviderError(response.error or "request failed", provider)
        if not response.text.strip():
            raise ProviderError("empty response", provider)

        size = len(response.text.encode("utf-8"))
        if size > self.max_response_bytes:
            raise ProviderError(
                f"response is {size} bytes, limit is {self.max_response_bytes}", provider
            )

        return parse_structure(response.text)
