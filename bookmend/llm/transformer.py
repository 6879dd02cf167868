"""Text transformation providers.

Responsibilities:
- Define the protocol the orchestrator uses for one external transform call.
- Provide Gemini and OpenAI backed implementations plus an offline bypass.
"""

from __future__ import annotations

from typing import Protocol

from .gemini_client import GeminiClient
from .openai_client import OpenAIChatClient
from .rate_limiter import RateLimiter


class TextTransformer(Protocol):
    """Protocol for external text transformation providers."""

    provider_id: str
    model: str

    def transform(self, text: str, instruction: str) -> str:
        """Return the restored version of `text` following `instruction`."""


class GeminiTransformer:
    """Gemini-backed transformer for segment restoration."""

    provider_id = "gemini"

    def __init__(
        self,
        model: str = "gemini-2.5-flash",
        api_key: str | None = None,
        temperature: float = 0.1,
        request_timeout_seconds: float = 180.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.client = GeminiClient(api_key=api_key, timeout_seconds=request_timeout_seconds)
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()

    def transform(self, text: str, instruction: str) -> str:
        """Restore one segment with Gemini `generateContent`."""

        self.rate_limiter.acquire(f"{self.provider_id}:generate:{self.model}")
        return self.client.generate_text(
            model=self.model,
            system_instruction=instruction,
            user_text=text,
            temperature=self.temperature,
        )


class OpenAITransformer:
    """OpenAI-backed transformer for segment restoration."""

    provider_id = "openai"

    def __init__(
        self,
        model: str = "gpt-4.1-mini",
        api_key: str | None = None,
        temperature: float = 0.1,
        request_timeout_seconds: float = 180.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.client = OpenAIChatClient(api_key=api_key, timeout_seconds=request_timeout_seconds)
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()

    def transform(self, text: str, instruction: str) -> str:
        """Restore one segment with OpenAI chat-completions."""

        self.rate_limiter.acquire(f"{self.provider_id}:chat:{self.model}")
        return self.client.chat_completion_text(
            model=self.model,
            system_prompt=instruction,
            user_prompt=text,
            temperature=self.temperature,
        )


class PassthroughTransformer:
    """Deterministic transformer bypass that returns segment text unchanged."""

    provider_id = "passthrough"
    model = "deterministic-pass-through-v1"

    def transform(self, text: str, instruction: str) -> str:
        return text
