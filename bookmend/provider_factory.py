"""Provider factory helpers for the transformation stage.

Responsibilities:
- Resolve provider identifiers to concrete transformer implementations.
- Keep orchestration independent from concrete provider class construction.
"""

from __future__ import annotations

from .llm.transformer import (
    GeminiTransformer,
    OpenAITransformer,
    PassthroughTransformer,
    TextTransformer,
)

SUPPORTED_PROVIDERS = ("gemini", "openai", "passthrough")

DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4.1-mini",
    "passthrough": PassthroughTransformer.model,
}


class ProviderFactory:
    """Factory for provider-backed transformers used by the pipeline."""

    @staticmethod
    def create_transformer(
        provider_id: str,
        model: str | None = None,
        api_key: str | None = None,
        temperature: float = 0.1,
        request_timeout_seconds: float = 180.0,
    ) -> TextTransformer:
        """Create a transformer for a configured provider identifier."""

        if provider_id == "gemini":
            return GeminiTransformer(
                model=model or DEFAULT_MODELS["gemini"],
                api_key=api_key,
                temperature=temperature,
                request_timeout_seconds=request_timeout_seconds,
            )
        if provider_id == "openai":
            return OpenAITransformer(
                model=model or DEFAULT_MODELS["openai"],
                api_key=api_key,
                temperature=temperature,
                request_timeout_seconds=request_timeout_seconds,
            )
        if provider_id == "passthrough":
            return PassthroughTransformer()
        raise ValueError(f"Unsupported transformation provider `{provider_id}`.")
