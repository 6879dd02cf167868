"""Provider-facing abstractions for the restoration step.

This package defines prompt construction, provider HTTP clients, transformer
implementations, request pacing, and the retry policy that bounds each call.
"""

from .gemini_client import GeminiClient
from .http_client import ProviderError
from .openai_client import OpenAIChatClient
from .prompts import PromptLibrary
from .rate_limiter import RateLimiter
from .retry import AttemptTimeoutError, RetryExhaustedError, RetryOutcome, RetryPolicy
from .transformer import (
    GeminiTransformer,
    OpenAITransformer,
    PassthroughTransformer,
    TextTransformer,
)

__all__ = [
    "AttemptTimeoutError",
    "GeminiClient",
    "GeminiTransformer",
    "OpenAIChatClient",
    "OpenAITransformer",
    "PassthroughTransformer",
    "PromptLibrary",
    "ProviderError",
    "RateLimiter",
    "RetryExhaustedError",
    "RetryOutcome",
    "RetryPolicy",
    "TextTransformer",
]
