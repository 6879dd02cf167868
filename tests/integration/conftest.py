"""Integration-test fixtures for deterministic provider and credential behavior."""

from __future__ import annotations

import pytest

from bookmend.llm.gemini_client import GeminiClient
from bookmend.llm.openai_client import OpenAIChatClient


class InMemoryCredentialStore:
    """Per-provider credential store kept in memory for CLI tests."""

    def __init__(self) -> None:
        self.keys: dict[str, str] = {}

    def is_available(self) -> bool:
        return True

    def get_api_key(self, provider: str) -> str | None:
        return self.keys.get(provider)

    def set_api_key(self, provider: str, api_key: str) -> None:
        self.keys[provider] = api_key.strip()

    def clear_api_key(self, provider: str) -> bool:
        return self.keys.pop(provider, None) is not None


@pytest.fixture(autouse=True)
def _mock_provider_calls(monkeypatch: pytest.MonkeyPatch) -> None:
    """Echo segment text back from provider clients to avoid network and key requirements."""

    def _mock_generate_text(self: GeminiClient, **kwargs: object) -> str:
        """Return the user text unchanged, as a well-behaved restoration would."""

        self._require_api_key()
        return str(kwargs["user_text"])

    def _mock_chat_completion(self: OpenAIChatClient, **kwargs: object) -> str:
        self._require_api_key()
        return str(kwargs["user_prompt"])

    monkeypatch.setattr(GeminiClient, "generate_text", _mock_generate_text)
    monkeypatch.setattr(OpenAIChatClient, "chat_completion_text", _mock_chat_completion)


@pytest.fixture(autouse=True)
def _clear_runtime_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host provider settings out of CLI runtime resolution."""

    for name in ("BOOKMEND_PROVIDER", "BOOKMEND_MODEL", "GEMINI_API_KEY", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def credential_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryCredentialStore:
    """Replace OS keyring access with an in-memory store for every CLI command."""

    store = InMemoryCredentialStore()
    monkeypatch.setattr("bookmend.cli.create_credential_store", lambda: store)
    return store
