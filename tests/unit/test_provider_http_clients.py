"""Unit tests for requests-based Gemini and OpenAI clients and error mapping."""

from __future__ import annotations

import json
from typing import Any

import pytest
import requests

from bookmend.llm.gemini_client import GeminiClient
from bookmend.llm.http_client import ProviderError
from bookmend.llm.openai_client import OpenAIChatClient


class _MockRequestsResponse:
    """Minimal requests response mock used by provider client tests."""

    def __init__(self, *, payload: bytes, status_code: int = 200) -> None:
        """Initialize response with payload bytes and status code."""

        self.content = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        """Raise HTTP error when status code indicates failure."""

        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)  # type: ignore[arg-type]


class _RecordingPost:
    """Callable standing in for `requests.post` that records each request."""

    def __init__(self, response: _MockRequestsResponse | Exception) -> None:
        self.response = response
        self.calls: list[dict[str, Any]] = []

    def __call__(self, url: str, **kwargs: Any) -> _MockRequestsResponse:
        self.calls.append({"url": url, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _json_response(payload: object, status_code: int = 200) -> _MockRequestsResponse:
    return _MockRequestsResponse(payload=json.dumps(payload).encode("utf-8"), status_code=status_code)


def _install_post(
    monkeypatch: pytest.MonkeyPatch, response: _MockRequestsResponse | Exception
) -> _RecordingPost:
    recorder = _RecordingPost(response)
    monkeypatch.setattr("bookmend.llm.http_client.requests.post", recorder)
    return recorder


def test_openai_chat_completion_posts_expected_request(monkeypatch: pytest.MonkeyPatch) -> None:
    """OpenAI client should send bearer auth, both messages, and return the content."""

    recorder = _install_post(
        monkeypatch,
        _json_response({"choices": [{"message": {"content": "Restored text."}}]}),
    )
    client = OpenAIChatClient(api_key=" sk-test ", timeout_seconds=12.0)

    text = client.chat_completion_text(
        model="gpt-4.1-mini",
        system_prompt="Restore OCR.",
        user_prompt="Raw text.",
        temperature=0.1,
    )

    assert text == "Restored text."
    call = recorder.calls[0]
    assert call["url"] == "https://api.openai.com/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer sk-test"
    assert call["timeout"] == 12.0
    assert call["json"] == {
        "model": "gpt-4.1-mini",
        "messages": [
            {"role": "system", "content": "Restore OCR."},
            {"role": "user", "content": "Raw text."},
        ],
        "temperature": 0.1,
    }


def test_openai_content_parts_are_joined(monkeypatch: pytest.MonkeyPatch) -> None:
    """List-form message content should be flattened to its text parts."""

    _install_post(
        monkeypatch,
        _json_response(
            {
                "choices": [
                    {
                        "message": {
                            "content": [
                                {"type": "text", "text": "Part one, "},
                                {"type": "image_url", "image_url": {"url": "x"}},
                                {"type": "text", "text": "part two."},
                            ]
                        }
                    }
                ]
            }
        ),
    )

    text = OpenAIChatClient(api_key="sk-test").chat_completion_text(
        model="m", system_prompt="s", user_prompt="u"
    )

    assert text == "Part one, part two."


def test_missing_api_key_fails_before_any_request(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clients without an API key should raise `invalid_api_key` without network calls."""

    recorder = _install_post(monkeypatch, _json_response({}))

    with pytest.raises(ProviderError) as exc_info:
        GeminiClient(api_key="  ").generate_text(
            model="gemini-2.5-flash", system_instruction="s", user_text="u"
        )

    assert exc_info.value.failure_kind == "invalid_api_key"
    assert "GEMINI_API_KEY" in str(exc_info.value)
    assert recorder.calls == []


@pytest.mark.parametrize(
    ("status_code", "body", "failure_kind", "headline"),
    [
        (
            401,
            {"error": {"message": "Incorrect API key provided: sk-abcdefghijklmnop", "code": "invalid_api_key"}},
            "invalid_api_key",
            "OpenAI authentication failed (HTTP 401)",
        ),
        (
            429,
            {"error": {"message": "You exceeded your current quota.", "code": "insufficient_quota"}},
            "insufficient_quota",
            "OpenAI quota is insufficient for this request (HTTP 429)",
        ),
        (
            404,
            {"error": {"message": "The model `gpt-x` does not exist", "code": "model_not_found"}},
            "invalid_model",
            "OpenAI rejected the selected model (HTTP 404)",
        ),
        (
            504,
            {"error": {"message": "Gateway issue"}},
            "timeout",
            "OpenAI request timed out (HTTP 504)",
        ),
        (
            500,
            {"error": {"message": "Internal server error"}},
            "http_error",
            "OpenAI request failed (HTTP 500)",
        ),
    ],
)
def test_openai_http_errors_are_classified(
    monkeypatch: pytest.MonkeyPatch,
    status_code: int,
    body: dict[str, object],
    failure_kind: str,
    headline: str,
) -> None:
    """HTTP failures should map to a stable failure kind and concise message."""

    _install_post(monkeypatch, _json_response(body, status_code=status_code))

    with pytest.raises(ProviderError) as exc_info:
        OpenAIChatClient(api_key="sk-test").chat_completion_text(
            model="gpt-x", system_prompt="s", user_prompt="u"
        )

    error = exc_info.value
    assert error.failure_kind == failure_kind
    assert error.status_code == status_code
    assert str(error).startswith(headline)
    assert "sk-abcdefghijklmnop" not in str(error)


def test_gemini_status_string_is_used_as_provider_code(monkeypatch: pytest.MonkeyPatch) -> None:
    """Gemini errors carry a numeric code, so the status string should classify them."""

    _install_post(
        monkeypatch,
        _json_response(
            {"error": {"code": 429, "message": "Resource has been exhausted.", "status": "RESOURCE_EXHAUSTED"}},
            status_code=429,
        ),
    )

    with pytest.raises(ProviderError) as exc_info:
        GeminiClient(api_key="AIza-test").generate_text(
            model="gemini-2.5-flash", system_instruction="s", user_text="u"
        )

    assert exc_info.value.failure_kind == "insufficient_quota"
    assert exc_info.value.provider_code == "RESOURCE_EXHAUSTED"


@pytest.mark.parametrize(
    ("raised", "failure_kind"),
    [
        (requests.Timeout("read timed out"), "timeout"),
        (requests.ConnectionError("connection refused"), "transport"),
    ],
)
def test_transport_failures_are_classified(
    monkeypatch: pytest.MonkeyPatch, raised: Exception, failure_kind: str
) -> None:
    """Network-layer failures should become timeout or transport provider errors."""

    _install_post(monkeypatch, raised)

    with pytest.raises(ProviderError) as exc_info:
        OpenAIChatClient(api_key="sk-test").chat_completion_text(
            model="m", system_prompt="s", user_prompt="u"
        )

    assert exc_info.value.failure_kind == failure_kind


def test_invalid_json_payload_raises_provider_error(monkeypatch: pytest.MonkeyPatch) -> None:
    """Non-JSON success bodies should be reported as malformed responses."""

    _install_post(monkeypatch, _MockRequestsResponse(payload=b"<html>oops</html>"))

    with pytest.raises(ProviderError, match="invalid JSON"):
        OpenAIChatClient(api_key="sk-test").chat_completion_text(
            model="m", system_prompt="s", user_prompt="u"
        )


def test_gemini_generate_text_posts_expected_request(monkeypatch: pytest.MonkeyPatch) -> None:
    """Gemini client should send the API-key header, instruction, and disabled filters."""

    recorder = _install_post(
        monkeypatch,
        _json_response(
            {
                "candidates": [
                    {"content": {"parts": [{"text": "# Kapitel 1\n\n"}, {"text": "Brödtext."}]}}
                ]
            }
        ),
    )

    text = GeminiClient(api_key="AIza-test").generate_text(
        model="gemini-2.5-flash",
        system_instruction="Restore OCR.",
        user_text="KAPITEL 1 Brödtext.",
        temperature=0.1,
    )

    assert text == "# Kapitel 1\n\nBrödtext."
    call = recorder.calls[0]
    assert call["url"] == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"
    )
    assert call["headers"]["x-goog-api-key"] == "AIza-test"
    payload = call["json"]
    assert payload["systemInstruction"] == {"parts": [{"text": "Restore OCR."}]}
    assert payload["contents"] == [{"role": "user", "parts": [{"text": "KAPITEL 1 Brödtext."}]}]
    assert payload["generationConfig"]["temperature"] == 0.1
    assert {setting["threshold"] for setting in payload["safetySettings"]} == {"BLOCK_NONE"}
    assert len(payload["safetySettings"]) == 4


def test_gemini_blocked_prompt_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    """A prompt blocked without candidates should raise a `blocked` provider error."""

    _install_post(monkeypatch, _json_response({"promptFeedback": {"blockReason": "SAFETY"}}))

    with pytest.raises(ProviderError) as exc_info:
        GeminiClient(api_key="AIza-test").generate_text(
            model="gemini-2.5-flash", system_instruction="s", user_text="u"
        )

    assert exc_info.value.failure_kind == "blocked"
    assert "SAFETY" in str(exc_info.value)


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"candidates": [{"finishReason": "RECITATION"}]}, "finish reason: RECITATION"),
        ({"candidates": [{"content": {"parts": [{"text": "   "}]}}]}, "text is empty"),
        ({"candidates": []}, "missing non-empty `candidates`"),
    ],
)
def test_gemini_unusable_candidates_raise(
    monkeypatch: pytest.MonkeyPatch, payload: dict[str, object], message: str
) -> None:
    """Candidates without usable text should fail the attempt."""

    _install_post(monkeypatch, _json_response(payload))

    with pytest.raises(ProviderError, match=message):
        GeminiClient(api_key="AIza-test").generate_text(
            model="gemini-2.5-flash", system_instruction="s", user_text="u"
        )
