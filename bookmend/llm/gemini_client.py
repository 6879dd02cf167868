"""Gemini `generateContent` REST client."""

from __future__ import annotations

from typing import Any

from .http_client import JsonHttpClient, ProviderError


class GeminiClient(JsonHttpClient):
    """Minimal requests-based client for Gemini text generation."""

    provider_label = "Gemini"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"
    api_key_env = "GEMINI_API_KEY"

    # Filters disabled for arbitrary book text.
    _SAFETY_CATEGORIES = (
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
        "HARM_CATEGORY_HARASSMENT",
    )

    def _auth_headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self.api_key}

    def generate_text(
        self,
        *,
        model: str,
        system_instruction: str,
        user_text: str,
        temperature: float = 0.0,
    ) -> str:
        """Return the concatenated text parts of the first candidate."""

        self._require_api_key()

        payload = {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": [{"role": "user", "parts": [{"text": user_text}]}],
            "generationConfig": {
                "temperature": temperature,
                "thinkingConfig": {"thinkingBudget": 0},
            },
            "safetySettings": [
                {"category": category, "threshold": "BLOCK_NONE"}
                for category in self._SAFETY_CATEGORIES
            ],
        }
        response = self._post_json(
            endpoint_path=f"/models/{model}:generateContent",
            payload=payload,
        )
        return self._extract_candidate_text(response)

    @staticmethod
    def _extract_candidate_text(payload: dict[str, Any]) -> str:
        """Extract first-candidate text from a generateContent payload."""

        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            feedback = payload.get("promptFeedback")
            if isinstance(feedback, dict) and isinstance(feedback.get("blockReason"), str):
                raise ProviderError(
                    f"Gemini blocked the prompt: {feedback['blockReason']}.",
                    failure_kind="blocked",
                )
            raise ProviderError("Gemini response missing non-empty `candidates` list.")

        first_candidate = candidates[0]
        if not isinstance(first_candidate, dict):
            raise ProviderError("Gemini response `candidates[0]` is malformed.")

        content = first_candidate.get("content")
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            finish_reason = first_candidate.get("finishReason", "unknown")
            raise ProviderError(
                f"Gemini response has no content parts (finish reason: {finish_reason})."
            )

        text = "".join(
            part["text"]
            for part in parts
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        )
        if not text.strip():
            raise ProviderError("Gemini response text is empty.")
        return text
