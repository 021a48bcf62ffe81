"""AI summarization service client.

The intelligence layer talks to the model through the small
``SummaryClient`` protocol: a system prompt and a user prompt in,
response text out. ``AnthropicClient`` implements it on the Anthropic
Messages API and translates every failure into the taxonomy in
``driftwatch.errors``. Tests and hosts can pass any object with a
matching ``complete`` method.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Protocol

import anthropic

from driftwatch.errors import MalformedResponseError, NoCredentialError, UpstreamFailureError

logger = logging.getLogger(__name__)

API_KEY_ENV = "ANTHROPIC_API_KEY"

_MODEL_MAP: dict[str, str] = {
    "sonnet": "claude-sonnet-4-6",
    "haiku": "claude-haiku-4-5-20251001",
    "opus": "claude-opus-4-6",
}

_DEFAULT_MODEL = "haiku"


def _resolve_model(model: str | None) -> str:
    """Resolve a short model name to an API model ID."""
    if model is None:
        model = _DEFAULT_MODEL
    return _MODEL_MAP.get(model, model)


class SummaryClient(Protocol):
    def complete(self, system_prompt: str, user_prompt: str, *, label: str = "summary") -> str: ...


class AnthropicClient:
    """``SummaryClient`` backed by the Anthropic Messages API.

    The API key is read from ``ANTHROPIC_API_KEY`` at call time unless
    one is passed explicitly, so a key configured after start-up is
    picked up without rebuilding the client.
    """

    def __init__(
        self,
        *,
        model: str | None = None,
        timeout: float = 120,
        max_tokens: int = 1024,
        api_key: str | None = None,
    ) -> None:
        self._model = _resolve_model(model)
        self._timeout = timeout
        self._max_tokens = max_tokens
        self._api_key = api_key

    @property
    def model(self) -> str:
        return self._model

    def _key(self) -> str:
        return (self._api_key or os.environ.get(API_KEY_ENV, "")).strip()

    @property
    def is_configured(self) -> bool:
        return bool(self._key())

    def complete(self, system_prompt: str, user_prompt: str, *, label: str = "summary") -> str:
        """Send one request and return the concatenated text blocks.

        Raises:
            NoCredentialError: No API key configured.
            UpstreamFailureError: Network error, timeout or non-2xx status.
            MalformedResponseError: The response carried no text.
        """
        api_key = self._key()
        if not api_key:
            raise NoCredentialError(f"{API_KEY_ENV} not set (label={label})")

        client = anthropic.Anthropic(api_key=api_key, timeout=self._timeout)
        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if system_prompt.strip():
            kwargs["system"] = system_prompt

        logger.debug("Calling Anthropic API model=%s (%s)", self._model, label)
        try:
            response = client.messages.create(**kwargs)
        except anthropic.APIStatusError as exc:
            raise UpstreamFailureError(
                f"Anthropic API returned {exc.status_code} (label={label}): {exc.message}",
                status_code=exc.status_code,
            ) from exc
        except anthropic.APIError as exc:
            raise UpstreamFailureError(f"Anthropic API call failed (label={label}): {exc}") from exc

        text = "".join(block.text for block in response.content if block.type == "text").strip()
        if not text:
            raise MalformedResponseError(f"Anthropic API returned empty response (label={label})")
        return text


# ---------------------------------------------------------------------------
# JSON output helpers
# ---------------------------------------------------------------------------

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def strip_json_fences(text: str) -> str:
    """Strip markdown code fences from LLM JSON output.

    Handles the model's tendency to wrap JSON in ```json ... ``` blocks
    or to put a sentence of prose before the object.
    """
    text = text.strip()
    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    # Raw JSON: whichever delimiter appears first
    brace_start = text.find("{")
    bracket_start = text.find("[")

    candidates: list[tuple[int, str, str]] = []
    if brace_start != -1:
        candidates.append((brace_start, "{", "}"))
    if bracket_start != -1:
        candidates.append((bracket_start, "[", "]"))

    candidates.sort()

    for _pos, start_char, end_char in candidates:
        start = text.find(start_char)
        end = text.rfind(end_char)
        if start != -1 and end > start:
            return text[start : end + 1]

    return text


def parse_json_object(text: str, *, label: str = "summary") -> dict[str, Any]:
    """Decode a JSON object from model output or raise ``MalformedResponseError``."""
    cleaned = strip_json_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(
            f"Response is not valid JSON (label={label}): {exc}", raw=text
        ) from exc
    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected a JSON object, got {type(data).__name__} (label={label})", raw=text
        )
    return data
