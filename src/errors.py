"""Error taxonomy for the AI-backed parts of driftwatch.

Scoring, momentum and layer 1-2 matching never raise for well-formed
input. Only the summarization service path raises, and always one of
the subclasses below so callers can catch ``IntelligenceError``.
"""

from __future__ import annotations


class IntelligenceError(Exception):
    """Base error for AI summarization and brief generation."""


class NoCredentialError(IntelligenceError):
    """The AI service is unusable because no API key is configured."""


class UpstreamFailureError(IntelligenceError):
    """The AI call failed: network error, timeout or non-2xx response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(IntelligenceError):
    """The AI output could not be parsed into the expected shape."""

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw
