"""Typed failures raised by collaborator calls and their caller-facing form."""
from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """A failure with an optional machine status code."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ConfigurationError(PipelineError):
    """A required credential or endpoint is missing."""


class SearchServiceError(PipelineError):
    pass


class ScrapeError(PipelineError):
    pass


class GenerationError(PipelineError):
    pass


ERROR_RESPONSES: dict[int, dict[str, str]] = {
    401: {
        "error": "Invalid API key",
        "suggestion": "Please check your API keys are correct.",
    },
    402: {
        "error": "Insufficient credits",
        "suggestion": "You've run out of credits. Please upgrade your plan.",
    },
    429: {
        "error": "Rate limit exceeded",
        "suggestion": "Too many requests. Please wait a moment and try again.",
    },
    504: {
        "error": "Request timeout",
        "suggestion": "The search took too long. Try a simpler query or fewer sources.",
    },
}


def describe_failure(exc: BaseException) -> dict[str, Any]:
    """Map a failure to the payload of a terminal error event."""
    status_code = exc.status_code if isinstance(exc, PipelineError) else None
    known = ERROR_RESPONSES.get(status_code) if status_code else None

    if known:
        payload: dict[str, Any] = dict(known)
    else:
        message = exc.message if isinstance(exc, PipelineError) else str(exc)
        payload = {"error": message or "Unknown error"}

    if status_code:
        payload["statusCode"] = status_code
    return payload
