"""Error taxonomy for the research pipeline.

Every failure the core can surface is a ``ResearchError`` subclass carrying a
human-readable message that the UI shows as-is. ``http_status`` is the status
the web layer answers with when the error escapes a request handler.
"""

from __future__ import annotations

from typing import Optional


class ResearchError(Exception):
    """Base class for all pipeline errors."""

    http_status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ── Credential errors ─────────────────────────────────────────────────────────


class MissingCredentialError(ResearchError):
    """No API key is available for the completion provider."""

    http_status = 401


class InvalidCredentialError(ResearchError):
    """The provider rejected the API key (HTTP 401) or failed validation."""

    http_status = 401


# ── Completion errors ─────────────────────────────────────────────────────────


class RateLimitError(ResearchError):
    """The provider answered HTTP 429."""

    http_status = 429


class RequestTooLargeError(ResearchError):
    """The provider answered HTTP 400, usually because the prompt is too long."""

    http_status = 413


class CompletionFailedError(ResearchError):
    """Any other non-2xx answer from the provider."""

    http_status = 502

    def __init__(self, status_code: int, provider_message: Optional[str] = None) -> None:
        self.status_code = status_code
        self.provider_message = provider_message or "Unknown error"
        super().__init__(f"Analysis failed: {status_code} - {self.provider_message}")


class NetworkError(ResearchError):
    """The provider could not be reached at the transport level."""

    http_status = 503


class MalformedResponseError(ResearchError):
    """A 2xx answer that does not contain completion text."""

    http_status = 502


# ── Input errors ──────────────────────────────────────────────────────────────


class NoContentError(ResearchError):
    """No documents were supplied for analysis."""

    http_status = 400


class InsufficientContentError(ResearchError):
    """Documents were supplied but none carries enough text."""

    http_status = 422


class EmptyTopicError(ResearchError):
    """The analysis topic is blank."""

    http_status = 400


# ── Reader errors ─────────────────────────────────────────────────────────────


class SearchFailedError(ResearchError):
    """The search API failed or returned an unusable payload."""

    http_status = 502


class FetchFailedError(ResearchError):
    """A single URL could not be read."""

    http_status = 502

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to read {url}: {reason}")
