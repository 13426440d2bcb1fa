"""Completion clients for the analysis call.

Two providers share one contract, ``complete(prompt) -> str``:

* ``OpenAICompletionClient`` — posts to an OpenAI-compatible
  ``/chat/completions`` endpoint over ``httpx``.
* ``AnthropicCompletionClient`` — same prompt and sampling parameters through
  the Anthropic SDK.

Each call is a single attempt: no retries, no intrinsic timeout. Provider
failures are mapped onto the ``core.errors`` taxonomy so callers never need
to know which backend produced them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import anthropic
import httpx

from core.errors import (
    CompletionFailedError,
    InvalidCredentialError,
    MalformedResponseError,
    MissingCredentialError,
    NetworkError,
    RateLimitError,
    RequestTooLargeError,
)
from core.prompts import SYSTEM_PROMPT

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

MAX_TOKENS = 3000
TEMPERATURE = 0.3

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-haiku-4-5"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"

PROVIDERS = ("openai", "anthropic")


def raise_for_status(status_code: int, provider_message: Optional[str] = None) -> None:
    """Translate a non-2xx provider status into the matching pipeline error."""
    if status_code == 401:
        raise InvalidCredentialError("Invalid API key. Please check your API key.")
    if status_code == 429:
        raise RateLimitError("API rate limit exceeded. Please try again later.")
    if status_code == 400:
        raise RequestTooLargeError("Request too large. Please try with fewer sources.")
    raise CompletionFailedError(status_code, provider_message)


def _require_credential(credential: Optional[str]) -> str:
    if not credential or not credential.strip():
        raise MissingCredentialError(
            "API key not found. Please set your API key first or add it to your .env file."
        )
    return credential.strip()


def _error_message(response: httpx.Response) -> Optional[str]:
    """Pull ``error.message`` out of a provider error envelope, if present."""
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return None


class CompletionClient:
    """Base class: one prompt in, one completion text out."""

    provider: str = ""

    def complete(self, prompt: str) -> str:
        raise NotImplementedError

    def close(self) -> None:
        """Release any connections held by the client."""

    def __enter__(self) -> CompletionClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ── OpenAI-compatible chat completions ─────────────────────────────────────────


class OpenAICompletionClient(CompletionClient):
    """Chat-completions client speaking the OpenAI JSON envelope.

    The ``httpx.Client`` is lazy-initialised; pass ``http_client`` to control
    transport, timeouts or to inject a mock transport in tests.
    """

    provider = "openai"

    def __init__(
        self,
        credential: Optional[str],
        *,
        model: str = DEFAULT_OPENAI_MODEL,
        base_url: str = DEFAULT_OPENAI_BASE_URL,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.credential = _require_credential(credential)
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._http = http_client
        #: An injected client belongs to the caller and is left open.
        self._owns_http = http_client is None

    @property
    def http(self) -> httpx.Client:
        """Lazy-initialise and return the HTTP client (no timeout)."""
        if self._http is None:
            self._http = httpx.Client(timeout=None)
        return self._http

    def close(self) -> None:
        if self._owns_http and self._http is not None:
            self._http.close()

    def build_request_body(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
        }

    def complete(self, prompt: str) -> str:
        """Send *prompt* and return the first choice's message content.

        Raises:
            InvalidCredentialError: HTTP 401.
            RateLimitError: HTTP 429.
            RequestTooLargeError: HTTP 400.
            CompletionFailedError: Any other non-2xx status.
            NetworkError: The endpoint could not be reached.
            MalformedResponseError: 2xx without completion text.
        """
        body = self.build_request_body(prompt)
        logger.info(
            "Sending completion request model=%s prompt_chars=%d",
            self.model, len(prompt),
        )

        try:
            response = self.http.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.credential}",
                    "Content-Type": "application/json",
                },
                json=body,
            )
        except httpx.TransportError as exc:
            raise NetworkError(f"Could not connect to the completion API: {exc}") from exc

        logger.info("Completion response status=%d", response.status_code)

        if not response.is_success:
            message = _error_message(response)
            logger.error("Completion API error status=%d message=%s",
                         response.status_code, message)
            raise_for_status(response.status_code, message)

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise MalformedResponseError("Invalid response from the completion API") from exc

        if not isinstance(content, str):
            raise MalformedResponseError("Invalid response from the completion API")
        return content


def validate_credential(
    credential: str,
    *,
    base_url: str = DEFAULT_OPENAI_BASE_URL,
    http_client: Optional[httpx.Client] = None,
) -> bool:
    """Call the ``/models`` endpoint to check whether *credential* is accepted.

    Returns:
        True on a 2xx answer, False on any other status.

    Raises:
        MissingCredentialError: If *credential* is blank.
        NetworkError: If the endpoint could not be reached.
    """
    credential = _require_credential(credential)
    http = http_client or httpx.Client(timeout=None)
    try:
        response = http.get(
            f"{base_url.rstrip('/')}/models",
            headers={"Authorization": f"Bearer {credential}"},
        )
    except httpx.TransportError as exc:
        raise NetworkError(f"Could not connect to the completion API: {exc}") from exc
    finally:
        if http_client is None:
            http.close()

    logger.info("Credential check status=%d", response.status_code)
    return response.is_success


# ── Anthropic ─────────────────────────────────────────────────────────────────


class AnthropicCompletionClient(CompletionClient):
    """Completion client backed by the Anthropic Messages API.

    The SDK client is lazy-initialised with ``max_retries=0`` so that a call
    is exactly one attempt.
    """

    provider = "anthropic"

    def __init__(
        self,
        credential: Optional[str],
        *,
        model: str = DEFAULT_ANTHROPIC_MODEL,
    ) -> None:
        self.credential = _require_credential(credential)
        self.model = model
        self._client: object = None  # Lazy-initialised anthropic.Anthropic

    @property
    def client(self) -> object:
        """Lazy-initialise and return the Anthropic SDK client."""
        if self._client is None:
            self._client = anthropic.Anthropic(
                api_key=self.credential,
                max_retries=0,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def complete(self, prompt: str) -> str:
        logger.info(
            "Sending completion request model=%s prompt_chars=%d",
            self.model, len(prompt),
        )
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=MAX_TOKENS,
                temperature=TEMPERATURE,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIConnectionError as exc:
            raise NetworkError(f"Could not connect to the completion API: {exc}") from exc
        except anthropic.APIStatusError as exc:
            logger.error("Completion API error status=%d message=%s",
                         exc.status_code, exc.message)
            raise_for_status(exc.status_code, exc.message)

        text_parts = [
            block.text
            for block in getattr(response, "content", None) or []
            if getattr(block, "type", None) == "text"
        ]
        if not text_parts:
            raise MalformedResponseError("Invalid response from the completion API")
        return "".join(text_parts)


def validate_anthropic_credential(credential: str) -> bool:
    """Call the Anthropic models endpoint with *credential*.

    Returns:
        True if the key is accepted, False on any status error.

    Raises:
        MissingCredentialError: If *credential* is blank.
        NetworkError: If the endpoint could not be reached.
    """
    credential = _require_credential(credential)
    client = anthropic.Anthropic(api_key=credential, max_retries=0)
    try:
        client.models.list(limit=1)
    except anthropic.APIConnectionError as exc:
        raise NetworkError(f"Could not connect to the completion API: {exc}") from exc
    except anthropic.APIStatusError as exc:
        logger.info("Credential check status=%d", exc.status_code)
        return False
    return True


# ── Factory ───────────────────────────────────────────────────────────────────


def make_completion_client(
    provider: str,
    credential: Optional[str],
    settings: Optional[Settings] = None,
) -> CompletionClient:
    """Build the completion client for *provider*.

    Raises:
        ValueError: If *provider* is not one of ``PROVIDERS``.
        MissingCredentialError: If *credential* is blank.
    """
    if provider == "openai":
        if settings is None:
            return OpenAICompletionClient(credential)
        return OpenAICompletionClient(
            credential,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
        )
    if provider == "anthropic":
        if settings is None:
            return AnthropicCompletionClient(credential)
        return AnthropicCompletionClient(credential, model=settings.anthropic_model)
    raise ValueError(f"Unknown completion provider: {provider!r}")
