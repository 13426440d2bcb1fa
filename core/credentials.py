"""
In-memory credential store keyed ``"<provider>_api_key"``.

Keys live only for the lifetime of the process. Lookups fall back to the
environment-supplied key from ``Settings`` so a key in ``.env`` works
without ever being saved through the API.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Optional

from config.settings import Settings
from core.completion import PROVIDERS, validate_anthropic_credential, validate_credential
from core.errors import InvalidCredentialError, MissingCredentialError

logger = logging.getLogger(__name__)


def storage_key(provider: str) -> str:
    """Return the store key for *provider*, e.g. ``"openai_api_key"``."""
    return f"{provider}_api_key"


def _default_validator(provider: str, settings: Settings) -> Callable[[str], bool]:
    if provider == "anthropic":
        return validate_anthropic_credential
    return lambda credential: validate_credential(
        credential, base_url=settings.openai_base_url
    )


class CredentialStore:
    """A key/value string store for provider API keys."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self._values: dict[str, str] = {}

    def get(self, provider: str) -> str:
        """Return the saved key for *provider*, else the environment key, else ``""``."""
        return self._values.get(storage_key(provider)) or self.settings.api_key_for(provider)

    def require(self, provider: str) -> str:
        """Like ``get`` but raise ``MissingCredentialError`` when no key exists."""
        credential = self.get(provider)
        if not credential:
            raise MissingCredentialError(
                f"{provider} API key not found. Please set your API key first "
                "or add it to your .env file."
            )
        return credential

    def set(self, provider: str, credential: str) -> None:
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown completion provider: {provider!r}")
        self._values[storage_key(provider)] = credential.strip()

    def clear(self, provider: str) -> None:
        self._values.pop(storage_key(provider), None)

    def save_validated(
        self,
        provider: str,
        credential: str,
        validator: Optional[Callable[[str], bool]] = None,
    ) -> str:
        """Check *credential* with the provider and save it only if the provider accepts it.

        Returns:
            The stored (trimmed) credential.

        Raises:
            MissingCredentialError: If *credential* is blank.
            InvalidCredentialError: If the provider reports the key as rejected.
            NetworkError: If the check could not reach the provider; nothing
                is saved.
        """
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown completion provider: {provider!r}")
        credential = (credential or "").strip()
        if not credential:
            raise MissingCredentialError("API key must not be empty.")

        check = validator or _default_validator(provider, self.settings)
        if not check(credential):
            logger.warning("Rejected %s API key: validation failed", provider)
            raise InvalidCredentialError(
                "Invalid API key. The provider rejected the key; it was not saved."
            )

        self.set(provider, credential)
        logger.info("Saved %s API key", provider)
        return credential
