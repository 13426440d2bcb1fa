"""Application settings — all configuration loaded from environment variables.

Usage:
    from config.settings import Settings
    settings = Settings()
    settings.validate()   # raises MissingCredentialError if the provider key is missing
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ``.
    """

    # ── API Keys ────────────────────────────────────────────────────────────
    openai_api_key: str = field(
        default_factory=lambda: os.environ.get("OPENAI_API_KEY", "")
    )
    anthropic_api_key: str = field(
        default_factory=lambda: os.environ.get("ANTHROPIC_API_KEY", "")
    )
    #: Optional; Jina works without a key at a lower rate limit.
    jina_api_key: str = field(
        default_factory=lambda: os.environ.get("JINA_API_KEY", "")
    )

    # ── Flask ───────────────────────────────────────────────────────────────
    debug: bool = field(
        default_factory=lambda: os.environ.get("FLASK_DEBUG", "0") == "1"
    )
    port: int = field(
        default_factory=lambda: int(os.environ.get("PORT", "5001"))
    )

    # ── Search / reading ────────────────────────────────────────────────────
    max_search_results: int = field(
        default_factory=lambda: int(os.environ.get("MAX_SEARCH_RESULTS", "10"))
    )
    results_to_analyze: int = field(
        default_factory=lambda: int(os.environ.get("RESULTS_TO_ANALYZE", "5"))
    )

    # ── Completion provider ─────────────────────────────────────────────────
    #: ``"openai"`` (chat-completions endpoint) or ``"anthropic"``.
    completion_provider: str = field(
        default_factory=lambda: os.environ.get("COMPLETION_PROVIDER", "openai")
    )
    openai_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "OPENAI_BASE_URL", "https://api.openai.com/v1"
        )
    )
    openai_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_MODEL", "gpt-4o-mini")
    )
    anthropic_model: str = field(
        default_factory=lambda: os.environ.get("ANTHROPIC_MODEL", "claude-haiku-4-5")
    )

    def api_key_for(self, provider: str) -> str:
        """Return the environment-supplied key for *provider* (may be empty)."""
        return {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
        }.get(provider, "")

    def validate(self) -> None:
        """Raise ``MissingCredentialError`` if the active provider has no key."""
        from core.errors import MissingCredentialError

        if not self.api_key_for(self.completion_provider):
            env_name = f"{self.completion_provider.upper()}_API_KEY"
            raise MissingCredentialError(
                f"{env_name} environment variable is not set. "
                "Copy .env.example to .env and add your key."
            )
