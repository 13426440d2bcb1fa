"""
Flask JSON API for Research Lens.

Routes
──────
GET  /api/health            Liveness + active provider (JSON)
POST /api/search            {"query"}                       → search hits
POST /api/read              {"url"}                         → one fetched document
POST /api/analyze           {"topic", "documents", "provider"?} → AnalysisResult
POST /api/research          {"query", "limit"?, "provider"?}    → search + read + analyze
POST /api/credentials       {"provider", "apiKey"}          → validate and store a key
POST /api/export            {"topic", "result"}             → plain-text download

Errors are answered as {"error": {"type": ..., "message": ...}}.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, Response, current_app, jsonify, request
from pydantic import ValidationError

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from config.settings import Settings
from core.analyzer import analyze, research
from core.completion import CompletionClient, make_completion_client
from core.credentials import CredentialStore
from core.errors import ResearchError
from core.export import export_filename, render_export
from core.models import AnalysisResult, FetchedDocument
from core.reader import JinaReader

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, str], CompletionClient]


def _payload() -> dict:
    return request.get_json(silent=True) or {}


def _error(kind: str, message: str, status: int):
    return jsonify({"error": {"type": kind, "message": message}}), status


def _provider(data: dict) -> str:
    return data.get("provider") or current_app.config["SETTINGS"].completion_provider


def _client_for(provider: str) -> tuple[str, CompletionClient]:
    """Resolve the stored credential for *provider* and build its client."""
    credential = current_app.config["CREDENTIALS"].require(provider)
    return credential, current_app.config["CLIENT_FACTORY"](provider, credential)


def create_app(
    settings: Optional[Settings] = None,
    reader: Optional[JinaReader] = None,
    credentials: Optional[CredentialStore] = None,
    client_factory: Optional[ClientFactory] = None,
) -> Flask:
    """Build the Flask app; collaborators default to environment-driven ones."""
    settings = settings or Settings()

    app = Flask(__name__)
    app.config["SETTINGS"] = settings
    app.config["READER"] = reader or JinaReader.from_settings(settings)
    app.config["CREDENTIALS"] = credentials or CredentialStore(settings)
    app.config["CLIENT_FACTORY"] = client_factory or (
        lambda provider, credential: make_completion_client(provider, credential, settings)
    )

    # ── Error handling ─────────────────────────────────────────────────────

    @app.errorhandler(ResearchError)
    def handle_research_error(exc: ResearchError):
        logger.warning("%s: %s", type(exc).__name__, exc.message)
        return _error(type(exc).__name__, exc.message, exc.http_status)

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _error("ValidationError", str(exc), 400)

    @app.errorhandler(ValueError)
    def handle_value_error(exc: ValueError):
        return _error("ValueError", str(exc), 400)

    # ── Health ─────────────────────────────────────────────────────────────

    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok", "provider": settings.completion_provider})

    # ── Search / read ──────────────────────────────────────────────────────

    @app.route("/api/search", methods=["POST"])
    def search_endpoint():
        """Return search hits for ``query``."""
        query = (_payload().get("query") or "").strip()
        if not query:
            return _error("ValueError", "query is required", 400)
        hits = current_app.config["READER"].search(query)
        return jsonify([h.model_dump(by_alias=True) for h in hits])

    @app.route("/api/read", methods=["POST"])
    def read_endpoint():
        """Read one URL and return its extracted text."""
        url = (_payload().get("url") or "").strip()
        if not url:
            return _error("ValueError", "url is required", 400)
        document = current_app.config["READER"].read(url)
        return jsonify(document.model_dump(by_alias=True))

    # ── Analysis ───────────────────────────────────────────────────────────

    @app.route("/api/analyze", methods=["POST"])
    def analyze_endpoint():
        """Analyse documents the user has already read."""
        data = _payload()
        provider = _provider(data)
        documents = [
            FetchedDocument.model_validate(d) for d in data.get("documents") or []
        ]
        credential, client = _client_for(provider)
        with client:
            result = analyze(documents, data.get("topic") or "", credential, client=client)
        return jsonify(result.model_dump(by_alias=True))

    @app.route("/api/research", methods=["POST"])
    def research_endpoint():
        """Search, read the top results and analyse them in one call."""
        data = _payload()
        provider = _provider(data)
        raw_limit = data.get("limit")
        try:
            limit = settings.results_to_analyze if raw_limit is None else int(raw_limit)
        except (TypeError, ValueError):
            return _error("ValueError", "limit must be an integer", 400)
        if limit < 1:
            return _error("ValueError", "limit must be at least 1", 400)
        credential, client = _client_for(provider)
        with client:
            result = research(
                data.get("query") or "",
                credential,
                current_app.config["READER"],
                limit=limit,
                client=client,
            )
        return jsonify(result.model_dump(by_alias=True))

    # ── Credentials ────────────────────────────────────────────────────────

    @app.route("/api/credentials", methods=["POST"])
    def save_credentials():
        """Validate an API key against the provider and keep it in memory."""
        data = _payload()
        provider = _provider(data)
        current_app.config["CREDENTIALS"].save_validated(
            provider, data.get("apiKey") or ""
        )
        return jsonify({"saved": provider})

    # ── Export ─────────────────────────────────────────────────────────────

    @app.route("/api/export", methods=["POST"])
    def export_endpoint():
        """Return the analysis as a plain-text attachment."""
        data = _payload()
        topic = (data.get("topic") or "").strip() or "research"
        result = AnalysisResult.model_validate(data.get("result") or {})
        return Response(
            render_export(result, topic),
            mimetype="text/plain",
            headers={
                "Content-Disposition": f'attachment; filename="{export_filename(topic)}"'
            },
        )

    return app


app = create_app()


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    settings = app.config["SETTINGS"]
    app.run(debug=settings.debug, host="0.0.0.0", port=settings.port)
