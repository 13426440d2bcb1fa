"""
Analysis orchestration.

Flow
────
1. analyze(documents, topic, credential)
     → select documents with enough text
     → build the long-form analysis prompt
     → one completion call (no retries)
     → parse summary / key findings / recommendations out of the markdown
     → AnalysisResult with "title - url" provenance in input order

2. research(query, credential, reader)
     → search, read the top hits one by one (failures skipped)
     → analyze() over whatever was read successfully
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Optional

from core.completion import CompletionClient, make_completion_client
from core.errors import (
    EmptyTopicError,
    MissingCredentialError,
    NetworkError,
    NoContentError,
)
from core.models import AnalysisResult, FetchedDocument
from core.parser import parse_sections
from core.prompts import build_prompt
from core.reader import JinaReader, successful_documents
from core.selector import select_documents

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_RESULTS_TO_ANALYZE = 5


def format_source(document: FetchedDocument) -> str:
    """Render a provenance entry as ``"title - url"``."""
    return f"{document.title} - {document.url}"


def analyze(
    documents: Sequence[FetchedDocument],
    topic: str,
    credential: Optional[str],
    *,
    client: Optional[CompletionClient] = None,
    provider: str = "openai",
    settings: Optional[Settings] = None,
) -> AnalysisResult:
    """Synthesise a long-form analysis of *topic* from *documents*.

    Args:
        documents: Fetched documents, in the order they should be cited.
        topic: The research topic.
        credential: API key for the completion provider.
        client: Completion client to use; built from *provider* and
            *settings* when omitted.
        provider: ``"openai"`` or ``"anthropic"``; ignored if *client* is given.
        settings: Optional settings supplying model names and base URL.

    Returns:
        An ``AnalysisResult`` whose ``detailed_analysis`` is the verbatim
        completion text.

    Raises:
        MissingCredentialError: If *credential* is blank.
        NoContentError: If *documents* is empty.
        EmptyTopicError: If *topic* is blank.
        InsufficientContentError: If no document has enough text.
        ResearchError: Any completion error, unchanged in kind.
    """
    if not credential or not credential.strip():
        raise MissingCredentialError(
            "API key not found. Please set your API key first or add it to your .env file."
        )
    if not documents:
        raise NoContentError("No content provided for analysis.")
    if not topic or not topic.strip():
        raise EmptyTopicError("No topic provided for analysis.")

    selected = select_documents(documents)
    logger.info(
        "Starting analysis topic=%r documents=%d selected=%d",
        topic, len(documents), len(selected),
    )

    prompt = build_prompt(selected, topic)
    owns_client = client is None
    if client is None:
        client = make_completion_client(provider, credential, settings)

    try:
        text = client.complete(prompt)
    except NetworkError as exc:
        raise NetworkError(
            "Network error: Could not connect to the completion API. "
            "Please check your internet connection."
        ) from exc
    finally:
        if owns_client:
            client.close()

    parsed = parse_sections(text)
    logger.info(
        "Analysis complete: %d chars, %d findings, %d recommendations",
        len(text), len(parsed.key_findings), len(parsed.recommendations),
    )

    return AnalysisResult(
        summary=parsed.summary,
        key_findings=parsed.key_findings,
        detailed_analysis=text,
        sources=[format_source(d) for d in selected],
        recommendations=parsed.recommendations,
    )


def research(
    query: str,
    credential: Optional[str],
    reader: JinaReader,
    *,
    limit: int = DEFAULT_RESULTS_TO_ANALYZE,
    client: Optional[CompletionClient] = None,
    provider: str = "openai",
    settings: Optional[Settings] = None,
) -> AnalysisResult:
    """Search for *query*, read the top *limit* hits and analyse them.

    Individual read failures are skipped; at least one read must succeed.

    Raises:
        MissingCredentialError: If *credential* is blank (checked before any
            network call).
        NoContentError: If the search found nothing or every read failed.
        SearchFailedError: If the search itself failed.
        ResearchError: Anything ``analyze`` raises.
        ValueError: If *limit* is less than 1.
    """
    if not credential or not credential.strip():
        raise MissingCredentialError(
            "API key not found. Please set your API key first or add it to your .env file."
        )
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")

    hits = reader.search(query)
    if not hits:
        raise NoContentError(f"No search results found for '{query.strip()}'.")

    outcomes = reader.fetch_all([hit.url for hit in hits[:limit]])
    documents = successful_documents(outcomes)
    if not documents:
        raise NoContentError("Failed to fetch any content from the search results")

    logger.info(
        "Successfully fetched %d/%d articles, starting analysis",
        len(documents), len(outcomes),
    )
    return analyze(
        documents,
        query,
        credential,
        client=client,
        provider=provider,
        settings=settings,
    )
