"""Content selection: keep only documents with enough extracted text."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from core.errors import InsufficientContentError, NoContentError
from core.models import FetchedDocument

logger = logging.getLogger(__name__)

#: A document must carry strictly more than this many characters after trimming.
MIN_CONTENT_CHARS = 50


def has_sufficient_content(document: FetchedDocument) -> bool:
    """Return True if *document* has more than ``MIN_CONTENT_CHARS`` of text."""
    return len((document.content or "").strip()) > MIN_CONTENT_CHARS


def select_documents(documents: Sequence[FetchedDocument]) -> list[FetchedDocument]:
    """Filter *documents* down to those worth sending to the model.

    Order is preserved.

    Raises:
        NoContentError: If *documents* is empty.
        InsufficientContentError: If no document passes the length filter.
    """
    if not documents:
        raise NoContentError("No content provided for analysis.")

    selected = [d for d in documents if has_sufficient_content(d)]

    if not selected:
        raise InsufficientContentError(
            "No valid content found. Content might be too short or empty."
        )

    if len(selected) < len(documents):
        logger.warning(
            "Using %d out of %d documents due to insufficient content",
            len(selected), len(documents),
        )
    return selected
