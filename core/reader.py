"""Web search and page reading through the Jina AI APIs.

Responsibilities:
- Search the web for a query (``s.jina.ai``)
- Read a single URL into a ``FetchedDocument`` (``r.jina.ai``)
- Bulk-read a batch of URLs with per-URL failure tolerance

Both endpoints are asked for JSON (``Accept: application/json``) and answer
with a ``{"data": ...}`` envelope. An API key is optional; without one Jina
applies a lower rate limit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Optional

import httpx

from core.errors import EmptyTopicError, FetchFailedError, SearchFailedError
from core.models import FetchedDocument, FetchOutcome, SearchHit

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

READER_URL = "https://r.jina.ai/"
SEARCH_URL = "https://s.jina.ai/"

#: Per-request timeout in seconds; page rendering can be slow.
READ_TIMEOUT = 60.0
SEARCH_TIMEOUT = 30.0


# ── URL helpers ────────────────────────────────────────────────────────────────


def normalise_url(url: str) -> str:
    """Lower-case *url* and strip trailing slashes for duplicate detection."""
    return url.rstrip("/").lower()


def dedupe_urls(urls: Iterable[str]) -> list[str]:
    """Remove duplicate URLs, keeping the first occurrence.

    Examples:
        >>> dedupe_urls(["https://a.com/", "https://A.com", "https://b.com"])
        ['https://a.com/', 'https://b.com']
    """
    seen: set[str] = set()
    unique: list[str] = []
    for url in urls:
        normalised = normalise_url(url or "")
        if normalised and normalised not in seen:
            seen.add(normalised)
            unique.append(url)
    return unique


# ── Reader ─────────────────────────────────────────────────────────────────────


class JinaReader:
    """Client for Jina Search and Jina Reader.

    The ``httpx.Client`` is lazy-initialised so the reader can be created in
    tests without network access; pass ``http_client`` to inject a transport.
    """

    def __init__(
        self,
        api_key: str = "",
        *,
        max_results: int = 10,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.max_results = max_results
        self._http = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> JinaReader:
        return cls(settings.jina_api_key, max_results=settings.max_search_results)

    @property
    def http(self) -> httpx.Client:
        """Lazy-initialise and return the HTTP client."""
        if self._http is None:
            self._http = httpx.Client()
        return self._http

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    # ── Search ─────────────────────────────────────────────────────────────

    def search(self, query: str) -> list[SearchHit]:
        """Search the web and return up to ``max_results`` hits in rank order.

        Raises:
            EmptyTopicError: If *query* is blank.
            SearchFailedError: On transport errors, non-2xx answers or an
                unexpected payload.
        """
        query = query.strip()
        if not query:
            raise EmptyTopicError("Search query must not be empty.")

        logger.info("Search query=%r", query)
        try:
            response = self.http.get(
                SEARCH_URL,
                params={"q": query},
                headers=self._headers(),
                timeout=SEARCH_TIMEOUT,
            )
            response.raise_for_status()
            items = response.json()["data"] or []
        except httpx.HTTPStatusError as exc:
            raise SearchFailedError(
                f"Search failed: {exc.response.status_code}"
            ) from exc
        except httpx.TransportError as exc:
            raise SearchFailedError(f"Search failed: {exc}") from exc
        except (ValueError, KeyError, TypeError) as exc:
            raise SearchFailedError("Invalid response from the search API") from exc

        if not isinstance(items, list):
            raise SearchFailedError("Invalid response from the search API")

        hits: list[SearchHit] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            url = item.get("url") or ""
            if not url:
                continue
            hits.append(SearchHit(
                title=item.get("title") or "",
                url=url,
                description=item.get("description") or "",
                date=item.get("date") or None,
            ))

        logger.info("Search complete: %d results", len(hits))
        return hits[: self.max_results]

    # ── Read ───────────────────────────────────────────────────────────────

    def read(self, url: str) -> FetchedDocument:
        """Read *url* and return its extracted text.

        Raises:
            FetchFailedError: On transport errors, non-2xx answers or an
                unexpected payload.
        """
        logger.info("Reading url=%s", url)
        try:
            response = self.http.get(
                f"{READER_URL}{url}",
                headers=self._headers(),
                timeout=READ_TIMEOUT,
            )
            response.raise_for_status()
            data = response.json()["data"]
            return FetchedDocument(
                url=data.get("url") or url,
                title=data.get("title") or "",
                content=data.get("content") or "",
                published_time=data.get("publishedTime") or None,
            )
        except httpx.HTTPStatusError as exc:
            raise FetchFailedError(url, f"HTTP {exc.response.status_code}") from exc
        except httpx.TransportError as exc:
            raise FetchFailedError(url, str(exc) or type(exc).__name__) from exc
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise FetchFailedError(url, "invalid response from the reader API") from exc

    def fetch_all(self, urls: Sequence[str]) -> list[FetchOutcome]:
        """Read *urls* one after another, recording each success or failure.

        A failing URL is logged and recorded; it never aborts the batch.
        Duplicate URLs are read once. Outcomes follow the input order.
        """
        unique = dedupe_urls(urls)
        outcomes: list[FetchOutcome] = []

        for i, url in enumerate(unique, start=1):
            logger.info("Fetching content %d/%d: %s", i, len(unique), url)
            try:
                outcomes.append(FetchOutcome(url=url, document=self.read(url)))
            except FetchFailedError as exc:
                logger.warning("Failed to fetch %s: %s", url, exc.reason)
                outcomes.append(FetchOutcome(url=url, error=exc))

        return outcomes


def successful_documents(outcomes: Iterable[FetchOutcome]) -> list[FetchedDocument]:
    """Return the documents of the successful outcomes, in order."""
    return [o.document for o in outcomes if o.ok]
