"""
Pydantic models shared across the research core.

Models serialise with camelCase aliases (``keyFindings``, ``publishedTime``)
so the JSON API matches what the browser UI sends and expects, while Python
code uses snake_case attribute names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.errors import FetchFailedError


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SearchHit(_Model):
    """A single search result returned by the search API."""

    title: str
    url: str
    description: str = ""
    date: Optional[str] = None


class FetchedDocument(_Model):
    """Extracted text of one web page. ``url`` is unique within a batch."""

    url: str
    title: str = ""
    content: str = ""
    published_time: Optional[str] = None


class ParsedSections(_Model):
    """Secondary fields derived from a completion by the response parser."""

    summary: str
    key_findings: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class AnalysisResult(_Model):
    """Structured outcome of one analysis call."""

    summary: str
    key_findings: list[str] = Field(default_factory=list, max_length=5)
    #: Verbatim model output.
    detailed_analysis: str
    #: ``"title - url"`` per contributing document, in input order.
    sources: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list, max_length=5)


@dataclass(frozen=True)
class FetchOutcome:
    """Result of reading one URL in a bulk fetch: a document or an error."""

    url: str
    document: Optional[FetchedDocument] = None
    error: Optional[FetchFailedError] = None

    @property
    def ok(self) -> bool:
        return self.document is not None
