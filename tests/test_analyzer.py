"""
Tests for core/analyzer.py — analyze() and research() orchestration.

Run with: pytest tests/test_analyzer.py
"""

from __future__ import annotations

import httpx
import pytest

from core.analyzer import analyze, format_source, research
from core.completion import CompletionClient, OpenAICompletionClient
from core.errors import (
    EmptyTopicError,
    InsufficientContentError,
    InvalidCredentialError,
    MissingCredentialError,
    NetworkError,
    NoContentError,
    RateLimitError,
    RequestTooLargeError,
)
from core.models import AnalysisResult, FetchedDocument
from core.reader import JinaReader

REPORT = "\n".join([
    "# testing: A Comprehensive Analysis",
    "## Executive Summary",
    "Testing matters.",
    "## Key Findings",
    "1. First insight",
    "2. Second insight",
    "## Conclusion",
    "Done.",
])


class FakeClient(CompletionClient):
    """Records prompts and returns a canned completion."""

    provider = "fake"

    def __init__(self, text: str = REPORT, error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.prompts: list[str] = []
        self.closed = False

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def documents() -> list[FetchedDocument]:
    return [
        FetchedDocument(title="A", url="http://a", content="x" * 60),
        FetchedDocument(title="B", url="http://b", content="short"),
    ]


class TestAnalyze:
    def test_end_to_end_sources(self, documents):
        client = FakeClient()
        result = analyze(documents, "testing", "sk-test", client=client)

        assert isinstance(result, AnalysisResult)
        assert result.sources == ["A - http://a"]
        assert "Source 1:" in client.prompts[0]
        assert "Source 2:" not in client.prompts[0]

    def test_end_to_end_findings(self, documents):
        result = analyze(documents, "testing", "sk-test", client=FakeClient())
        assert result.key_findings == ["First insight", "Second insight"]
        assert result.recommendations == []
        assert result.summary == "Testing matters."

    def test_detailed_analysis_is_verbatim(self, documents):
        text = "  leading spaces\n## Key Findings\n- a\n\ntrailing  \n"
        result = analyze(documents, "testing", "sk-test", client=FakeClient(text))
        assert result.detailed_analysis == text

    def test_sources_follow_filtered_order(self):
        docs = [
            FetchedDocument(title="C", url="http://c", content="c" * 70),
            FetchedDocument(title="Skip", url="http://s", content=""),
            FetchedDocument(title="A", url="http://a", content="a" * 70),
        ]
        result = analyze(docs, "order", "sk-test", client=FakeClient())
        assert result.sources == ["C - http://c", "A - http://a"]

    def test_lists_capped_at_five(self, documents):
        text = "## Key Findings\n" + "\n".join(f"- f{i}" for i in range(9))
        text += "\n# Recommendations\n" + "\n".join(f"{i}. r{i}" for i in range(9))
        result = analyze(documents, "testing", "sk-test", client=FakeClient(text))
        assert len(result.key_findings) == 5
        assert len(result.recommendations) == 5

    def test_all_short_documents_insufficient(self):
        docs = [FetchedDocument(url=f"http://{i}", content="y" * 50) for i in range(3)]
        client = FakeClient()
        with pytest.raises(InsufficientContentError):
            analyze(docs, "testing", "sk-test", client=client)
        assert client.prompts == []

    def test_missing_credential_checked_first(self):
        client = FakeClient()
        with pytest.raises(MissingCredentialError):
            analyze([], "", "", client=client)
        assert client.prompts == []

    def test_no_documents(self):
        with pytest.raises(NoContentError):
            analyze([], "testing", "sk-test", client=FakeClient())

    def test_blank_topic(self, documents):
        with pytest.raises(EmptyTopicError):
            analyze(documents, "  ", "sk-test", client=FakeClient())

    def test_network_error_clarified_but_same_kind(self, documents):
        original = NetworkError("connection refused")
        with pytest.raises(NetworkError) as info:
            analyze(documents, "testing", "sk-test", client=FakeClient(error=original))
        assert "Network error" in str(info.value)
        assert info.value.__cause__ is original

    def test_other_errors_propagate_unchanged(self, documents):
        original = RateLimitError("slow down")
        with pytest.raises(RateLimitError) as info:
            analyze(documents, "testing", "sk-test", client=FakeClient(error=original))
        assert info.value is original

    @pytest.mark.parametrize(
        ("status", "error_cls"),
        [
            (401, InvalidCredentialError),
            (429, RateLimitError),
            (400, RequestTooLargeError),
        ],
    )
    def test_http_status_through_real_client(self, documents, status, error_cls):
        http = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(status)))
        client = OpenAICompletionClient("sk-test", http_client=http)
        with pytest.raises(error_cls):
            analyze(documents, "testing", "sk-test", client=client)

    def test_closes_the_client_it_builds(self, documents, monkeypatch):
        built = FakeClient()
        monkeypatch.setattr(
            "core.analyzer.make_completion_client",
            lambda provider, credential, settings: built,
        )
        analyze(documents, "testing", "sk-test")
        assert built.closed

    def test_closes_the_client_it_builds_on_error(self, documents, monkeypatch):
        built = FakeClient(error=RateLimitError("slow down"))
        monkeypatch.setattr(
            "core.analyzer.make_completion_client",
            lambda provider, credential, settings: built,
        )
        with pytest.raises(RateLimitError):
            analyze(documents, "testing", "sk-test")
        assert built.closed

    def test_leaves_a_passed_in_client_open(self, documents):
        client = FakeClient()
        analyze(documents, "testing", "sk-test", client=client)
        assert not client.closed

    def test_parsed_lists_pass_through(self, documents):
        text = "## Key Findings\n- one\n- two\n## Recommendations\n1. act"
        result = analyze(documents, "testing", "sk-test", client=FakeClient(text))
        assert result.key_findings == ["one", "two"]
        assert result.recommendations == ["act"]


class TestFormatSource:
    def test_title_dash_url(self):
        doc = FetchedDocument(title="Title", url="https://x.com", content="")
        assert format_source(doc) == "Title - https://x.com"


# ── research() ─────────────────────────────────────────────────────────────────


def jina_handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "s.jina.ai":
        return httpx.Response(200, json={"data": [
            {"title": "Good one", "url": "https://good.example/1", "description": ""},
            {"title": "Broken", "url": "https://bad.example/2", "description": ""},
            {"title": "Good two", "url": "https://good.example/3", "description": ""},
            {"title": "Beyond limit", "url": "https://good.example/4", "description": ""},
        ]})
    if "bad.example" in str(request.url):
        return httpx.Response(500)
    page = str(request.url).rsplit("/", 1)[-1]
    return httpx.Response(200, json={"data": {
        "title": f"Page {page}",
        "url": f"https://good.example/{page}",
        "content": f"content {page} " * 20,
    }})


@pytest.fixture
def reader() -> JinaReader:
    return JinaReader(http_client=httpx.Client(transport=httpx.MockTransport(jina_handler)))


class TestResearch:
    def test_skips_failed_fetches(self, reader):
        result = research("solar", "sk-test", reader, limit=3, client=FakeClient())
        assert result.sources == [
            "Page 1 - https://good.example/1",
            "Page 3 - https://good.example/3",
        ]

    def test_missing_credential_before_search(self, reader):
        with pytest.raises(MissingCredentialError):
            research("solar", None, reader, client=FakeClient())

    @pytest.mark.parametrize("limit", [0, -1])
    def test_rejects_limit_below_one(self, reader, limit):
        client = FakeClient()
        with pytest.raises(ValueError, match="limit"):
            research("solar", "sk-test", reader, limit=limit, client=client)
        assert client.prompts == []

    def test_all_fetches_failed(self, reader):
        def failing(request: httpx.Request) -> httpx.Response:
            if request.url.host == "s.jina.ai":
                return httpx.Response(200, json={"data": [
                    {"title": "Broken", "url": "https://bad.example/2"},
                ]})
            return httpx.Response(502)

        broken = JinaReader(http_client=httpx.Client(transport=httpx.MockTransport(failing)))
        with pytest.raises(NoContentError, match="Failed to fetch any content"):
            research("solar", "sk-test", broken, client=FakeClient())

    def test_no_search_results(self):
        empty = JinaReader(http_client=httpx.Client(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"data": []}))
        ))
        with pytest.raises(NoContentError):
            research("solar", "sk-test", empty, client=FakeClient())
