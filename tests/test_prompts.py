"""Tests for core/prompts.py — truncation, source blocks and the analysis prompt."""

from __future__ import annotations

import pytest

from core.errors import EmptyTopicError
from core.models import FetchedDocument
from core.prompts import (
    MAX_BODY_CHARS,
    build_prompt,
    render_source_block,
    truncate_body,
)


@pytest.fixture
def documents() -> list[FetchedDocument]:
    return [
        FetchedDocument(
            url="https://example.com/one",
            title="First article",
            content="Body of the first article. " * 5,
            published_time="2025-03-01T10:00:00Z",
        ),
        FetchedDocument(
            url="https://example.com/two",
            title="Second article",
            content="y" * 2000,
        ),
    ]


class TestTruncateBody:
    def test_long_body_cut_with_suffix(self):
        body = "a" * 1500 + "b" * 10
        assert truncate_body(body) == "a" * 1500 + "...[truncated]"

    def test_body_at_limit_unchanged(self):
        body = "c" * MAX_BODY_CHARS
        assert truncate_body(body) is body

    def test_short_body_unchanged(self):
        assert truncate_body("short text\nwith newline") == "short text\nwith newline"


class TestRenderSourceBlock:
    def test_contains_metadata(self, documents):
        block = render_source_block(1, documents[0])
        assert "Source 1:" in block
        assert "Title: First article" in block
        assert "URL: https://example.com/one" in block
        assert "Published: 2025-03-01T10:00:00Z" in block
        assert "\n---\n" in block

    def test_missing_publish_time_placeholder(self, documents):
        block = render_source_block(2, documents[1])
        assert "Source 2:" in block
        assert "Published: Not specified" in block

    def test_body_is_truncated(self, documents):
        block = render_source_block(2, documents[1])
        assert "y" * 1500 + "...[truncated]" in block
        assert "y" * 1501 not in block


class TestBuildPrompt:
    def test_empty_topic_raises(self, documents):
        with pytest.raises(EmptyTopicError):
            build_prompt(documents, "")

    def test_blank_topic_raises(self, documents):
        with pytest.raises(EmptyTopicError):
            build_prompt(documents, "   ")

    def test_topic_is_named(self, documents):
        prompt = build_prompt(documents, "solar power")
        assert 'research article on "solar power"' in prompt
        assert "# solar power: A Comprehensive Analysis" in prompt

    def test_sources_in_order(self, documents):
        prompt = build_prompt(documents, "solar power")
        assert prompt.index("Source 1:") < prompt.index("Source 2:")
        assert prompt.index("First article") < prompt.index("Second article")

    def test_section_skeleton_in_order(self, documents):
        prompt = build_prompt(documents, "solar power")
        headings = [
            "## Table of Contents",
            "## Executive Summary",
            "## Introduction",
            "## Current Landscape",
            "## Key Developments",
            "## Detailed Analysis",
            "## Future Implications",
            "## Strategic Recommendations",
            "## Conclusion",
            "## References",
        ]
        positions = [prompt.index(h) for h in headings]
        assert positions == sorted(positions)

    def test_word_target_and_prose_rule(self, documents):
        prompt = build_prompt(documents, "solar power")
        assert "2000-2500 words" in prompt
        assert "DO NOT use numbered lists or bullet points" in prompt

    def test_topic_with_braces_is_literal(self, documents):
        prompt = build_prompt(documents, "{sources} in C++")
        assert '"{sources} in C++"' in prompt
