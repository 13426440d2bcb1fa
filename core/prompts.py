"""Prompt construction for the long-form analysis call.

The instruction template is a fixed constant: the response parser relies on
the section skeleton it asks for, so only the topic and the per-source blocks
vary between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from core.errors import EmptyTopicError
from core.models import FetchedDocument

logger = logging.getLogger(__name__)

#: Per-document character budget inside the prompt.
MAX_BODY_CHARS = 1500
TRUNCATION_SUFFIX = "...[truncated]"
UNKNOWN_PUBLISHED = "Not specified"

SYSTEM_PROMPT = (
    "You are an expert research analyst who creates comprehensive, "
    "well-structured research articles by analyzing multiple sources."
)

_SOURCE_BLOCK = """
Source {index}:
Title: {title}
URL: {url}
Published: {published}

Content:
{body}

---
    """

ANALYSIS_TEMPLATE = """You are an expert research analyst and technical writer. Create a comprehensive, well-written research article on "{topic}" using the provided sources. Write in a professional, engaging, and narrative style that flows naturally.

Research Sources:
{sources}

Instructions:
1. Write a comprehensive analysis article of 2000-2500 words in a flowing, narrative style
2. Structure it with clear sections and headings using markdown
3. Include specific references to the sources naturally within the text
4. Provide actionable insights and recommendations
5. Use professional but accessible language with smooth transitions between sections
6. Write as a cohesive article, not as bullet points or fragmented sections
7. Include relevant examples and context to support your analysis
8. Ensure each paragraph flows naturally into the next
9. DO NOT use numbered lists or bullet points in the main content - write in flowing prose
10. Create a clean table of contents without markdown syntax

Format your response as a complete markdown article with the following structure:

# {topic}: A Comprehensive Analysis

## Table of Contents
- Executive Summary
- Introduction  
- Current Landscape
- Key Developments
- Detailed Analysis
- Future Implications
- Strategic Recommendations
- Conclusion
- References

## Executive Summary

Write a compelling 200-250 word overview that captures the essence of your analysis. Focus on the most significant insights and their implications. This should read like an engaging introduction that makes the reader want to continue.

## Introduction

Provide context and background about the topic in 2-3 paragraphs. Explain why this topic is important and what the reader can expect to learn. Set the stage for your analysis with engaging prose that flows naturally.

## Current Landscape

Describe the current state of the topic based on your sources in 3-4 paragraphs. What are the key players, trends, and challenges? Use narrative storytelling to paint a clear picture. Write in flowing paragraphs, not bullet points.

## Key Developments

Highlight the most important developments, innovations, or changes in this field in 3-4 paragraphs. Explain their significance and how they're shaping the landscape. Use storytelling to make this engaging.

## Detailed Analysis

Provide your in-depth analysis in 5-6 paragraphs with subsections as needed. Each paragraph should be substantial (4-6 sentences) and flow naturally into the next. Use examples, case studies, and specific details from your sources. Write in narrative form - no numbered lists or bullet points.

### [Create relevant subsection titles as needed]

Continue with detailed analysis in narrative form. Each subsection should contain 2-3 substantial paragraphs.

## Future Implications

Discuss what these developments mean for the future in 3-4 paragraphs. What trends are emerging? What challenges and opportunities lie ahead? Write in flowing narrative style.

## Strategic Recommendations

Provide specific, actionable recommendations in 3-4 paragraphs. These should be practical and well-reasoned. Write recommendations in paragraph form, not as a list.

## Conclusion

Summarize the key takeaways in 2-3 paragraphs and reinforce the main message of your article. End with a thought-provoking statement about the future.

## References

List all sources used in your analysis in a clean format.

CRITICAL WRITING GUIDELINES:
- Write ONLY in flowing paragraphs - never use bullet points, numbered lists, or fragmented text
- Each paragraph should be 4-6 sentences long
- Use smooth transitions between paragraphs and sections
- Reference sources naturally within sentences (e.g., "According to recent research..." or "Industry experts suggest...")
- Write in a conversational yet professional tone
- Use storytelling techniques to make complex topics accessible
- Make each section build logically on the previous one
- Avoid any numbered formatting within the content - write everything in prose form
- DO NOT repeat section headers or add extra headers at the end
- End cleanly with the References section - no additional text after that"""


def truncate_body(text: str, limit: int = MAX_BODY_CHARS) -> str:
    """Cut *text* to *limit* characters, marking the cut with ``...[truncated]``.

    Examples:
        >>> truncate_body("abc", limit=5)
        'abc'
        >>> truncate_body("abcdefgh", limit=5)
        'abcde...[truncated]'
    """
    if len(text) > limit:
        return text[:limit] + TRUNCATION_SUFFIX
    return text


def render_source_block(index: int, document: FetchedDocument) -> str:
    """Render one document as a numbered source block (``index`` is 1-based)."""
    return _SOURCE_BLOCK.format(
        index=index,
        title=document.title,
        url=document.url,
        published=document.published_time or UNKNOWN_PUBLISHED,
        body=truncate_body(document.content),
    )


def build_prompt(documents: Sequence[FetchedDocument], topic: str) -> str:
    """Embed *documents* and *topic* into the analysis instruction template.

    Args:
        documents: Documents already filtered by ``select_documents``.
        topic: The research topic; must not be blank.

    Returns:
        The complete user prompt.

    Raises:
        EmptyTopicError: If *topic* is blank.
    """
    if not topic or not topic.strip():
        raise EmptyTopicError("No topic provided for analysis.")

    sources = "\n".join(
        render_source_block(i, doc) for i, doc in enumerate(documents, start=1)
    )
    prompt = ANALYSIS_TEMPLATE.format(topic=topic, sources=sources)

    logger.info("Built prompt: %d sources, %d chars", len(documents), len(prompt))
    return prompt
