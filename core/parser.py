"""Heuristic extraction of structured fields from a markdown completion.

The model is asked for a fixed section skeleton but nothing guarantees it
complies, so every extractor here is best-effort: a missing section yields an
empty list (or the truncated-text fallback for the summary), never an error.

List sections are described by ``ListSectionMatcher`` objects; callers that
need different phrasing can pass their own matchers to ``parse_sections``
without touching the orchestrator.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from core.models import ParsedSections

logger = logging.getLogger(__name__)

#: Characters of raw text used as the summary when no summary section exists.
SUMMARY_FALLBACK_CHARS = 600
MAX_LIST_ITEMS = 5

_TOC_MARKER = "table of contents"
_SUMMARY_TRIGGERS: tuple[str, ...] = ("executive summary", "## introduction")

#: A numbered (``1.``) or bulleted (``- `` / ``* ``) list item, marker captured.
_LIST_ITEM_RE = re.compile(r"^(?:\d+\.|[-*]\s)\s*")


# ── List sections ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ListSectionMatcher:
    """Locate a list section and collect its items.

    Attributes:
        triggers: Lower-case substrings; the first line containing any of them
            opens the section.
        terminator: A ``#`` line that does *not* contain this substring
            closes the section.
        limit: Maximum number of items returned.
    """

    triggers: tuple[str, ...]
    terminator: str
    limit: int = MAX_LIST_ITEMS

    def extract(self, text: str) -> list[str]:
        items: list[str] = []
        inside = False

        for line in text.split("\n"):
            lowered = line.lower()
            if any(trigger in lowered for trigger in self.triggers):
                inside = True
                continue
            if not inside:
                continue
            if line.startswith("#") and self.terminator not in lowered:
                break
            stripped = line.strip()
            if _LIST_ITEM_RE.match(stripped):
                items.append(_LIST_ITEM_RE.sub("", stripped, count=1))

        return items[: self.limit]


KEY_FINDINGS = ListSectionMatcher(
    triggers=("key findings", "main findings"),
    terminator="finding",
)
RECOMMENDATIONS = ListSectionMatcher(
    triggers=("recommendations", "next steps"),
    terminator="recommendation",
)


# ── Summary ────────────────────────────────────────────────────────────────────


def _is_summary_trigger(lowered: str) -> bool:
    return (
        any(trigger in lowered for trigger in _SUMMARY_TRIGGERS)
        or ("summary" in lowered and "table" not in lowered)
    )


def _table_of_contents(lines: list[str]) -> str:
    """Return the ToC heading plus its non-blank lines, up to the next ``##``."""
    toc: list[str] = []
    inside = False

    for line in lines:
        if _TOC_MARKER in line.lower():
            inside = True
            toc.append(line)
            continue
        if inside:
            if line.startswith("##") and _TOC_MARKER not in line.lower():
                break
            if line.strip():
                toc.append(line)

    return "\n".join(toc)


def extract_summary(text: str) -> str:
    """Return the table of contents and executive summary / introduction.

    Falls back to the first ``SUMMARY_FALLBACK_CHARS`` characters followed by
    ``...`` when neither a table of contents nor a summary region is found.
    """
    lines = text.split("\n")
    captured: list[str] = []
    capturing = False
    found_toc = False

    for line in lines:
        lowered = line.lower()
        if _TOC_MARKER in lowered:
            found_toc = True
            continue
        if _is_summary_trigger(lowered):
            capturing = True
            continue
        if capturing:
            if (
                line.startswith("##")
                and "summary" not in lowered
                and "introduction" not in lowered
            ):
                break
            if line.strip():
                captured.append(line)

    summary = "\n".join(captured).strip()

    if found_toc:
        return _table_of_contents(lines) + "\n\n" + summary

    return summary or text[:SUMMARY_FALLBACK_CHARS] + "..."


# ── Public interface ───────────────────────────────────────────────────────────


def extract_key_findings(text: str) -> list[str]:
    return KEY_FINDINGS.extract(text)


def extract_recommendations(text: str) -> list[str]:
    return RECOMMENDATIONS.extract(text)


def parse_sections(
    text: str,
    findings: ListSectionMatcher = KEY_FINDINGS,
    recommendations: ListSectionMatcher = RECOMMENDATIONS,
) -> ParsedSections:
    """Derive summary, key findings and recommendations from *text*.

    Pure: the same *text* always yields the same ``ParsedSections`` and
    *text* itself is left untouched.
    """
    parsed = ParsedSections(
        summary=extract_summary(text),
        key_findings=findings.extract(text),
        recommendations=recommendations.extract(text),
    )
    logger.debug(
        "Parsed sections: summary_chars=%d findings=%d recommendations=%d",
        len(parsed.summary), len(parsed.key_findings), len(parsed.recommendations),
    )
    return parsed
