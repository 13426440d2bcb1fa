"""Plain-text export of an analysis.

Turns the markdown article into clean text suitable for saving or pasting
into documents that do not render markdown.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

from core.models import AnalysisResult

_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")
_ITALIC_RE = re.compile(r"\*(.*?)\*")
_CODE_RE = re.compile(r"`(.*?)`")
_HEADING_RE = re.compile(r"#{1,6}\s")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_UNSAFE_FILENAME_RE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def strip_markdown(text: str) -> str:
    """Remove emphasis, code, heading and link markup from *text*.

    Examples:
        >>> strip_markdown("## Intro with **bold** and [a link](https://x.com)")
        'Intro with bold and a link'
    """
    text = _BOLD_RE.sub(r"\1", text)
    text = _ITALIC_RE.sub(r"\1", text)
    text = _CODE_RE.sub(r"\1", text)
    text = _HEADING_RE.sub("", text)
    return _LINK_RE.sub(r"\1", text)


def export_filename(topic: str, extension: str = "txt") -> str:
    """Return a filesystem-safe name such as ``ai_agents_analysis.txt``."""
    return f"{_UNSAFE_FILENAME_RE.sub('_', topic).lower()}_analysis.{extension}"


def render_export(
    result: AnalysisResult,
    topic: str,
    generated_on: Optional[date] = None,
) -> str:
    """Render *result* as a titled plain-text document.

    Blank lines of the article are dropped, as in the printed layout.
    """
    generated_on = generated_on or date.today()
    body = [
        line for line in strip_markdown(result.detailed_analysis).split("\n")
        if line.strip()
    ]
    header = [
        f"{topic}: Comprehensive Analysis",
        f"Generated on: {generated_on.isoformat()}",
        "",
    ]
    return "\n".join(header + body) + "\n"
