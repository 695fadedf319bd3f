"""Render sanitized entry content as Markdown."""

from __future__ import annotations

import logging
import re

from markdownify import markdownify

from contentnorm.extractors.dates import from_millis
from contentnorm.items import Entry

logger = logging.getLogger(__name__)

_EXCESSIVE_BLANK_LINES_RE = re.compile(r"\n{3,}")
_TRAILING_WHITESPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)


def html_to_markdown(html: str) -> str:
    """Convert *html* to Markdown.

    ATX headings, ``-`` bullets; trailing whitespace and runs of more than
    two blank lines are removed.
    """
    if not html or not html.strip():
        return ""

    md = markdownify(
        html,
        heading_style="ATX",
        bullets="-",
        code_language_callback=_detect_lang,
        strip=["script", "style"],
    )
    md = _TRAILING_WHITESPACE_RE.sub("", md)
    md = _EXCESSIVE_BLANK_LINES_RE.sub("\n\n", md)
    return md.strip()


def _detect_lang(el: object) -> str:
    """Language hint from a ``language-*`` class, for fenced code blocks."""
    getter = getattr(el, "get", None)
    classes = (getter("class") if getter else None) or []
    for cls in classes:
        if isinstance(cls, str) and cls.startswith("language-"):
            return cls[len("language-"):]
    return ""


def format_entry_markdown(entry: Entry) -> str:
    """One entry as a Markdown document with a short metadata header."""
    lines: list[str] = []

    lines.append(f"# {entry.title or entry.canonical_link or 'Untitled'}")
    lines.append("")

    meta_parts: list[str] = []
    if entry.authors:
        meta_parts.append(f"**Author:** {', '.join(a.name for a in entry.authors)}")
    if entry.published_timestamp:
        meta_parts.append(f"**Published:** {from_millis(entry.published_timestamp).isoformat()}")
    if entry.canonical_link:
        meta_parts.append(f"**Link:** <{entry.canonical_link}>")
    if entry.tags:
        meta_parts.append(f"**Tags:** {', '.join(entry.tags)}")

    if meta_parts:
        lines.extend(meta_parts)
        lines.append("")

    if entry.summary:
        lines.append(f"> {entry.summary}")
        lines.append("")

    if entry.primary_image is not None:
        lines.append(f"![{entry.primary_image.alt_text}]({entry.primary_image.link})")
        lines.append("")

    lines.append("---")
    lines.append("")
    lines.append(html_to_markdown(entry.clean_content))

    return "\n".join(lines).rstrip() + "\n"
