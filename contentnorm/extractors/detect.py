"""Content format detection from the raw body and an optional content type.

Checks run in a fixed order; the first match wins:

    </rss> or </rdf:RDF>   -> RSS
    </feed>                -> ATOM
    </urlset>              -> SITEMAP
    <html amp> / <html ⚡>  -> AMP      (anywhere in the body)
    </html> or text/html   -> HTML
    otherwise              -> UNKNOWN

End-of-document checks ignore trailing invisible characters (whitespace,
control and zero-width format characters).
"""

from __future__ import annotations

import unicodedata
from enum import StrEnum


class Format(StrEnum):
    RSS     = "rss"
    ATOM    = "atom"
    HTML    = "html"
    AMP     = "amp"
    SITEMAP = "sitemap"
    UNKNOWN = "unknown"


# Unicode categories treated as invisible: controls, format (zero-width),
# and the space/line/paragraph separators
_INVISIBLE_CATEGORIES: frozenset[str] = frozenset({"Cc", "Cf", "Zs", "Zl", "Zp"})

_AMP_MARKERS = ("<html amp>", "<html ⚡>")


def is_invisible(ch: str) -> bool:
    return ch.isspace() or unicodedata.category(ch) in _INVISIBLE_CATEGORIES


def ends_with_ignore_invisible(match: str, source: str) -> bool:
    """True if *source*, minus trailing invisible characters, ends with *match*.

    An empty *match* never matches.
    """
    if not match:
        return False
    end = len(source)
    while end > 0 and is_invisible(source[end - 1]):
        end -= 1
    return source.endswith(match, 0, end)


def starts_with_ignore_invisible(match: str, source: str) -> bool:
    """True if *source*, minus leading invisible characters, starts with *match*."""
    if not match:
        return False
    start = 0
    while start < len(source) and is_invisible(source[start]):
        start += 1
    return source.startswith(match, start)


def detect(body: str, content_type: str | None = "") -> Format:
    """Classify *body* into a :class:`Format`."""
    body = body or ""
    if ends_with_ignore_invisible("</rss>", body) or ends_with_ignore_invisible("</rdf:RDF>", body):
        return Format.RSS
    if ends_with_ignore_invisible("</feed>", body):
        return Format.ATOM
    if ends_with_ignore_invisible("</urlset>", body):
        return Format.SITEMAP
    if any(marker in body for marker in _AMP_MARKERS):
        return Format.AMP
    if ends_with_ignore_invisible("</html>", body) or (content_type or "").startswith("text/html"):
        return Format.HTML
    return Format.UNKNOWN
