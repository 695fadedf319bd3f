"""Sitemap parser: XML ``<urlset>`` documents or plain URL lists.

Nothing is fetched; callers pass the sitemap text.
"""

from __future__ import annotations

import logging

from contentnorm import settings
from contentnorm.extractors.dates import parse_timestamp
from contentnorm.extractors.sanitizer import ContentCleaner
from contentnorm.items import ChangeFrequency, Entry, Resource, SitemapLink
from contentnorm.parsers.base import child_text, descendants, parse_xml
from contentnorm.result import ParseResult

logger = logging.getLogger(__name__)


def parse_sitemap(content: str) -> list[SitemapLink]:
    """Links from *content*; ``<urlset>`` XML, else one URL per line.

    Raises the XML parser's error for malformed ``<urlset>`` documents.
    """
    if "<urlset" not in content:
        return parse_simple(content)

    root = parse_xml(content)
    found: list[SitemapLink] = []
    for url in descendants(root, "url"):
        loc = child_text(url, "loc")
        if not loc:
            continue
        found.append(SitemapLink(
            url=loc,
            last_modified_timestamp=parse_timestamp(child_text(url, "lastmod")),
            change_frequency=ChangeFrequency.from_string(child_text(url, "changefreq")),
        ))
    return found


def parse_simple(content: str, limit: int = settings.MAX_SITEMAP_URLS) -> list[SitemapLink]:
    """One URL per line; blank lines and ``#`` comments are skipped."""
    lines = [line.strip() for line in content.splitlines()]
    lines = [line for line in lines if line][:limit]
    return [SitemapLink(url=line) for line in lines if not line.startswith("#")]


class SitemapParser:
    """Wraps :func:`parse_sitemap`: one entry per link, ``lastmod`` as the update time."""

    name = "sitemap"

    def parse(
        self,
        content: str,
        source_link: str = "",
        cleaner: ContentCleaner | None = None,
    ) -> ParseResult:
        try:
            links = parse_sitemap(content)
        except Exception as exc:
            logger.warning("Sitemap parse failed for %s: %s", source_link or "<content>", exc)
            return ParseResult.failure(self.name, "Parse Failure", exc)

        entries = tuple(
            Entry(canonical_link=link.url, updated_timestamp=link.last_modified_timestamp)
            for link in links
        )
        logger.debug("Sitemap %s: %d links", source_link or "<content>", len(entries))
        return ParseResult(self.name, Resource(source_link=source_link, entries=entries))
