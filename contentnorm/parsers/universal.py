"""Detector-driven dispatch to the format parsers."""

from __future__ import annotations

import logging

from contentnorm.extractors.detect import Format, detect
from contentnorm.extractors.sanitizer import ContentCleaner
from contentnorm.parsers.amp import AmpParser
from contentnorm.parsers.base import Parser
from contentnorm.parsers.feed import AtomParser, RSSParser
from contentnorm.parsers.html import HTMLMetadataParser
from contentnorm.parsers.sitemap import SitemapParser
from contentnorm.plugins import get_parsers
from contentnorm.result import ParseError, ParseResult

logger = logging.getLogger(__name__)

PARSERS: dict[Format, type] = {
    Format.RSS:     RSSParser,
    Format.ATOM:    AtomParser,
    Format.AMP:     AmpParser,
    Format.HTML:    HTMLMetadataParser,
    Format.SITEMAP: SitemapParser,
}


class UniversalParser:
    """Pick a parser for *content* and run it.

    Registered plugins (:mod:`contentnorm.plugins`) are asked first; then the
    detected :class:`~contentnorm.extractors.detect.Format` selects a built-in
    parser.  JSON formats (Twitter, oEmbed) are not detectable and must be
    parsed with their own parser.
    """

    name = "universal"

    def __init__(self, content_type: str = "") -> None:
        self.content_type = content_type or ""

    def parser_for(self, content: str) -> Parser | None:
        for plugin in get_parsers():
            if plugin.can_parse(content, self.content_type):
                logger.debug("Plugin parser %r selected", plugin.name)
                return plugin
        parser_class = PARSERS.get(detect(content, self.content_type))
        return parser_class() if parser_class else None

    def parse(
        self,
        content: str,
        source_link: str = "",
        cleaner: ContentCleaner | None = None,
    ) -> ParseResult:
        parser = self.parser_for(content)
        if parser is None:
            logger.warning("Unable to detect format of %s", source_link or "<content>")
            return ParseResult(self.name, errors=(ParseError("Unable to auto-detect parser"),))
        return parser.parse(content, source_link, cleaner)
