"""contentnorm - normalize untrusted web content into one content model.

Quick usage::

    from contentnorm import UniversalParser, DefaultContentCleaner

    result = UniversalParser().parse(html, "https://example.com/post", DefaultContentCleaner())
    if result.has_errors:
        print(result.first_error)
    else:
        entry = result.resource.entries[0]
        print(entry.title, entry.canonical_link)

Metadata only::

    from contentnorm import parse_html, resolve_metadata

    page = resolve_metadata(parse_html(html), source_link="https://example.com/post")
    print(page.title, page.author, page.publish_time)

Plugin extension points::

    from contentnorm import register_parser

    class JSONFeedParser:
        name = "jsonfeed"
        def can_parse(self, content, content_type):
            return content_type.startswith("application/feed+json")
        def parse(self, content, source_link="", cleaner=None):
            ...

    register_parser(JSONFeedParser())
"""

from contentnorm.extractors.detect import Format, detect
from contentnorm.extractors.dom import parse_html
from contentnorm.extractors.metadata import resolve_metadata
from contentnorm.extractors.sanitizer import DefaultAMPCleaner, DefaultContentCleaner, sanitize
from contentnorm.extractors.splitter import ContentSplitter
from contentnorm.items import Entry, Page, Resource
from contentnorm.parsers import (
    AmpParser,
    AtomParser,
    HTMLMetadataParser,
    OEmbedJSONParser,
    RSSParser,
    SitemapParser,
    TwitterAPIParser,
    UniversalParser,
)
from contentnorm.plugins import register_parser
from contentnorm.result import ParseError, ParseResult

__version__ = "0.1.0"
__all__ = [
    "AmpParser",
    "AtomParser",
    "ContentSplitter",
    "DefaultAMPCleaner",
    "DefaultContentCleaner",
    "Entry",
    "Format",
    "HTMLMetadataParser",
    "OEmbedJSONParser",
    "Page",
    "ParseError",
    "ParseResult",
    "RSSParser",
    "Resource",
    "SitemapParser",
    "TwitterAPIParser",
    "UniversalParser",
    "detect",
    "parse_html",
    "register_parser",
    "resolve_metadata",
    "sanitize",
]
