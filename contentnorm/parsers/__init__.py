"""Format parsers: raw text in, :class:`~contentnorm.result.ParseResult` out."""

from .amp import AmpParser
from .feed import AtomParser, RSSParser, parse_feed
from .html import HTMLMetadataParser
from .oembed import OEmbedJSONParser, OEmbedProvider
from .sitemap import SitemapParser, parse_sitemap
from .twitter import TwitterAPIParser
from .universal import UniversalParser

__all__ = [
    "AmpParser",
    "AtomParser",
    "HTMLMetadataParser",
    "OEmbedJSONParser",
    "OEmbedProvider",
    "RSSParser",
    "SitemapParser",
    "TwitterAPIParser",
    "UniversalParser",
    "parse_feed",
    "parse_sitemap",
]
