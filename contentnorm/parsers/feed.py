"""RSS 2.0 / RDF (RSS 1.0) and Atom 1.0 feed parsers.

Both parsers return one :class:`~contentnorm.items.Entry` per item/entry and
describe the feed itself on the :class:`~contentnorm.items.Resource`.  No
network requests are made.

Supports:
  - RSS 2.0 (<rss><channel><item>) and RDF (<rdf:RDF><item>)
  - Atom 1.0, including xhtml content
  - content:encoded, Dublin Core creator/date, FeedBurner original links
  - Media RSS, image enclosures and Google Base image links
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET  # for type hints only

from contentnorm import settings
from contentnorm.extractors import safelist as safelists
from contentnorm.extractors.dates import parse_rfc822_first, parse_timestamp, to_millis, try_parse_iso8601
from contentnorm.extractors.dom import normalize_space, parse_html
from contentnorm.extractors.sanitizer import ContentCleaner, render, sanitize
from contentnorm.extractors.urlnorm import http_url, protocol
from contentnorm.items import Author, Entry, Image, Resource
from contentnorm.parsers.base import (
    add_images,
    child_text,
    citations_from,
    clean_entry_content,
    descendants,
    first,
    first_child,
    first_text,
    image_from,
    inner_xml,
    matches,
    parse_xml,
    text,
    xml_attr,
)
from contentnorm.result import ParseResult

logger = logging.getLogger(__name__)


def _int_attr(el: ET.Element, name: str) -> int:
    try:
        return int(xml_attr(el, name))
    except ValueError:
        return 0


class FeedParser:
    """Shared driver: parse XML, read entries and source, wrap failures."""

    name = "feed"

    def parse(
        self,
        content: str,
        source_link: str = "",
        cleaner: ContentCleaner | None = None,
    ) -> ParseResult:
        try:
            root = parse_xml(content)
            entries = self.parse_entries(root, source_link, cleaner)
            resource = self.parse_source(root, Resource(source_link=source_link))
            return ParseResult(self.name, resource.with_entries(entries))
        except Exception as exc:
            logger.warning("%s parse failed for %s: %s", self.name, source_link or "<content>", exc)
            return ParseResult.failure(self.name, "Parse Failure", exc)

    def parse_source(self, root: ET.Element, resource: Resource) -> Resource:
        raise NotImplementedError

    def parse_entries(
        self,
        root: ET.Element,
        base: str,
        cleaner: ContentCleaner | None,
    ) -> list[Entry]:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# RSS
# ---------------------------------------------------------------------------

def _rss_time(value: str) -> int:
    return to_millis(parse_rfc822_first(value))


def _rss_author(item: ET.Element) -> Author | None:
    """``dc:creator``, else ``author`` as ``"email (Name)"``, a bare email or a name."""
    name = normalize_space(first_text(item, "dc:creator"))
    if name:
        return Author(name=name)

    raw = normalize_space(first_text(item, "author"))
    if not raw:
        return None
    email = raw
    paren_start, paren_end, at = raw.find("("), raw.find(")"), raw.find("@")
    name = ""
    if 0 < paren_start < paren_end:
        name = raw[paren_start + 1:paren_end].strip()
        email = raw[:paren_start].strip()
    elif at < 1:
        name = raw
    if at > 0:
        return Author(name=name, email=email)
    return Author(name=name)


def _rss_images(item: ET.Element, proto: str | None) -> list[Image]:
    images: list[Image] = []
    for media in descendants(item, "media:content"):
        medium = xml_attr(media, "medium")
        if xml_attr(media, "type").lower().startswith("image/"):
            medium = "image"
        if medium.lower() != "image":
            continue
        image = image_from(
            xml_attr(media, "url"), proto,
            title=normalize_space(first_text(media, "media:title")),
            width=_int_attr(media, "width"),
            height=_int_attr(media, "height"),
        )
        if image is not None:
            images.append(image)

    for enclosure in descendants(item, "enclosure"):
        if xml_attr(enclosure, "type").lower() in settings.ALLOWED_IMAGE_TYPES:
            image = image_from(xml_attr(enclosure, "url"), proto)
            if image is not None:
                images.append(image)

    for link in descendants(item, "g:image_link"):
        image = image_from(text(link), proto)
        if image is not None:
            images.append(image)
    return images


class RSSParser(FeedParser):
    name = "rss"

    def parse_source(self, root: ET.Element, resource: Resource) -> Resource:
        channel = first_child(root, "channel")
        if channel is None:
            channel = root
        proto = protocol(resource.source_link)

        icon = None
        image_el = first_child(root, "image")
        if image_el is None:
            image_el = first(channel, "image")
        if image_el is not None:
            icon_link = (
                http_url(child_text(image_el, "url"), proto)
                or http_url(child_text(image_el, "link"), proto)
                or http_url(xml_attr(image_el, "rdf:resource"), proto)
            )
            if icon_link:
                icon = Image(link=icon_link)

        return Resource(
            source_link=resource.source_link,
            entries=resource.entries,
            title=child_text(channel, "title"),
            description=child_text(channel, "description"),
            rights=child_text(channel, "copyright"),
            published_timestamp=_rss_time(child_text(channel, "pubDate")),
            updated_timestamp=_rss_time(child_text(channel, "lastBuildDate")),
            site_link=http_url(child_text(channel, "rss:link"), proto) or "",
            icon=icon,
        )

    def parse_entries(self, root: ET.Element, base: str, cleaner: ContentCleaner | None) -> list[Entry]:
        return [self.parse_entry(item, base, cleaner) for item in descendants(root, "item")]

    def parse_entry(self, item: ET.Element, base: str, cleaner: ContentCleaner | None) -> Entry:
        proto = protocol(base)

        description = first_text(item, "description")
        encoded = first_text(item, "content:encoded")
        summary = ""
        if len(encoded) > len(description):
            if description:
                summary = render(sanitize(parse_html(description), safelists.basic()))
            content = encoded
        else:
            content = description

        link = http_url(first_text(item, "rss:link"), proto)
        guid = first(item, "guid")
        if link is None and guid is not None and xml_attr(guid, "isPermaLink").lower() != "false":
            link = http_url(text(guid), proto)
        canonical = link or ""
        alt_links: tuple[str, ...] = ()
        orig_link = http_url(first_text(item, "feedburner:origLink"), proto)
        if orig_link:
            canonical = orig_link
            if link:
                alt_links = (link,)

        author = _rss_author(item)
        published = first(item, "pubDate")
        if published is None:
            published = first(item, "dc:date")

        tags = dict.fromkeys(
            normalize_space(text(c)) for c in descendants(item, "category") if text(c)
        )

        entry = Entry(
            id=text(guid) if guid is not None else "",
            title=normalize_space(first_text(item, "title")),
            summary=summary,
            canonical_link=canonical,
            alt_links=alt_links,
            published_timestamp=_rss_time(text(published)),
            authors=(author,) if author else (),
            tags=tuple(tags),
            citations=citations_from(content) if content else (),
        )
        entry = clean_entry_content(entry, content, base, cleaner)
        return add_images(entry, _rss_images(item, proto))


# ---------------------------------------------------------------------------
# Atom
# ---------------------------------------------------------------------------

def _atom_time(value: str) -> int:
    return parse_timestamp(value)


def _atom_text(parent: ET.Element, name: str) -> str:
    """Text of the first *name* element; ``type="xhtml"`` content keeps its markup."""
    el = first(parent, name)
    if el is None:
        return ""
    if xml_attr(el, "type").lower() == "xhtml":
        return inner_xml(first(el, "div"))
    return text(el)


_ATOM_IMAGE_TYPES: frozenset[str] = settings.ALLOWED_IMAGE_TYPES | {"image/jpe"}


class AtomParser(FeedParser):
    name = "atom"

    def parse_source(self, root: ET.Element, resource: Resource) -> Resource:
        subtitle = child_text(root, "subtitle")
        updated = try_parse_iso8601(child_text(root, "updated"))
        return Resource(
            source_link=resource.source_link,
            entries=resource.entries,
            title=child_text(root, "title"),
            subtitle=subtitle,
            description=subtitle or child_text(root, "tagline"),
            updated_timestamp=to_millis(updated),
            rights=child_text(root, "rights"),
        )

    def parse_entries(self, root: ET.Element, base: str, cleaner: ContentCleaner | None) -> list[Entry]:
        return [self.parse_entry(el, base, cleaner) for el in descendants(root, "entry")]

    def parse_entry(self, el: ET.Element, base: str, cleaner: ContentCleaner | None) -> Entry:
        canonical = ""
        for link in descendants(el, "link"):
            href = xml_attr(link, "href")
            if href and xml_attr(link, "rel").lower() == "alternate":
                canonical = href
                break
        for orig in descendants(el, "feedburner:origLink"):
            if text(orig):
                canonical = text(orig)
                break

        published = _atom_time(first_text(el, "published")) or _atom_time(first_text(el, "issued"))
        updated = _atom_time(first_text(el, "updated"))
        if updated and not published:
            published = updated

        authors: tuple[Author, ...] = ()
        for author in descendants(el, "author"):
            name = child_text(author, "name")
            if name:
                authors = (Author(name=name, email=child_text(author, "email")),)
                break

        tags: dict[str, None] = {}
        for category in descendants(el, "category"):
            term = xml_attr(category, "term") or xml_attr(category, "label")
            if term:
                tags.setdefault(term, None)

        images: list[Image] = []
        for link in descendants(el, "link"):
            if xml_attr(link, "rel").lower() != "enclosure":
                continue
            if xml_attr(link, "type").lower() not in _ATOM_IMAGE_TYPES:
                continue
            href = xml_attr(link, "href")
            if href.startswith(("http://", "https://")):
                images.append(Image(link=href))

        content = _atom_text(el, "content")
        entry = Entry(
            id=child_text(el, "id"),
            title=normalize_space(_atom_text(el, "title")),
            summary=_atom_text(el, "summary"),
            canonical_link=canonical,
            published_timestamp=published,
            updated_timestamp=updated,
            authors=authors,
            tags=tuple(tags),
            rights=child_text(el, "rights"),
            citations=citations_from(content) if content else (),
        )
        entry = clean_entry_content(entry, content, base, cleaner)
        if images:
            entry = entry.with_images(images)
        return entry


def parse_feed(
    content: str,
    source_link: str = "",
    cleaner: ContentCleaner | None = None,
) -> ParseResult:
    """Parse RSS/RDF or Atom, choosing the parser from the root element."""
    try:
        root = parse_xml(content)
    except Exception as exc:
        logger.warning("Feed XML parse failed for %s: %s", source_link or "<content>", exc)
        return ParseResult.failure("feed", "Parse Failure", exc)
    parser: FeedParser = AtomParser() if matches(root, "feed") else RSSParser()
    return parser.parse(content, source_link, cleaner)
