"""AMP HTML parser.

An AMP document must have a ``<head>`` with a non-empty
``link[rel=canonical]``.  Entry metadata comes from the schema.org JSON-LD
block, then from Twitter card meta tags; content is cleaned with
:class:`~contentnorm.extractors.sanitizer.DefaultAMPCleaner` unless another
cleaner is given.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from bs4 import BeautifulSoup, Tag

from contentnorm.extractors.dates import to_millis, try_parse_iso8601
from contentnorm.extractors.dom import attr, element_text, first_attr, inner_html, parse_html, safe_str, select_by_attr
from contentnorm.extractors.sanitizer import ContentCleaner, DefaultAMPCleaner
from contentnorm.items import Author, Entry, Image, Resource
from contentnorm.result import ParseError, ParseResult

logger = logging.getLogger(__name__)

_SCHEMA_CONTEXTS = frozenset({"http://schema.org", "https://schema.org", "http://schema.org/", "https://schema.org/"})


def _json_text(obj: Any, key: str) -> str:
    if not isinstance(obj, dict):
        return ""
    value = obj.get(key)
    if value is None or isinstance(value, dict | list):
        return ""
    return str(value).strip()


def _json_int(obj: dict, key: str) -> int:
    value = obj.get(key)
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _schema_org(head: Tag) -> dict | None:
    """First schema.org JSON-LD object in *head* (else the last one that decoded)."""
    found: dict | None = None
    for script in select_by_attr(head, "script", "type", "application/ld+json"):
        try:
            obj = json.loads(safe_str(script.string))
        except ValueError as exc:
            logger.debug("Skipping invalid AMP JSON-LD: %s", exc)
            continue
        if not isinstance(obj, dict):
            continue
        found = obj
        if _json_text(obj, "@context") in _SCHEMA_CONTEXTS:
            break
    return found


def _schema_images(obj: dict) -> list[Image]:
    node = obj.get("image")
    if isinstance(node, dict):
        nodes = [node]
    elif isinstance(node, list):
        nodes = node
    elif isinstance(node, str):
        nodes = [{"url": node}]
    else:
        nodes = []

    images: dict[Image, None] = {}
    for item in nodes:
        if isinstance(item, str):
            item = {"url": item}
        url = _json_text(item, "url")
        if not url:
            continue
        width, height = _json_int(item, "width"), _json_int(item, "height")
        if not (width > 0 and height > 0):
            width = height = 0
        images.setdefault(Image(link=url, width=width, height=height), None)
    return list(images)


def _schema_author(obj: dict) -> str:
    author = obj.get("author")
    if isinstance(author, list) and author:
        author = author[0]
    if isinstance(author, dict):
        return _json_text(author, "name")
    if isinstance(author, str):
        return author.strip()
    return ""


class AmpParser:
    name = "html-amp"

    def parse(
        self,
        content: str,
        source_link: str = "",
        cleaner: ContentCleaner | None = None,
    ) -> ParseResult:
        try:
            return self._parse(content, source_link, cleaner)
        except Exception as exc:
            logger.warning("AMP parse failed for %s: %s", source_link or "<content>", exc)
            return ParseResult.failure(self.name, "HTML Metadata Parser Failure", exc)

    def _error(self, message: str) -> ParseResult:
        logger.warning("Rejected AMP document: %s", message)
        return ParseResult(self.name, errors=(ParseError(message),))

    def _parse(self, content: str, source_link: str, cleaner: ContentCleaner | None) -> ParseResult:
        soup: BeautifulSoup = parse_html(content)
        head = soup.find("head")
        if not isinstance(head, Tag):
            return self._error("AMP document must have a 'head'")
        canonical_links = select_by_attr(head, "link", "rel", "canonical")
        if not canonical_links:
            return self._error("AMP document must have a canonical link")
        canonical = attr(canonical_links[0], "href")
        if not canonical:
            return self._error("AMP document must have a valid canonical link")

        title = summary = author = ""
        published = updated = 0
        images: list[Image] = []

        schema = _schema_org(head)
        if schema is not None and _json_text(schema, "@context") in _SCHEMA_CONTEXTS:
            title = _json_text(schema, "headline")
            published = to_millis(try_parse_iso8601(_json_text(schema, "datePublished")))
            updated = to_millis(try_parse_iso8601(_json_text(schema, "dateModified")))
            summary = _json_text(schema, "description")
            images = _schema_images(schema)
            author = _schema_author(schema)

        if not title:
            title = first_attr(select_by_attr(head, "meta", "name", "twitter:title"), "content")
        if not summary:
            summary = first_attr(select_by_attr(head, "meta", "name", "twitter:description"), "content")
        if not images:
            image_url = first_attr(select_by_attr(head, "meta", "name", "twitter:image"), "content")
            if image_url:
                images = [Image(link=image_url)]
        if not title:
            title_tag = head.find("title")
            title = element_text(title_tag) if isinstance(title_tag, Tag) else ""

        original = inner_html(soup.body)
        active = cleaner or DefaultAMPCleaner(base_uri=source_link)
        clean = active.to_clean_content(active.transform(soup))

        entry = Entry(
            title=title,
            summary=summary,
            canonical_link=canonical,
            published_timestamp=published,
            updated_timestamp=updated,
            authors=(Author(name=author),) if author else (),
            images=tuple(images),
            primary_image=images[0] if images else None,
            clean_content=clean,
            original_content=original,
        )
        resource = Resource(source_link=source_link, canonical_link=canonical, title=title, entries=(entry,))
        return ParseResult(self.name, resource)
