"""Shared helpers for the format parsers.

XML documents are read with ``defusedxml.ElementTree``.  Element names are
matched on their local name, case-insensitively; a prefixed name such as
``"dc:creator"`` additionally requires the namespace registered for that
prefix in :data:`NAMESPACES`.
"""

from __future__ import annotations

import copy
import logging
import xml.etree.ElementTree as ET  # for type hints and serialization only
from collections.abc import Iterator
from typing import Protocol, runtime_checkable

import defusedxml.ElementTree as defused_ET

from contentnorm.extractors.dom import attr, normalize_space, parse_html
from contentnorm.extractors.sanitizer import ContentCleaner
from contentnorm.extractors.urlnorm import http_url
from contentnorm.items import Entry, Image, Link
from contentnorm.result import ParseResult

logger = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"
RSS1_NS = "http://purl.org/rss/1.0/"
XHTML_NS = "http://www.w3.org/1999/xhtml"

NAMESPACES: dict[str, tuple[str, ...]] = {
    "atom": (ATOM_NS,),
    "content": ("http://purl.org/rss/1.0/modules/content/",),
    "dc": ("http://purl.org/dc/elements/1.1/", "http://purl.org/dc/terms/"),
    "feedburner": ("http://rssnamespace.org/feedburner/ext/1.0",),
    "g": ("http://base.google.com/ns/1.0",),
    "media": ("http://search.yahoo.com/mrss/", "http://search.yahoo.com/mrss"),
    "rdf": ("http://www.w3.org/1999/02/22-rdf-syntax-ns#",),
    # RSS elements proper: no namespace (2.0) or the RSS 1.0 namespace, never Atom
    "rss": ("", RSS1_NS),
    "sitemap": ("http://www.sitemaps.org/schemas/sitemap/0.9",),
}

# Namespaces treated as "no prefix"
_DEFAULT_NAMESPACES = ("", ATOM_NS, RSS1_NS, XHTML_NS, *NAMESPACES["sitemap"])


@runtime_checkable
class Parser(Protocol):
    """A format parser: raw text in, :class:`~contentnorm.result.ParseResult` out."""

    name: str

    def parse(
        self,
        content: str,
        source_link: str = "",
        cleaner: ContentCleaner | None = None,
    ) -> ParseResult:
        ...


# ---------------------------------------------------------------------------
# XML
# ---------------------------------------------------------------------------

def parse_xml(content: str) -> ET.Element:
    """Parse *content* with entity-expansion and external-entity protection."""
    return defused_ET.fromstring(content.lstrip("\ufeff").strip())


def split_name(tag: str) -> tuple[str, str]:
    """``"{uri}local"`` -> ``("uri", "local")``."""
    if tag.startswith("{"):
        uri, _, local = tag[1:].partition("}")
        return uri, local
    return "", tag


def matches(el: ET.Element, name: str) -> bool:
    if not isinstance(el.tag, str):
        return False
    uri, local = split_name(el.tag)
    prefix, _, wanted = name.rpartition(":")
    if local.lower() != wanted.lower():
        return False
    if not prefix:
        return uri in _DEFAULT_NAMESPACES
    return uri in NAMESPACES.get(prefix, ())


def children(parent: ET.Element | None, name: str) -> list[ET.Element]:
    if parent is None:
        return []
    return [el for el in parent if matches(el, name)]


def descendants(parent: ET.Element | None, name: str) -> Iterator[ET.Element]:
    """Matching elements below *parent* (excluding *parent*), in document order."""
    if parent is None:
        return
    for el in parent.iter():
        if el is not parent and matches(el, name):
            yield el


def first(parent: ET.Element | None, name: str) -> ET.Element | None:
    return next(descendants(parent, name), None)


def first_child(parent: ET.Element | None, name: str) -> ET.Element | None:
    found = children(parent, name)
    return found[0] if found else None


def text(el: ET.Element | None) -> str:
    """All text below *el*, stripped."""
    if el is None:
        return ""
    return "".join(el.itertext()).strip()


def first_text(parent: ET.Element | None, name: str) -> str:
    return text(first(parent, name))


def child_text(parent: ET.Element | None, name: str) -> str:
    return normalize_space(text(first_child(parent, name)))


def xml_attr(el: ET.Element | None, name: str) -> str:
    """Attribute by local name (``"rdf:resource"`` matches ``{rdf-uri}resource``)."""
    if el is None:
        return ""
    wanted = name.rpartition(":")[2].lower()
    for key, value in el.attrib.items():
        if split_name(key)[1].lower() == wanted:
            return (value or "").strip()
    return ""


def _strip_namespaces(el: ET.Element) -> ET.Element:
    el = copy.deepcopy(el)
    for node in el.iter():
        if isinstance(node.tag, str):
            node.tag = split_name(node.tag)[1]
        node.attrib = {split_name(k)[1]: v for k, v in node.attrib.items()}
    return el


def inner_xml(el: ET.Element | None) -> str:
    """Markup of *el*'s content, namespace prefixes removed."""
    if el is None:
        return ""
    el = _strip_namespaces(el)
    parts = [el.text or ""]
    parts.extend(ET.tostring(child, encoding="unicode", method="html") for child in el)
    return "".join(parts).strip()


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

def clean_entry_content(entry: Entry, content: str, base: str, cleaner: ContentCleaner | None) -> Entry:
    """Attach *content* to *entry*: original markup plus cleaned rendition.

    Without a *cleaner* the content is stored as-is.
    """
    if not content:
        return entry
    if cleaner is None:
        return entry.model_copy(update={"original_content": content, "clean_content": content})
    doc = parse_html(content)
    if base:
        head = doc.find("head")
        if head is None:
            head = doc.new_tag("head")
            (doc.html or doc).insert(0, head)
        head.append(doc.new_tag("base", href=base))
    clean = cleaner.to_clean_content(cleaner.transform(doc))
    return entry.model_copy(update={"original_content": content, "clean_content": clean})


def image_from(url: str, protocol: str | None, **fields) -> Image | None:
    """An :class:`Image` for http(s) or protocol-relative *url*, else ``None``."""
    link = http_url(url, protocol)
    if link is None:
        return None
    return Image(link=link, **fields)


def add_images(entry: Entry, images: list[Image]) -> Entry:
    """Append *images* (deduplicated) and set the primary image if unset."""
    merged = dict.fromkeys(entry.images)
    for image in images:
        merged.setdefault(image, None)
    primary = entry.primary_image or (next(iter(merged), None))
    return entry.model_copy(update={"images": tuple(merged), "primary_image": primary})


def citations_from(soup_or_html) -> tuple[Link, ...]:
    """Distinct absolute http(s) anchor targets in content, as citation links."""
    soup = parse_html(soup_or_html) if isinstance(soup_or_html, str) else soup_or_html
    found: dict[str, None] = {}
    for anchor in soup.find_all("a"):
        href = attr(anchor, "href")
        if href.startswith(("http://", "https://")):
            found.setdefault(href, None)
    return tuple(Link(href=href) for href in found)
