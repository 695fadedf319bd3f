"""Deterministic metadata resolution from HTML.

Each field is resolved by walking an ordered candidate table; the first
non-empty (and, for authors, valid) value wins.  Precedence, highest first:

    title        aux title/headline -> OG/Twitter/Parse.ly/Sailthru/DC meta -> <title>
    author       aux author/creator/byline -> author meta tags -> byline elements
    canonical    link[rel=canonical] -> og:url/twitter:url/parsely-link -> aux link/url
    publish time aux pub_date/published_date/dateCreated -> date meta tags -> itemprop elements
    media        og:* groups -> aux image -> image meta tags -> body <img>/<video>/<audio>

"aux" is the auxiliary tree built from embedded JSON
(:func:`~contentnorm.extractors.jsontree.build_aux_metadata`).  Nothing in
this module raises for missing or malformed data.
"""

from __future__ import annotations

import logging
import unicodedata
from datetime import datetime
from typing import NamedTuple

from bs4 import BeautifulSoup, Tag

from contentnorm import settings
from contentnorm.extractors import links as link_extractor
from contentnorm.extractors.dates import parse_datetime, parse_lenient
from contentnorm.extractors.dom import (
    attr,
    body_of,
    child_elements,
    element_text,
    first_attr,
    first_descendant,
    first_element_text,
    own_text,
    select_by_attr,
)
from contentnorm.extractors.jsontree import build_aux_metadata
from contentnorm.extractors.urlnorm import absolute_url, host
from contentnorm.items import Audio, DataURI, Image, Page, Video

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """A candidate value was rejected (e.g. a URL offered as an author name)."""


# ---------------------------------------------------------------------------
# Candidate rules
# ---------------------------------------------------------------------------

class MetaRule(NamedTuple):
    """``<meta key=value>``, read from its ``content`` attribute."""

    key: str
    value: str

    def select(self, soup: BeautifulSoup | Tag) -> list[Tag]:
        return select_by_attr(soup, "meta", self.key, self.value)

    def read(self, soup: BeautifulSoup | Tag) -> str:
        return first_attr(self.select(soup), "content")

    def __str__(self) -> str:
        return f"meta[{self.key}={self.value}]"


class ElementRule(NamedTuple):
    """``tag[key=value]``, read from the text of the first match."""

    tag: str
    key: str
    value: str

    def select(self, soup: BeautifulSoup | Tag) -> list[Tag]:
        return select_by_attr(soup, self.tag, self.key, self.value)

    def read(self, soup: BeautifulSoup | Tag) -> str:
        matches = self.select(soup)
        return element_text(matches[0]) if matches else ""

    def __str__(self) -> str:
        return f"{self.tag}[{self.key}={self.value}]"


TITLE_AUX_FIELDS = ("title", "headline")
TITLE_META_RULES: tuple[MetaRule, ...] = (
    MetaRule("property", "og:title"),
    MetaRule("name", "twitter:title"),
    MetaRule("name", "parsely-title"),
    MetaRule("name", "sailthru.title"),
    MetaRule("name", "title"),
    MetaRule("property", "dc:title"),
)

SUMMARY_META_RULES: tuple[MetaRule, ...] = (
    MetaRule("name", "twitter:description"),
    MetaRule("name", "description"),
    MetaRule("itemprop", "description"),
    MetaRule("property", "og:description"),
    MetaRule("name", "sailthru.description"),
)

AUTHOR_AUX_FIELDS = ("creator", "byline", "author_name", "author_nickname")
AUTHOR_META_RULES: tuple[MetaRule, ...] = (
    MetaRule("name", "Author"),
    MetaRule("name", "author"),
    MetaRule("name", "dc.creator"),
    MetaRule("itemprop", "name"),
    MetaRule("property", "author"),
    MetaRule("property", "article:author"),
    MetaRule("property", "article:authorName"),
    MetaRule("name", "parsely-author"),
    MetaRule("name", "sailthru.author"),
    MetaRule("name", "twitter:creator"),
    MetaRule("property", "byline"),
)
AUTHOR_ELEMENT_RULES: tuple[ElementRule, ...] = (
    ElementRule("a", "itemprop", "author"),
    ElementRule("span", "itemprop", "author"),
    ElementRule("a", "rel", "author"),
    ElementRule("span", "property", "dc:creator"),
    ElementRule("div", "property", "dc:creator"),
)

CANONICAL_LINK_RULES: tuple[tuple[str, str, str], ...] = link_extractor.CANONICAL_LINK_RULES
CANONICAL_META_RULES: tuple[MetaRule, ...] = tuple(
    MetaRule(key, value) for _, key, value in link_extractor.URL_META_RULES
)
CANONICAL_AUX_FIELDS = ("link", "url")

SITE_NAME_META_RULES: tuple[MetaRule, ...] = (
    MetaRule("property", "og:site_name"),
    MetaRule("name", "og:site_name"),
    MetaRule("property", "dc.publisher"),
)

PUBLISH_TIME_AUX_FIELDS = ("pub_date", "published_date", "dateCreated")
PUBLISH_TIME_META_RULES: tuple[MetaRule, ...] = (
    MetaRule("property", "article:published_time"),
    MetaRule("property", "og:article:published_time"),
    MetaRule("property", "pubDate"),
    MetaRule("name", "parsely-pub-date"),
    MetaRule("itemprop", "datePublished"),
    MetaRule("property", "st:published_at"),
    MetaRule("name", "publish-date"),
    MetaRule("name", "publish_date"),
    MetaRule("property", "og:updated_time"),
    MetaRule("name", "ptime"),
    MetaRule("property", "article:published"),
    MetaRule("name", "sailthru.date"),
    MetaRule("name", "date"),
    MetaRule("name", "dcterms.date"),
    MetaRule("name", "dc.date"),
)
PUBLISH_TIME_ELEMENT_RULES: tuple[ElementRule, ...] = (
    ElementRule("span", "itemprop", "datePublished"),
    ElementRule("a", "itemprop", "datePublished"),
    ElementRule("time", "itemprop", "datePublished"),
)

IMAGE_AUX_FIELDS = ("image_url", "image")
IMAGE_META_RULES: tuple[MetaRule, ...] = (
    MetaRule("name", "twitter:image"),
    MetaRule("name", "twitter:image:src"),
    MetaRule("name", "parsely-image-url"),
    MetaRule("name", "thumbnail"),
    MetaRule("name", "sailthru.image.thumb"),
)


def _first_aux(aux: Tag | None, fields: tuple[str, ...]) -> str:
    for name in fields:
        value = first_element_text(aux, name)
        if value:
            return value
    return ""


def _first_meta(soup: BeautifulSoup | Tag, rules: tuple[MetaRule, ...]) -> str:
    for rule in rules:
        value = rule.read(soup)
        if value:
            return value
    return ""


# ---------------------------------------------------------------------------
# Scalar fields
# ---------------------------------------------------------------------------

def best_title(soup: BeautifulSoup, aux: Tag | None = None) -> str:
    title = _first_aux(aux, TITLE_AUX_FIELDS) or _first_meta(soup, TITLE_META_RULES)
    if title:
        return title
    title_tag = soup.find("title")
    return element_text(title_tag) if isinstance(title_tag, Tag) else ""


def best_summary(soup: BeautifulSoup) -> str:
    return _first_meta(soup, SUMMARY_META_RULES)


def best_site_name(soup: BeautifulSoup) -> str:
    return _first_meta(soup, SITE_NAME_META_RULES)


def _count_spaces(text: str) -> int:
    return sum(1 for ch in text if unicodedata.category(ch) in ("Zs", "Zl", "Zp"))


def validate_author(name: str) -> str:
    """Return *name* if it looks like a byline; raise :class:`ValidationError` otherwise.

    Rejected: empty values, URLs, and anything with three or more spaces
    (usually a sentence captured by mistake).
    """
    if not name:
        raise ValidationError("Empty author")
    if name.startswith(("http://", "https://")):
        raise ValidationError(f"Author looks like a URL: {name!r}")
    if _count_spaces(name) >= 3:
        raise ValidationError(f"Author has too many words: {name!r}")
    return name


def is_valid_author(name: str) -> bool:
    try:
        validate_author(name)
    except ValidationError:
        return False
    return True


def _author_candidates(soup: BeautifulSoup, aux: Tag | None):
    author_el = first_descendant(aux, "author")
    if author_el is not None and child_elements(author_el):
        yield first_element_text(author_el, "name")
    else:
        yield own_text(author_el)
    for name in AUTHOR_AUX_FIELDS:
        yield first_element_text(aux, name)
    for meta_rule in AUTHOR_META_RULES:
        yield meta_rule.read(soup)
    body = body_of(soup)
    for element_rule in AUTHOR_ELEMENT_RULES:
        yield element_rule.read(body)


def best_author(soup: BeautifulSoup, aux: Tag | None = None) -> str:
    for candidate in _author_candidates(soup, aux):
        try:
            return validate_author(candidate)
        except ValidationError as exc:
            if candidate:
                logger.debug("Skipping author candidate: %s", exc)
    return ""


def best_canonical_link(soup: BeautifulSoup, aux: Tag | None = None, base: str = "") -> str:
    """Canonical URL of the document; relative values resolve against *base*."""
    for tag, key, value in CANONICAL_LINK_RULES:
        for el in select_by_attr(soup, tag, key, value):
            href = absolute_url(base, attr(el, "href"))
            if href:
                return href
    for rule in CANONICAL_META_RULES:
        for el in rule.select(soup):
            href = absolute_url(base, attr(el, "content"))
            if href:
                return href
    for name in CANONICAL_AUX_FIELDS:
        link = first_element_text(aux, name)
        if link.startswith(("http://", "https://")):
            return link
    return ""


def best_publish_time(soup: BeautifulSoup, aux: Tag | None = None) -> datetime | None:
    """First candidate that parses as ISO-8601 or RFC-822.

    With ``settings.LENIENT_DATES`` enabled, element text that fails strict
    parsing is retried with :func:`~contentnorm.extractors.dates.parse_lenient`.
    """
    parsed = parse_datetime(_first_aux(aux, PUBLISH_TIME_AUX_FIELDS))
    if parsed:
        return parsed

    for meta_rule in PUBLISH_TIME_META_RULES:
        parsed = parse_datetime(meta_rule.read(soup))
        if parsed:
            return parsed

    texts = [element_rule.read(soup) for element_rule in PUBLISH_TIME_ELEMENT_RULES]
    for text in texts:
        parsed = parse_datetime(text)
        if parsed:
            return parsed

    if settings.LENIENT_DATES:
        for text in texts:
            parsed = parse_lenient(text)
            if parsed:
                return parsed
    return None


# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------

def _to_int(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return 0


def og_groups(soup: BeautifulSoup | Tag, kind: str, base: str = "") -> list[tuple[str, dict[str, str]]]:
    """Open Graph ``og:<kind>`` groups as ``(link, properties)`` pairs.

    The primary tag is ``property=og:<kind>``, else ``property=og:<kind>:url``,
    else ``name=og:<kind>``.  Its structured properties are the immediately
    following sibling tags keyed ``og:<kind>:*``, up to the next
    ``og:<kind>:url``: ``og:image:width`` becomes ``{"width": ...}``.
    """
    prefix = f"og:{kind}"
    for key, value in (("property", prefix), ("property", f"{prefix}:url"), ("name", prefix)):
        primaries = select_by_attr(soup, "meta", key, value)
        if primaries:
            break
    else:
        return []

    groups: list[tuple[str, dict[str, str]]] = []
    for el in primaries:
        link = absolute_url(base, attr(el, "content"))
        if not link:
            continue
        props: dict[str, str] = {}
        sibling = el.find_next_sibling()
        while isinstance(sibling, Tag):
            name = attr(sibling, key)
            if name == f"{prefix}:url" or not name.startswith(f"{prefix}:"):
                break
            props[name[len(prefix) + 1:]] = attr(sibling, "content")
            sibling = sibling.find_next_sibling()
        groups.append((link, props))
    return groups


def meta_images(soup: BeautifulSoup, aux: Tag | None = None, base: str = "") -> list[Image]:
    """Images named by document metadata, deduplicated, in precedence order."""
    found: dict[Image, None] = {}
    for link, props in og_groups(soup, "image", base):
        image = Image(
            link=link,
            alt_text=props.get("alt", ""),
            width=_to_int(props.get("width", "")),
            height=_to_int(props.get("height", "")),
        )
        found.setdefault(image, None)

    src = _first_aux(aux, IMAGE_AUX_FIELDS)
    if src:
        found.setdefault(Image(link=src), None)

    for rule in IMAGE_META_RULES:
        src = rule.read(soup)
        if src:
            found.setdefault(Image(link=src), None)
    return list(found)


def meta_videos(soup: BeautifulSoup, base: str = "") -> list[Video]:
    found: dict[Video, None] = {}
    for link, props in og_groups(soup, "video", base):
        video = Video(
            link=link,
            media_type=props.get("type", ""),
            width=_to_int(props.get("width", "")),
            height=_to_int(props.get("height", "")),
        )
        found.setdefault(video, None)
    return list(found)


def meta_audios(soup: BeautifulSoup, base: str = "") -> list[Audio]:
    found: dict[Audio, None] = {}
    for link, props in og_groups(soup, "audio", base):
        found.setdefault(Audio(link=link, media_type=props.get("type", "")), None)
    return list(found)


def _body_image(el: Tag, base: str) -> Image | None:
    src = attr(el, "src")
    if not src:
        return None
    if src.startswith("data:image"):
        try:
            data_uri = DataURI.parse(src)
        except ValueError as exc:
            logger.debug("Skipping image with invalid data URI: %s", exc)
            return None
        if not (data_uri.base64_encoded and data_uri.data):
            return None
        return Image(link=src, media_type=data_uri.media_type)
    link = absolute_url(base, src)
    if not link:
        return None
    return Image(
        link=link,
        alt_text=attr(el, "alt"),
        title=attr(el, "title"),
        width=_to_int(attr(el, "width")),
        height=_to_int(attr(el, "height")),
    )


def body_images(soup: BeautifulSoup | Tag, base: str = "") -> list[Image]:
    found: dict[Image, None] = {}
    for el in soup.find_all("img"):
        image = _body_image(el, base)
        if image is not None:
            found.setdefault(image, None)
    return list(found)


def body_videos(soup: BeautifulSoup | Tag, base: str = "") -> list[Video]:
    """``<video><source src>`` elements; the video's own text is the alt text."""
    found: dict[Video, None] = {}
    for el in soup.find_all("video"):
        for source in el.find_all("source"):
            link = absolute_url(base, attr(source, "src"))
            if not link:
                continue
            video = Video(
                link=link,
                title=attr(el, "title"),
                alt_text=own_text(el),
                width=_to_int(attr(el, "width")),
                height=_to_int(attr(el, "height")),
                media_type=attr(source, "type"),
            )
            found.setdefault(video, None)
    return list(found)


def body_audios(soup: BeautifulSoup | Tag, base: str = "") -> list[Audio]:
    found: dict[Audio, None] = {}
    for el in soup.find_all("audio"):
        for source in el.find_all("source"):
            link = absolute_url(base, attr(source, "src"))
            if not link:
                continue
            audio = Audio(
                link=link,
                title=attr(el, "title"),
                alt_text=own_text(el),
                media_type=attr(source, "type"),
            )
            found.setdefault(audio, None)
    return list(found)


def _merge(*groups: list) -> tuple:
    merged: dict = {}
    for group in groups:
        for item in group:
            merged.setdefault(item, None)
    return tuple(merged)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def _twitter_author(title: str) -> str:
    end = title.lower().rfind("on twitter")
    return title[:end].strip() if end > 0 else ""


def resolve_metadata(
    soup: BeautifulSoup,
    aux: Tag | None = None,
    source_link: str = "",
) -> Page:
    """Resolve every :class:`~contentnorm.items.Page` field from *soup*.

    Args:
        soup:        Parsed HTML document.  Not modified.
        aux:         Auxiliary metadata tree; built from *soup* when omitted.
        source_link: URL the document was fetched from.  Used as the
                     canonical link when none is declared and as the base
                     for relative URLs.
    """
    if aux is None:
        aux = build_aux_metadata(soup)

    canonical = best_canonical_link(soup, aux, source_link) or source_link
    base = canonical

    image_meta = meta_images(soup, aux, base)
    video_meta = meta_videos(soup, base)
    audio_meta = meta_audios(soup, base)

    title = best_title(soup, aux)
    author = ""
    if host(canonical) == "twitter.com":
        author = _twitter_author(title)
    if not author:
        author = best_author(soup, aux)

    page = Page(
        canonical_link=canonical,
        self_links=link_extractor.self_links(soup, aux, source_link),
        site_name=best_site_name(soup),
        title=title,
        summary=best_summary(soup),
        author=author,
        publish_time=best_publish_time(soup, aux),
        anchors=link_extractor.anchors(soup, base),
        images=_merge(image_meta, body_images(soup, base)),
        meta_images=tuple(image_meta),
        videos=_merge(video_meta, body_videos(soup, base)),
        meta_videos=tuple(video_meta),
        audios=_merge(audio_meta, body_audios(soup, base)),
        meta_audios=tuple(audio_meta),
        all_links=link_extractor.links(soup, base),
    )
    logger.debug(
        "Resolved metadata for %s: title=%r author=%r images=%d",
        canonical or "<unknown>", page.title, page.author, len(page.images),
    )
    return page
