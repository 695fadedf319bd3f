"""Anchor, ``<link>`` and self-link extraction from HTML documents."""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from contentnorm.extractors.dom import attr, element_text, first_attr, first_element_text, select_by_attr
from contentnorm.extractors.urlnorm import absolute_url
from contentnorm.items import Anchor, Link

# Elements whose href names the document itself
CANONICAL_LINK_RULES: tuple[tuple[str, str, str], ...] = (("link", "rel", "canonical"),)
ALT_LINK_RULES: tuple[tuple[str, str, str], ...] = (("link", "rel", "shortlink"),)
URL_META_RULES: tuple[tuple[str, str, str], ...] = (
    ("meta", "property", "og:url"),
    ("meta", "name", "twitter:url"),
    ("meta", "name", "parsely-link"),
)


def _self_link(href: str) -> Link:
    return Link(href=href, rel="self", type="text/html")


def anchors(soup: BeautifulSoup | Tag, base: str = "") -> tuple[Anchor, ...]:
    """Every ``<a href>`` resolved against *base*, deduplicated in document order.

    Hrefs that do not resolve to an absolute URL are skipped.
    """
    found: dict[Anchor, None] = {}
    for el in soup.find_all("a"):
        href = absolute_url(base, attr(el, "href"))
        if not href:
            continue
        found.setdefault(Anchor(href=href, title=attr(el, "title"), anchor_text=element_text(el)), None)
    return tuple(found)


def links(soup: BeautifulSoup | Tag, base: str = "") -> tuple[Link, ...]:
    """Every ``<link href>`` resolved against *base*, deduplicated in document order."""
    found: dict[Link, None] = {}
    for el in soup.find_all("link"):
        href = absolute_url(base, attr(el, "href"))
        if not href:
            continue
        link = Link(href=href, rel=attr(el, "rel"), type=attr(el, "type"), title=attr(el, "title"))
        found.setdefault(link, None)
    return tuple(found)


def self_links(
    soup: BeautifulSoup | Tag,
    aux: Tag | None = None,
    default_link: str = "",
) -> tuple[Link, ...]:
    """Links under which the document itself is published.

    Collected from the canonical link, the short link, the URL meta tags,
    the auxiliary metadata ``link`` and finally *default_link*.  All are
    typed ``self`` / ``text/html``.
    """
    hrefs: list[str] = []
    for tag, key, value in CANONICAL_LINK_RULES + ALT_LINK_RULES:
        hrefs.append(first_attr(select_by_attr(soup, tag, key, value), "href"))
    for tag, key, value in URL_META_RULES:
        hrefs.append(first_attr(select_by_attr(soup, tag, key, value), "content"))
    hrefs.append(first_element_text(aux, "link"))
    hrefs.append(default_link.strip())

    found: dict[Link, None] = {}
    for href in hrefs:
        if href:
            found.setdefault(_self_link(href), None)
    return tuple(found)
