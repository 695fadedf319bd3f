"""Safelist-based HTML sanitizing.

Pipeline applied by :class:`DefaultContentCleaner` (in this order):

    1. protocol-relative links (``//host/x``) get the document protocol
    2. ``mailto:`` anchors become ``<q class="mailto" cite="mailto:...">``
    3. images: no src -> removed; otherwise a ``<q class="image">`` marker
       is inserted before them (unless images are kept)
    4. iframes: no src -> removed; otherwise a ``<q class="iframe">`` marker
    5. Twitter embed blockquotes get ``cite`` = the tweet status URL
    6. safelist enforcement (:func:`clean`)

Safelist enforcement unwraps disallowed elements (their children are
promoted in place), drops the subtree of data-only elements such as
``<script>``, strips disallowed attributes and strips URI attributes whose
protocol is not allowed.  It mutates the tree it is given; pass a
:func:`~contentnorm.extractors.dom.clone` when the original is still needed.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from bs4 import BeautifulSoup, Tag

from contentnorm.extractors import safelist as safelists
from contentnorm.extractors.dom import attr, body_of, inner_html, is_text, new_tag, safe_str
from contentnorm.extractors.safelist import Safelist
from contentnorm.extractors.urlnorm import absolute_url

logger = logging.getLogger(__name__)


class SanitizationInvariantViolation(AssertionError):
    """A tag, attribute or protocol escaped the safelist.

    Never raised by the sanitizer itself; :func:`assert_safe` raises it so
    tests (and paranoid callers) can verify the output.
    """

    def __init__(self, violations: list[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = violations


# ---------------------------------------------------------------------------
# Safelist enforcement
# ---------------------------------------------------------------------------

def _clean_attributes(el: Tag, allowed: Safelist, base_uri: str) -> None:
    name = el.name.lower()
    for key in list(el.attrs):
        if not allowed.is_safe_attribute(name, key):
            del el[key]
            continue
        if allowed.protocols_for(name, key) is None:
            continue
        value = safe_str(el.get(key)).strip()
        resolved = absolute_url(base_uri, value) if base_uri else value
        if resolved and allowed.is_valid_protocol(name, key, resolved):
            el[key] = resolved
        else:
            del el[key]


def _clean_children(parent: Tag, allowed: Safelist, base_uri: str) -> None:
    for child in list(parent.children):
        if isinstance(child, Tag):
            name = child.name.lower()
            if allowed.is_safe_tag(name):
                _clean_children(child, allowed, base_uri)
                _clean_attributes(child, allowed, base_uri)
            elif name in allowed.remove_content:
                child.decompose()
            else:
                _clean_children(child, allowed, base_uri)
                child.unwrap()
        elif not is_text(child):
            # comments, doctypes, CDATA, processing instructions, script text
            child.extract()


def clean(root: Tag, allowed: Safelist, base_uri: str = "") -> Tag:
    """Enforce *allowed* on every descendant of *root* (in place).

    *root* itself is treated as a container and left untouched.
    """
    _clean_children(root, allowed, base_uri)
    return root


def find_violations(root: Tag, allowed: Safelist) -> list[str]:
    """Describe every tag, attribute or protocol below *root* not in *allowed*."""
    problems: list[str] = []
    for el in root.find_all(True):
        name = el.name.lower()
        if not allowed.is_safe_tag(name):
            problems.append(f"tag <{name}>")
            continue
        for key, value in el.attrs.items():
            if not allowed.is_safe_attribute(name, key):
                problems.append(f"attribute {name}[{key}]")
            elif not allowed.is_valid_protocol(name, key, safe_str(value)):
                problems.append(f"protocol {name}[{key}={safe_str(value)!r}]")
    for node in root.descendants:
        if not isinstance(node, Tag) and not is_text(node):
            problems.append(f"node {type(node).__name__}")
    return problems


def assert_safe(root: Tag, allowed: Safelist) -> None:
    violations = find_violations(root, allowed)
    if violations:
        raise SanitizationInvariantViolation(violations)


# ---------------------------------------------------------------------------
# Pre-sanitizing transforms
# ---------------------------------------------------------------------------

def document_protocol(base_uri: str | None) -> str:
    """``"https:"`` for https base URIs, else ``"http:"``."""
    return "https:" if (base_uri or "").strip().startswith("https:") else "http:"


def _marker(name: str, cite: str, css_class: str) -> Tag:
    return new_tag(name, {"cite": cite, "class": css_class})


def _has_marker(el: Tag, cite: str, css_class: str) -> bool:
    """True if *el* is already preceded by its citation marker."""
    prev = el.previous_sibling
    return (
        isinstance(prev, Tag)
        and prev.name == "q"
        and attr(prev, "class") == css_class
        and attr(prev, "cite") == cite
    )


def massage_links(root: Tag, protocol: str) -> int:
    """Repair protocol-relative links and neutralize ``mailto:`` anchors."""
    modified = 0
    for anchor in root.find_all("a"):
        href = attr(anchor, "href")
        if href.startswith("//"):
            anchor["href"] = protocol + href
            modified += 1
        elif href.startswith("mailto:"):
            anchor.name = "q"
            del anchor["href"]
            anchor["cite"] = href
            anchor["class"] = "mailto"
            modified += 1
    for el in root.find_all(attrs={"cite": True}):
        cite = attr(el, "cite")
        if cite.startswith("//"):
            el["cite"] = protocol + cite
            modified += 1
    return modified


def mark_images(root: Tag, protocol: str, with_images: bool = False) -> int:
    """Drop ``<img>`` without src; mark the rest with a ``q.image`` citation."""
    count = 0
    for image in root.find_all("img"):
        src = attr(image, "src")
        if not src:
            image.decompose()
            count += 1
            continue
        if with_images:
            continue
        if src.startswith("//"):
            src = protocol + src
        if _has_marker(image, src, "image"):
            continue
        marker = _marker("q", src, "image")
        alt = safe_str(image.get("alt"))
        title = safe_str(image.get("title"))
        if alt:
            marker["alt"] = alt
        if title:
            marker["title"] = title
        image.insert_before(marker)
        count += 1
    return count


def mark_embeds(root: Tag, protocol: str) -> int:
    """Drop ``<iframe>`` without src; mark the rest with a ``q.iframe`` citation."""
    modified = 0
    for iframe in root.find_all("iframe"):
        src = attr(iframe, "src")
        if not src:
            iframe.decompose()
        else:
            if src.startswith("//"):
                src = protocol + src
            if _has_marker(iframe, src, "iframe"):
                continue
            iframe.insert_before(_marker("q", src, "iframe"))
        modified += 1
    return modified


def mark_twitter_blockquotes(root: Tag) -> int:
    modified = 0
    for quote in root.select("blockquote.twitter-tweet"):
        for anchor in quote.find_all("a"):
            href = attr(anchor, "href")
            if href.startswith("https://twitter.com/") and "/status/" in href:
                quote["cite"] = href
                modified += 1
                break
    return modified


# ---------------------------------------------------------------------------
# Cleaners
# ---------------------------------------------------------------------------

@runtime_checkable
class ContentCleaner(Protocol):
    """Turns a parsed document into sanitized content."""

    def transform(self, soup: BeautifulSoup) -> BeautifulSoup:
        """Sanitize *soup* in place and return it."""
        ...

    def to_clean_content(self, soup: BeautifulSoup) -> str:
        """Render the main content of an already transformed document."""
        ...


def _content_root(soup: BeautifulSoup | Tag) -> Tag:
    body = body_of(soup)
    main = body.find("main") or body.find("article")
    return main if isinstance(main, Tag) else body


def render(tree: Tag) -> str:
    """Inner HTML of the document body (or of *tree* for fragments), trimmed."""
    return inner_html(body_of(tree)).strip()


def sanitize(
    tree: BeautifulSoup | Tag,
    allowed: Safelist | None = None,
    base_uri: str = "",
    with_images: bool = False,
) -> BeautifulSoup | Tag:
    """Apply the transforms and safelist enforcement to *tree* in place."""
    if allowed is None:
        allowed = safelists.content_with_images() if with_images else safelists.content()
    protocol = document_protocol(base_uri)

    head = tree.find("head")
    if isinstance(head, Tag):
        head.decompose()
    root = body_of(tree)

    massage_links(root, protocol)
    mark_images(root, protocol, with_images)
    mark_embeds(root, protocol)
    mark_twitter_blockquotes(root)
    clean(root, allowed, base_uri)
    return tree


class DefaultContentCleaner:
    """Transforms, then enforces the content safelist.

    Args:
        allowed:     Safelist to enforce.  Defaults to
                     :func:`~contentnorm.extractors.safelist.content`, or
                     :func:`~contentnorm.extractors.safelist.content_with_images`
                     when *with_images* is set.
        with_images: Keep ``<img>`` elements instead of replacing them with
                     citation markers.
        base_uri:    Used for the protocol of ``//`` links and to resolve
                     relative URIs.  Defaults to the document's own base.
    """

    def __init__(
        self,
        allowed: Safelist | None = None,
        with_images: bool = False,
        base_uri: str = "",
    ) -> None:
        self.with_images = with_images
        self.allowed = allowed or (
            safelists.content_with_images() if with_images else safelists.content()
        )
        self.base_uri = base_uri

    @classmethod
    def from_properties(cls, props: dict[str, str]) -> DefaultContentCleaner:
        """Build from string properties (``{"withImages": "true"}``)."""
        with_images = str(props.get("withImages", "false")).lower() == "true"
        return cls(with_images=with_images)

    def _base_uri(self, soup: BeautifulSoup) -> str:
        if self.base_uri:
            return self.base_uri
        base = soup.find("base")
        return attr(base, "href") if isinstance(base, Tag) else ""

    def transform(self, soup: BeautifulSoup) -> BeautifulSoup:
        base_uri = self._base_uri(soup)
        sanitize(soup, self.allowed, base_uri, self.with_images)
        logger.debug("Sanitized document (base=%r, images=%s)", base_uri, self.with_images)
        return soup

    def to_clean_content(self, soup: BeautifulSoup) -> str:
        return inner_html(_content_root(soup)).strip()


class NoopContentCleaner:
    """Leaves the document untouched; renders the body as-is."""

    def transform(self, soup: BeautifulSoup) -> BeautifulSoup:
        return soup

    def to_clean_content(self, soup: BeautifulSoup) -> str:
        return inner_html(body_of(soup))


NOOP = NoopContentCleaner()


class DefaultAMPCleaner:
    """Rewrites AMP media elements, then cleans like :class:`DefaultContentCleaner`.

    ``amp-img`` becomes ``img``; an ``amp-video`` with a poster gets an
    ``img`` of that poster right after it (sized only when both width and
    height are known).  Images are kept.
    """

    def __init__(self, base_uri: str = "") -> None:
        self._cleaner = DefaultContentCleaner(with_images=True, base_uri=base_uri)

    def transform(self, soup: BeautifulSoup) -> BeautifulSoup:
        for image in soup.find_all("amp-img"):
            image.name = "img"
        for video in soup.find_all("amp-video"):
            poster = attr(video, "poster")
            if not poster:
                continue
            image = new_tag("img", {"src": poster})
            width, height = attr(video, "width"), attr(video, "height")
            if width and height:
                image["width"] = width
                image["height"] = height
            video.insert_after(image)
        return self._cleaner.transform(soup)

    def to_clean_content(self, soup: BeautifulSoup) -> str:
        return self._cleaner.to_clean_content(soup)
