"""URL helpers: protocol repair, absolute resolution, host/domain and slugs."""

from __future__ import annotations

import re
import unicodedata
from urllib.parse import urljoin, urlparse

import tldextract

# Offline extractor: use the public-suffix snapshot bundled with tldextract
_TLD_EXTRACT = tldextract.TLDExtract(suffix_list_urls=(), include_psl_private_domains=True)

# Characters allowed in slugs
_SLUG_UNSAFE_RE = re.compile(r"[^\w]+")
_LEADING_TRAILING_DASH_RE = re.compile(r"^-+|-+$")

# Unicode categories kept by clean_special_characters
_KEPT_CATEGORIES: frozenset[str] = frozenset(
    {"Nl", "Lo", "Ll", "Lu", "Zs", "Nd", "Pc", "Pd", "Pe", "Po"},
)


def http_url(url: str | None, default_protocol: str | None = "https") -> str | None:
    """Return *url* when it is an absolute http(s) URL.

    Protocol-relative URLs (``//host/path``) get *default_protocol*; anything
    else returns ``None``.
    """
    url = (url or "").strip()
    if not url:
        return None
    if url.startswith(("http://", "https://")):
        return url
    if url.startswith("//"):
        return f"{default_protocol or 'https'}:{url}"
    return None


def protocol(link: str | None) -> str | None:
    """Scheme of *link* (``"https"``), or ``None`` for relative/empty links."""
    if not link:
        return None
    try:
        scheme = urlparse(link).scheme
    except ValueError:
        return None
    return scheme.lower() or None


def host(link: str | None) -> str | None:
    """Lower-cased host of *link*; a missing scheme is assumed to be http."""
    if not link:
        return None
    if "://" not in link:
        link = "http://" + link
    try:
        return urlparse(link).hostname or None
    except ValueError:
        return None


def domain(link: str | None) -> str | None:
    """Registered domain of *link*.

    ``www.bbc.co.uk`` -> ``bbc.co.uk``; hosts under private suffixes keep
    their own label (``test.blogspot.com`` -> ``test.blogspot.com``).
    """
    link_host = host(link)
    if not link_host:
        return None
    parts = _TLD_EXTRACT(link_host)
    if parts.domain and parts.suffix:
        return f"{parts.domain}.{parts.suffix}"
    # Host is itself a public suffix, an IP address or a single label
    return link_host


def absolute_url(base: str | None, href: str | None) -> str:
    """Resolve *href* against *base*; ``""`` when no absolute URL results."""
    href = (href or "").strip()
    if not href:
        return ""
    try:
        resolved = urljoin(base or "", href)
        parsed = urlparse(resolved)
    except ValueError:
        return ""
    if not parsed.scheme:
        return ""
    if parsed.scheme in ("http", "https") and not parsed.netloc:
        return ""
    return resolved


def slugify(text: str, max_length: int = 100) -> str:
    """Lower-case, dash-separated slug of *text*.

    Example:
        "How to: Parse Feeds!" -> how-to-parse-feeds
    """
    slug = _SLUG_UNSAFE_RE.sub("-", text.lower().strip()).replace("_", "-")
    slug = re.sub(r"-{2,}", "-", slug)
    slug = _LEADING_TRAILING_DASH_RE.sub("", slug)
    slug = slug[:max_length]
    return _LEADING_TRAILING_DASH_RE.sub("", slug)


def clean_special_characters(text: str) -> str:
    """Replace symbols, controls and opening punctuation with spaces."""
    if not text:
        return text
    return "".join(
        ch if unicodedata.category(ch) in _KEPT_CATEGORIES else " " for ch in text
    )
