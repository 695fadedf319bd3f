"""oEmbed JSON responses and the provider registry format.

A response becomes one entry whose canonical link is the source link.
``photo`` responses contribute an image; ``video`` and ``rich`` responses
contribute their ``html`` as content.

Provider lists use the published ``providers.json`` shape::

    [{"provider_name": "...", "provider_url": "...",
      "endpoints": [{"url": "...", "schemes": ["https://*.example.com/*"]}]}]
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from contentnorm.extractors.dom import parse_html
from contentnorm.extractors.sanitizer import ContentCleaner
from contentnorm.extractors.urlnorm import domain
from contentnorm.items import Author, Entry, Image, Resource
from contentnorm.parsers.base import add_images
from contentnorm.result import ParseResult

logger = logging.getLogger(__name__)


def _text(obj: dict, key: str) -> str:
    value = obj.get(key)
    if value is None or isinstance(value, dict | list | bool):
        return ""
    return str(value).strip()


def _positive_int(obj: dict, key: str) -> int:
    value = obj.get(key)
    if isinstance(value, bool):
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 0
    return number if number > 0 else 0


class OEmbedJSONParser:
    name = "oembed-json"

    def parse(
        self,
        content: str,
        source_link: str = "",
        cleaner: ContentCleaner | None = None,
    ) -> ParseResult:
        try:
            return ParseResult(self.name, self._parse(content, source_link, cleaner))
        except Exception as exc:
            logger.warning("oEmbed parse failed for %s: %s", source_link or "<content>", exc)
            return ParseResult.failure(self.name, "oEmbed Parser Failure", exc)

    def _parse(self, content: str, source_link: str, cleaner: ContentCleaner | None) -> Resource:
        root = json.loads(content)
        if not isinstance(root, dict):
            raise ValueError("oEmbed response must be a JSON object")

        author_name = _text(root, "author_name")
        authors = (Author(name=author_name, link=_text(root, "author_url")),) if author_name else ()

        primary = None
        thumbnail = _text(root, "thumbnail_url")
        if thumbnail:
            primary = Image(
                link=thumbnail,
                width=_positive_int(root, "thumbnail_width"),
                height=_positive_int(root, "thumbnail_height"),
            )

        entry = Entry(
            title=_text(root, "title"),
            canonical_link=source_link,
            authors=authors,
            primary_image=primary,
            images=(primary,) if primary else (),
        )

        kind = _text(root, "type").lower()
        if kind == "photo":
            url = _text(root, "url")
            if url:
                photo = Image(link=url, width=_positive_int(root, "width"), height=_positive_int(root, "height"))
                entry = add_images(entry, [photo])
        elif kind in ("video", "rich"):
            html = _text(root, "html")
            if html:
                update = {"original_content": html}
                if cleaner is not None:
                    update["clean_content"] = cleaner.to_clean_content(cleaner.transform(parse_html(html)))
                entry = entry.model_copy(update=update)

        metadata = {}
        for key in ("provider_name", "provider_url"):
            value = _text(root, key)
            if value:
                metadata[key] = value

        return Resource(
            source_link=source_link,
            title=entry.title,
            site_link=metadata.get("provider_url", ""),
            entries=(entry,),
            metadata=metadata,
        )


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

def _scheme_pattern(scheme: str) -> re.Pattern[str]:
    return re.compile(scheme.replace(".", r"\.").replace("*", ".*"))


@dataclass(frozen=True)
class Endpoint:
    """An oEmbed API endpoint and the URL schemes it serves."""

    url: str
    schemes: tuple[str, ...] = ()
    patterns: tuple[re.Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "schemes", tuple(self.schemes))
        object.__setattr__(self, "patterns", tuple(_scheme_pattern(s) for s in self.schemes))

    def matches(self, url: str) -> bool:
        return any(pattern.fullmatch(url) for pattern in self.patterns)


@dataclass(frozen=True)
class OEmbedProvider:
    name: str
    url: str
    endpoints: tuple[Endpoint, ...] = ()

    @classmethod
    def from_json(cls, node: Any) -> dict[str, OEmbedProvider]:
        """Providers keyed by ``provider_url``; anything but a JSON array gives ``{}``."""
        if isinstance(node, str):
            node = json.loads(node)
        if not isinstance(node, list):
            return {}

        providers: dict[str, OEmbedProvider] = {}
        for item in node:
            if not isinstance(item, dict):
                continue
            provider_url = _text(item, "provider_url")
            endpoints_node = item.get("endpoints")
            if not provider_url or not isinstance(endpoints_node, list):
                continue
            endpoints = []
            for endpoint_node in endpoints_node:
                if not isinstance(endpoint_node, dict):
                    continue
                endpoint_url = _text(endpoint_node, "url")
                schemes = endpoint_node.get("schemes")
                if endpoint_url and isinstance(schemes, list):
                    endpoints.append(Endpoint(endpoint_url, tuple(s for s in schemes if isinstance(s, str) and s)))
            providers[provider_url] = cls(_text(item, "provider_name"), provider_url, tuple(endpoints))
        return providers


def domain_map(providers) -> dict[str, list[Endpoint]]:
    """Endpoints grouped by the registered domain of each of their schemes."""
    found: dict[str, list[Endpoint]] = {}
    for provider in providers:
        for endpoint in provider.endpoints:
            for scheme in endpoint.schemes:
                test_url = scheme.replace("*", "x").replace("{format}", "json")
                scheme_domain = domain(test_url)
                if scheme_domain:
                    found.setdefault(scheme_domain, []).append(endpoint)
    return found


def find_endpoint(providers, url: str) -> Endpoint | None:
    """The first endpoint whose schemes match *url*."""
    for endpoint in domain_map(providers).get(domain(url) or "", []):
        if endpoint.matches(url):
            return endpoint
    return None
