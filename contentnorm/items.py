"""Pydantic models for normalized content.

A :class:`Resource` (a feed, a page, a batch of tweets) holds one or more
:class:`Entry` items.  All models are immutable; use the ``with_*`` helpers
(or ``model_copy(update=...)``) to derive modified copies.

Media identity is the link: two :class:`Image` objects with the same
``link`` are equal and hash the same whatever their other attributes, so an
insertion-ordered dedup keeps the first (usually richest) occurrence.
"""

from __future__ import annotations

import base64
import binascii
import time
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from contentnorm.extractors.urlnorm import domain as registered_domain

_FROZEN = ConfigDict(frozen=True)


def _strip(v: Any) -> Any:
    if isinstance(v, str):
        return v.strip()
    return "" if v is None else v


# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------

class Image(BaseModel):
    model_config = _FROZEN

    link: str
    id: str = ""
    alt_text: str = ""
    title: str = ""
    width: int = 0
    height: int = 0
    media_type: str = ""

    @field_validator("link", "alt_text", "title", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Image) and other.link == self.link

    def __hash__(self) -> int:
        return hash(("image", self.link))

    def with_link(self, link: str) -> Image:
        return self.model_copy(update={"link": link})


class Aspect(BaseModel):
    model_config = _FROZEN

    width: int
    height: int


class Video(BaseModel):
    model_config = _FROZEN

    link: str
    id: str = ""
    alt_text: str = ""
    title: str = ""
    width: int = 0
    height: int = 0
    media_type: str = ""
    bitrate: int = 0
    duration_millis: int = 0
    aspect: Aspect | None = None
    image: Image | None = None
    variants: tuple[Video, ...] = ()

    @field_validator("link", "alt_text", "title", "media_type", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Video) and other.link == self.link

    def __hash__(self) -> int:
        return hash(("video", self.link))

    def with_link(self, link: str, media_type: str = "", bitrate: int = 0) -> Video:
        return self.model_copy(update={"link": link, "media_type": media_type, "bitrate": bitrate})

    def with_variants(self, variants: list[Video] | tuple[Video, ...]) -> Video:
        return self.model_copy(update={"variants": tuple(variants)})


class Audio(BaseModel):
    model_config = _FROZEN

    link: str
    id: str = ""
    alt_text: str = ""
    title: str = ""
    media_type: str = ""

    @field_validator("link", "alt_text", "title", "media_type", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Audio) and other.link == self.link

    def __hash__(self) -> int:
        return hash(("audio", self.link))


# ---------------------------------------------------------------------------
# People and links
# ---------------------------------------------------------------------------

class Author(BaseModel):
    model_config = _FROZEN

    name: str
    id: str = ""
    display_name: str = ""
    email: str = ""
    link: str = ""
    description: str = ""
    image: Image | None = None

    @field_validator("name", "email", "link", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)


class Link(BaseModel):
    """A ``<link>``-style reference: href plus relationship and media type."""

    model_config = _FROZEN

    href: str
    rel: str = ""
    type: str = ""
    title: str = ""

    def match_type(self, rel: str | None, type: str | None) -> bool:  # noqa: A002
        """Case-insensitive match on *rel* and/or *type* (``None`` matches any)."""
        if rel is not None and self.rel.lower() != rel.lower():
            return False
        return type is None or self.type.lower() == type.lower()


class Anchor(BaseModel):
    """An ``<a href>`` found in a document."""

    model_config = _FROZEN

    href: str
    title: str = ""
    anchor_text: str = ""

    def matches_domain(self, check_domain: str | None) -> bool:
        """True if this anchor points into the registered domain *check_domain*."""
        if not check_domain:
            return False
        return registered_domain(self.href) == check_domain


# ---------------------------------------------------------------------------
# Entries and resources
# ---------------------------------------------------------------------------

class Entry(BaseModel):
    """A single item: a feed entry, an article, a tweet."""

    model_config = _FROZEN

    id: str = ""
    title: str = ""
    summary: str = ""
    clean_content: str = ""
    # Unsanitized source markup, kept for callers that re-process it
    original_content: str = Field(default="", repr=False)
    canonical_link: str = ""
    alt_links: tuple[str, ...] = ()
    published_timestamp: int = 0
    updated_timestamp: int = 0
    authors: tuple[Author, ...] = ()
    primary_image: Image | None = None
    images: tuple[Image, ...] = ()
    primary_video: Video | None = None
    videos: tuple[Video, ...] = ()
    primary_audio: Audio | None = None
    audios: tuple[Audio, ...] = ()
    tags: tuple[str, ...] = ()
    rights: str = ""
    citations: tuple[Link, ...] = ()

    @field_validator("title", "summary", "canonical_link", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)

    def with_canonical_link(self, link: str) -> Entry:
        return self.model_copy(update={"canonical_link": link})

    def with_clean_content(self, content: str) -> Entry:
        return self.model_copy(update={"clean_content": content})

    def with_images(self, images: list[Image] | tuple[Image, ...]) -> Entry:
        images = tuple(images)
        return self.model_copy(
            update={"images": images, "primary_image": images[0] if images else None},
        )

    def with_authors(self, authors: list[Author] | tuple[Author, ...]) -> Entry:
        return self.model_copy(update={"authors": tuple(authors)})


class Resource(BaseModel):
    """A parsed document: feed, page, tweet batch, oEmbed response."""

    model_config = _FROZEN

    source_link: str = ""
    canonical_link: str = ""
    base_link: str = ""
    title: str = ""
    subtitle: str = ""
    description: str = ""
    icon: Image | None = None
    logo: Image | None = None
    authors: tuple[Author, ...] = ()
    tags: tuple[str, ...] = ()
    entries: tuple[Entry, ...] = ()
    published_timestamp: int = 0
    updated_timestamp: int = 0
    rights: str = ""
    site_link: str = ""
    feed_links: tuple[str, ...] = ()
    amp_link: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return _strip(v)

    def with_entries(self, entries: list[Entry] | tuple[Entry, ...]) -> Resource:
        return self.model_copy(update={"entries": tuple(entries)})

    def with_source_link(self, link: str) -> Resource:
        return self.model_copy(update={"source_link": link})


# ---------------------------------------------------------------------------
# Page (resolved HTML metadata)
# ---------------------------------------------------------------------------

FEED_TYPES: frozenset[str] = frozenset({"application/atom+xml", "application/rss+xml"})
ALT_FEED_TYPES: frozenset[str] = frozenset({"text/xml"})


class Page(BaseModel):
    """Everything the metadata resolver found in one HTML document."""

    model_config = _FROZEN

    canonical_link: str = ""
    self_links: tuple[Link, ...] = ()
    site_name: str = ""
    title: str = ""
    summary: str = ""
    author: str = ""
    publish_time: datetime | None = None
    anchors: tuple[Anchor, ...] = ()
    images: tuple[Image, ...] = ()
    meta_images: tuple[Image, ...] = ()
    videos: tuple[Video, ...] = ()
    meta_videos: tuple[Video, ...] = ()
    audios: tuple[Audio, ...] = ()
    meta_audios: tuple[Audio, ...] = ()
    # NB: named ``all_links`` to leave ``links()`` free for filtering
    all_links: tuple[Link, ...] = ()

    def links(self, rel: str | None = None, type: str | None = None) -> list[Link]:  # noqa: A002
        if rel is None and type is None:
            return list(self.all_links)
        return [link for link in self.all_links if link.match_type(rel, type)]

    def external_anchors(self) -> list[Anchor]:
        """Anchors pointing outside the registered domain of the canonical link."""
        page_domain = registered_domain(self.canonical_link)
        if not page_domain:
            return list(self.anchors)
        return [a for a in self.anchors if not a.matches_domain(page_domain)]

    def feed_links(self) -> list[Link]:
        """Links with a feed media type, then ``alternate`` links typed ``text/xml``."""
        typed = [link for link in self.all_links if link.type.lower() in FEED_TYPES]
        alternates = [
            link for link in self.all_links
            if link.rel.lower() == "alternate"
            and link.type.lower() in ALT_FEED_TYPES
            and link.type.lower() not in FEED_TYPES
        ]
        return typed + alternates

    def icon_links(self) -> list[Link]:
        return self.links("icon") + self.links("shortcut icon")


# ---------------------------------------------------------------------------
# Sitemaps
# ---------------------------------------------------------------------------

class ChangeFrequency(StrEnum):
    ALWAYS  = "always"
    HOURLY  = "hourly"
    DAILY   = "daily"
    WEEKLY  = "weekly"
    MONTHLY = "monthly"
    YEARLY  = "yearly"
    NEVER   = "never"

    @classmethod
    def from_string(cls, value: str | None) -> ChangeFrequency:
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.NEVER

    @property
    def interval_millis(self) -> int:
        return _CHANGE_INTERVALS[self] * 1000

    def check_now(self, last_check_millis: int, now_millis: int | None = None) -> bool:
        """True if a link with this frequency is due for another check."""
        interval = self.interval_millis
        if interval < 0:
            return False
        if now_millis is None:
            now_millis = int(time.time() * 1000)
        return interval == 0 or last_check_millis + interval < now_millis


_CHANGE_INTERVALS: dict[ChangeFrequency, int] = {
    ChangeFrequency.ALWAYS: 0,
    ChangeFrequency.HOURLY: 3600,
    ChangeFrequency.DAILY: 3600 * 24,
    ChangeFrequency.WEEKLY: 3600 * 24 * 7,
    ChangeFrequency.MONTHLY: 3600 * 24 * 30,
    ChangeFrequency.YEARLY: 3600 * 24 * 365,
    ChangeFrequency.NEVER: -1,
}


class SitemapLink(BaseModel):
    model_config = _FROZEN

    url: str
    last_modified_timestamp: int = 0
    change_frequency: ChangeFrequency = ChangeFrequency.NEVER


# ---------------------------------------------------------------------------
# data: URIs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DataURI:
    """A decoded ``data:`` URI."""

    media_type: str
    data: bytes
    base64_encoded: bool

    @classmethod
    def parse(cls, src: str) -> DataURI:
        """Raises ``ValueError`` for non-data URIs or malformed payloads."""
        if not src.startswith("data:"):
            raise ValueError("Not a data URI")
        comma = src.find(",")
        if comma == -1:
            raise ValueError("The data URI scheme requires the presence of a ','")
        media_type = src[5:comma]
        payload = src[comma + 1:]
        marker = media_type.find(";base64")
        if marker > 0:
            try:
                data = base64.b64decode(payload, validate=True)
            except binascii.Error as exc:
                raise ValueError(f"Invalid base64 data: {exc}") from exc
            return cls(media_type[:marker], data, True)
        return cls(media_type, payload.encode("utf-8"), False)
