"""Twitter API (v1.1) status JSON parser.

Input is a single status object or an array of them.  Each status becomes
one entry whose content is the tweet text with hashtags, mentions, links
and photos rewritten as markup; quoted and retweeted statuses are appended
as ``<blockquote cite="...">`` elements.  The resource metadata records the
largest status id seen under :data:`MAX_ID_META`.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime

from bs4 import BeautifulSoup

from contentnorm.extractors.dates import to_millis
from contentnorm.extractors.dom import attr, body_of, clone, new_tag, parse_html
from contentnorm.extractors.sanitizer import ContentCleaner
from contentnorm.items import Aspect, Author, Entry, Image, Link, Resource, Video
from contentnorm.result import ParseResult

logger = logging.getLogger(__name__)

MAX_ID_META = "max_id"

# Wed Nov 18 21:45:12 +0000 2009
TWITTER_TIME_FORMAT = "%a %b %d %H:%M:%S %z %Y"

HASHTAG_TEMPLATE = '<a href="https://twitter.com/hashtag/{0}">#{0}</a>'
MENTION_TEMPLATE = '<a href="https://twitter.com/{0}">@{0}</a>'
LINK_TEMPLATE = '<a href="{0}">{1}</a>'
IMAGE_TEMPLATE = '<img src="{0}"/>'

CANONICAL_LINK_TEMPLATE = "https://twitter.com/{0}/status/{1}"
CANONICAL_LINK_NO_NAME_TEMPLATE = "https://twitter.com/i/web/status/{0}"


def parse_twitter_time(value: str | None) -> int:
    """Epoch millis for a ``created_at`` value, ``0`` when it does not parse."""
    if not value:
        return 0
    try:
        return to_millis(datetime.strptime(value.strip(), TWITTER_TIME_FORMAT))
    except ValueError:
        logger.debug("Invalid tweet time: %r", value)
        return 0


def _text(node: dict, key: str) -> str:
    value = node.get(key)
    return value if isinstance(value, str) else ""


def _int(node: dict, key: str) -> int | None:
    value = node.get(key)
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return int(value)


def _dict(node: dict, key: str) -> dict | None:
    value = node.get(key)
    return value if isinstance(value, dict) else None


def _list(node: dict | None, key: str) -> list:
    if node is None:
        return []
    value = node.get(key)
    return [item for item in value if isinstance(item, dict)] if isinstance(value, list) else []


def replace_all(text: str, replacements: dict[str, str]) -> str:
    """Replace every key of *replacements* in one pass, longest key first.

    Inserted markup is never rescanned, so a hashtag inside a link's
    replacement is left alone.
    """
    if not replacements:
        return text
    keys = sorted(replacements, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(key) for key in keys))
    return pattern.sub(lambda m: replacements[m.group(0)], text)


def build_video(media: dict) -> Video | None:
    """First variant as the video, the rest as its variants; ``None`` without variants."""
    image = Image(link=_text(media, "media_url_https"))
    media_id = _text(media, "id_str")
    info = _dict(media, "video_info")
    if info is None:
        return None

    aspect = None
    ratio = info.get("aspect_ratio")
    if isinstance(ratio, list) and len(ratio) == 2:
        aspect = Aspect(width=int(ratio[0]), height=int(ratio[1]))
    duration = _int(info, "duration_millis") or 0

    variants = []
    for variant in _list(info, "variants"):
        url = _text(variant, "url")
        if not url:
            continue
        variants.append(Video(
            link=url,
            id=media_id,
            aspect=aspect,
            duration_millis=duration,
            image=image,
            bitrate=_int(variant, "bitrate") or 0,
            media_type=_text(variant, "content_type"),
        ))
    if not variants:
        return None
    return variants[0].with_variants(variants[1:])


def _author(user: dict | None) -> Author | None:
    if user is None:
        return None
    screen_name = _text(user, "screen_name")
    if not screen_name:
        return None
    image_url = _text(user, "profile_image_url_https")
    return Author(
        name=screen_name,
        display_name=_text(user, "name"),
        link=_text(user, "url"),
        id=_text(user, "id_str"),
        description=_text(user, "description"),
        image=Image(link=image_url) if image_url else None,
    )


def canonical_link(entry_id: str, screen_name: str) -> str:
    if not screen_name:
        return CANONICAL_LINK_NO_NAME_TEMPLATE.format(entry_id)
    return CANONICAL_LINK_TEMPLATE.format(screen_name, entry_id)


class TwitterAPIParser:
    name = "twitter"

    def parse(
        self,
        content: str,
        source_link: str = "",
        cleaner: ContentCleaner | None = None,
    ) -> ParseResult:
        try:
            root = json.loads(content)
            statuses = root if isinstance(root, list) else [root]
            entries = []
            max_id = 0
            for status in statuses:
                if not isinstance(status, dict):
                    raise ValueError(f"Expected a status object, got {type(status).__name__}")
                entry, _ = self.parse_status(status, cleaner)
                entries.append(entry)
                max_id = max(max_id, _int(status, "id") or 0)
            resource = Resource(
                source_link=source_link,
                entries=tuple(entries),
                metadata={MAX_ID_META: str(max_id)},
            )
            return ParseResult(self.name, resource)
        except Exception as exc:
            logger.warning("Twitter parse failed for %s: %s", source_link or "<content>", exc)
            return ParseResult.failure(self.name, "Twitter Parser Failure", exc)

    def parse_status(self, status: dict, cleaner: ContentCleaner | None) -> tuple[Entry, BeautifulSoup]:
        """Build the entry for *status*; also returns its (uncleaned) content document."""
        content_node = _dict(status, "extended_tweet") or status
        content_text = _text(content_node, "full_text") or _text(content_node, "text")

        tags: dict[str, None] = {}
        replacements: dict[str, str] = {}
        citations: dict[str, None] = {}

        entities = _dict(content_node, "entities")
        for hashtag in _list(entities, "hashtags"):
            tag = _text(hashtag, "text")
            if tag:
                tags.setdefault(tag, None)
                replacements["#" + tag] = HASHTAG_TEMPLATE.format(tag)
                replacements["#" + tag.lower()] = HASHTAG_TEMPLATE.format(tag)

        for mention in _list(entities, "user_mentions"):
            screen_name = _text(mention, "screen_name")
            if screen_name:
                replacements["@" + screen_name] = MENTION_TEMPLATE.format(screen_name)
                replacements["@" + screen_name.lower()] = MENTION_TEMPLATE.format(screen_name)

        for url_node in _list(entities, "urls"):
            url = _text(url_node, "url")
            if not url:
                continue
            citations.setdefault(url, None)
            expanded = _text(url_node, "expanded_url")
            display = _text(url_node, "display_url")
            if expanded:
                citations.setdefault(expanded, None)
                if display:
                    replacements[url] = LINK_TEMPLATE.format(expanded, display)

        images: dict[str, Image] = {}
        videos: dict[str, Video] = {}
        for media_entities in (_dict(status, "entities"), _dict(status, "extended_entities")):
            for media in _list(media_entities, "media"):
                kind = _text(media, "type")
                media_url = _text(media, "media_url_https")
                if not media_url:
                    continue
                if kind in ("photo", "animated_gif"):
                    images.setdefault(media_url, Image(link=media_url))
                    content_url = _text(media, "url")
                    if content_url:
                        replacements[content_url] = IMAGE_TEMPLATE.format(media_url)
                elif kind == "video":
                    video = build_video(media)
                    if video is not None:
                        videos.setdefault(media_url, video)

        author = _author(_dict(status, "user"))
        entry_id = _text(status, "id_str")

        doc = parse_html(f"<html><body>{replace_all(content_text, replacements)}</body></html>")
        body = body_of(doc)
        for anchor in body.find_all("a", href=True):
            href = attr(anchor, "href")
            if href.startswith(("https://", "http://")):
                citations.setdefault(href, None)

        for key in ("quoted_status", "retweeted_status"):
            quoted = _dict(status, key)
            if quoted is None:
                continue
            quoted_entry, quoted_doc = self.parse_status(quoted, cleaner)
            blockquote = new_tag("blockquote", {"cite": quoted_entry.canonical_link})
            for node in list(body_of(quoted_doc).children):
                blockquote.append(clone(node))
            body.append(blockquote)
            if quoted_entry.canonical_link:
                citations.setdefault(quoted_entry.canonical_link, None)

        original = body.decode_contents().strip()
        clean_content = ""
        if cleaner is not None:
            clean_content = cleaner.to_clean_content(cleaner.transform(clone(doc)))

        image_list = tuple(images.values())
        video_list = tuple(videos.values())
        entry = Entry(
            id=entry_id,
            published_timestamp=parse_twitter_time(_text(status, "created_at")),
            canonical_link=canonical_link(entry_id, author.name if author else ""),
            authors=(author,) if author else (),
            tags=tuple(tags),
            images=image_list,
            primary_image=image_list[0] if image_list else None,
            videos=video_list,
            primary_video=video_list[0] if video_list else None,
            original_content=original,
            clean_content=clean_content,
            citations=tuple(Link(href=href) for href in citations),
        )
        return entry, doc
