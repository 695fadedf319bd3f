"""HTML page parser: one entry described by the page's own metadata."""

from __future__ import annotations

import logging

from contentnorm.extractors.dates import to_millis
from contentnorm.extractors.dom import clone, parse_html
from contentnorm.extractors.metadata import resolve_metadata
from contentnorm.extractors.sanitizer import ContentCleaner
from contentnorm.items import Author, Entry, Image, Page, Resource
from contentnorm.result import ParseResult

logger = logging.getLogger(__name__)

# Preferred icon relationships, best first
ICON_RELS = ("apple-touch-icon-precomposed", "icon", "shortcut icon")


def best_icon(page: Page) -> Image | None:
    for rel in ICON_RELS:
        found = page.links(rel)
        if found:
            return Image(link=found[0].href)
    return None


class HTMLMetadataParser:
    """Builds a single-entry :class:`~contentnorm.items.Resource` from page metadata.

    The entry carries the resolved title, summary, author, publish time and
    the media named in metadata (the first of each becomes primary).  With a
    *cleaner*, the sanitized body is the entry's clean content.
    """

    name = "html-metadata"

    def parse(
        self,
        content: str,
        source_link: str = "",
        cleaner: ContentCleaner | None = None,
    ) -> ParseResult:
        try:
            return ParseResult(self.name, self._parse(content, source_link, cleaner))
        except Exception as exc:
            logger.warning("HTML metadata parse failed for %s: %s", source_link or "<content>", exc)
            return ParseResult.failure(self.name, "HTML Metadata Parser Failure", exc)

    def _parse(self, content: str, source_link: str, cleaner: ContentCleaner | None) -> Resource:
        soup = parse_html(content)
        page = resolve_metadata(soup, source_link=source_link)

        canonical = page.canonical_link or source_link
        declared = page.links("canonical")
        if declared:
            canonical = declared[0].href

        clean_content = ""
        if cleaner is not None:
            clean_content = cleaner.to_clean_content(cleaner.transform(clone(soup)))

        entry = Entry(
            title=page.title,
            summary=page.summary,
            canonical_link=canonical,
            published_timestamp=to_millis(page.publish_time),
            authors=(Author(name=page.author),) if page.author else (),
            images=page.meta_images,
            primary_image=page.meta_images[0] if page.meta_images else None,
            videos=page.meta_videos,
            primary_video=page.meta_videos[0] if page.meta_videos else None,
            audios=page.meta_audios,
            primary_audio=page.meta_audios[0] if page.meta_audios else None,
            clean_content=clean_content,
            original_content=content,
        )

        amp_links = page.links("amphtml")
        metadata = {"site_name": page.site_name} if page.site_name else {}
        return Resource(
            source_link=source_link,
            canonical_link=page.canonical_link,
            title=page.title,
            description=page.summary,
            icon=best_icon(page),
            amp_link=amp_links[0].href if amp_links else "",
            feed_links=tuple(link.href for link in page.feed_links()),
            entries=(entry,),
            metadata=metadata,
        )
