"""Tests for the RSS and Atom parsers."""

from __future__ import annotations

from datetime import UTC, datetime

from contentnorm.extractors.dates import to_millis


def _millis(*args: int) -> int:
    return to_millis(datetime(*args, tzinfo=UTC))


class TestRSSParser:
    def _parse(self, rss_xml, cleaner=None):
        from contentnorm.parsers import RSSParser

        result = RSSParser().parse(rss_xml, "https://example.com/feed.xml", cleaner)
        assert not result.has_errors
        return result.resource

    def test_channel(self, rss_xml):
        resource = self._parse(rss_xml)
        assert resource.title == "Example News"
        assert resource.description == "All the widget news"
        assert resource.rights == "Copyright 2024 Example"
        assert resource.site_link == "https://example.com/"
        assert resource.icon.link == "https://example.com/logo.png"
        assert resource.published_timestamp == _millis(2024, 1, 15, 9, 30)
        assert resource.updated_timestamp == _millis(2024, 1, 16, 10)
        assert resource.source_link == "https://example.com/feed.xml"
        assert len(resource.entries) == 2

    def test_item_fields(self, rss_xml):
        entry = self._parse(rss_xml).entries[0]
        assert entry.id == "widgets-1"
        assert entry.title == "Widgets Are Rising"
        assert entry.canonical_link == "https://example.com/news/widgets-rising"
        assert entry.alt_links == ()
        assert entry.authors[0].name == "Jane Smith"
        assert entry.tags == ("Markets", "Widgets")
        assert entry.published_timestamp == _millis(2024, 1, 15, 9, 30)

    def test_summary_from_description_when_content_longer(self, rss_xml):
        entry = self._parse(rss_xml).entries[0]
        assert "<b>summary</b>" in entry.summary
        assert "Short" in entry.summary

    def test_images(self, rss_xml):
        entry = self._parse(rss_xml).entries[0]
        assert [image.link for image in entry.images] == [
            "https://cdn.example.com/img/lead.jpg",
            "https://cdn.example.com/img/enc.png",
        ]
        assert entry.primary_image.link == "https://cdn.example.com/img/lead.jpg"
        assert entry.primary_image.title == "Lead"
        assert entry.primary_image.width == 1200

    def test_citations(self, rss_xml):
        entry = self._parse(rss_xml).entries[0]
        assert [link.href for link in entry.citations] == ["https://stats.example.org/report"]

    def test_content_cleaned(self, rss_xml):
        from contentnorm.extractors.sanitizer import DefaultContentCleaner

        entry = self._parse(rss_xml, DefaultContentCleaner()).entries[0]
        assert "<script>" in entry.original_content
        assert "script" not in entry.clean_content
        assert "<b>climbed</b>" in entry.clean_content

    def test_content_without_cleaner_is_raw(self, rss_xml):
        entry = self._parse(rss_xml).entries[0]
        assert entry.clean_content == entry.original_content

    def test_orig_link_and_author_email(self, rss_xml):
        entry = self._parse(rss_xml).entries[1]
        assert entry.canonical_link == "https://example.com/news/second-orig"
        assert entry.alt_links == ("https://example.com/news/second",)
        author = entry.authors[0]
        assert (author.name, author.email) == ("News Desk", "desk@example.com")
        assert entry.published_timestamp == _millis(2024, 1, 17, 13)
        assert entry.summary == ""
        assert entry.images == ()

    def test_rdf(self):
        from contentnorm.parsers import RSSParser

        rdf = (
            '<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#" '
            'xmlns="http://purl.org/rss/1.0/" xmlns:dc="http://purl.org/dc/elements/1.1/">'
            "<channel><title>RDF Feed</title><link>https://example.com/</link></channel>"
            '<image rdf:resource="https://example.com/rdf.png"/>'
            "<item><title>One</title><link>https://example.com/1</link>"
            "<dc:date>2024-01-15T09:30:00Z</dc:date><description>Body</description></item>"
            "</rdf:RDF>"
        )
        resource = RSSParser().parse(rdf).resource
        assert resource.title == "RDF Feed"
        assert resource.icon.link == "https://example.com/rdf.png"
        entry = resource.entries[0]
        assert entry.canonical_link == "https://example.com/1"
        assert entry.published_timestamp == _millis(2024, 1, 15, 9, 30)

    def test_malformed(self):
        from contentnorm.parsers import RSSParser

        result = RSSParser().parse("<rss><channel><item></channel></rss>")
        assert result.has_errors
        assert result.resource is None
        assert result.first_error.message == "Parse Failure"
        assert result.parser_name == "rss"

    def test_entity_expansion_rejected(self):
        from contentnorm.parsers import RSSParser

        bomb = (
            '<?xml version="1.0"?><!DOCTYPE rss [<!ENTITY a "aaaaaaaaaa">'
            '<!ENTITY b "&a;&a;&a;&a;&a;&a;&a;&a;&a;&a;">]>'
            "<rss><channel><title>&b;</title></channel></rss>"
        )
        assert RSSParser().parse(bomb).has_errors


class TestAtomParser:
    def _parse(self, atom_xml, cleaner=None):
        from contentnorm.parsers import AtomParser

        result = AtomParser().parse(atom_xml, "https://example.com/atom.xml", cleaner)
        assert not result.has_errors
        return result.resource

    def test_feed(self, atom_xml):
        resource = self._parse(atom_xml)
        assert resource.title == "Example Atom"
        assert resource.subtitle == "Widgets, in Atom"
        assert resource.description == "Widgets, in Atom"
        assert resource.rights == "CC-BY"
        assert resource.updated_timestamp == _millis(2024, 1, 16, 10)
        assert len(resource.entries) == 2

    def test_entry(self, atom_xml):
        entry = self._parse(atom_xml).entries[0]
        assert entry.id == "urn:uuid:entry-1"
        assert entry.title == "Atom entry one"
        assert entry.summary == "Atom summary"
        assert entry.canonical_link == "https://example.com/atom/one"
        assert entry.published_timestamp == _millis(2024, 1, 15, 9, 30)
        assert entry.updated_timestamp == _millis(2024, 1, 15, 12)
        assert (entry.authors[0].name, entry.authors[0].email) == ("Jane Smith", "jane@example.com")
        assert entry.tags == ("widgets", "Markets")
        assert entry.primary_image.link == "https://cdn.example.com/img/atom.jpg"

    def test_xhtml_content(self, atom_xml):
        from contentnorm.extractors.sanitizer import DefaultContentCleaner

        entry = self._parse(atom_xml, DefaultContentCleaner()).entries[0]
        assert "<em>body</em>" in entry.original_content
        assert "xmlns" not in entry.original_content
        assert "<em>body</em>" in entry.clean_content
        assert [link.href for link in entry.citations] == ["https://stats.example.org/report"]

    def test_published_defaults_to_updated(self, atom_xml):
        entry = self._parse(atom_xml).entries[1]
        assert entry.published_timestamp == _millis(2024, 1, 17, 8)
        assert entry.updated_timestamp == entry.published_timestamp

    def test_orig_link_and_escaped_html(self, atom_xml):
        from contentnorm.extractors.sanitizer import DefaultContentCleaner

        entry = self._parse(atom_xml, DefaultContentCleaner()).entries[1]
        assert entry.canonical_link == "https://example.com/atom/two-orig"
        assert entry.clean_content == "<p>Escaped <b>html</b></p>"


class TestParseFeed:
    def test_dispatch(self, rss_xml, atom_xml):
        from contentnorm.parsers import parse_feed

        assert parse_feed(rss_xml).parser_name == "rss"
        assert parse_feed(atom_xml).parser_name == "atom"

    def test_not_xml(self):
        from contentnorm.parsers import parse_feed

        result = parse_feed("this is not xml")
        assert result.has_errors
        assert result.parser_name == "feed"
