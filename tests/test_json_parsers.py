"""Tests for the Twitter API and oEmbed JSON parsers."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from contentnorm.extractors.dates import to_millis


class TestTwitterAPIParser:
    @pytest.fixture
    def resource(self, tweet_json):
        from contentnorm.extractors.sanitizer import DefaultContentCleaner
        from contentnorm.parsers import TwitterAPIParser

        result = TwitterAPIParser().parse(tweet_json, "https://api.twitter.com/1.1/statuses", DefaultContentCleaner())
        assert not result.has_errors
        assert result.parser_name == "twitter"
        return result.resource

    def test_max_id(self, resource):
        from contentnorm.parsers.twitter import MAX_ID_META

        assert resource.metadata[MAX_ID_META] == "5853283999"
        assert len(resource.entries) == 2

    def test_status_fields(self, resource):
        entry = resource.entries[0]
        assert entry.id == "5853283470"
        assert entry.canonical_link == "https://twitter.com/jane/status/5853283470"
        assert entry.published_timestamp == to_millis(datetime(2009, 11, 18, 21, 45, 12, tzinfo=UTC))
        assert entry.tags == ("Python",)

    def test_author(self, resource):
        author = resource.entries[0].authors[0]
        assert author.name == "jane"
        assert author.display_name == "Jane Smith"
        assert author.id == "42"
        assert author.link == "https://example.com/jane"
        assert author.image.link == "https://pbs.twimg.com/profile/jane.jpg"

    def test_entities_rewritten(self, resource):
        content = resource.entries[0].original_content
        assert '<a href="https://twitter.com/hashtag/Python">#Python</a>' in content
        assert '<a href="https://twitter.com/guido">@guido</a>' in content
        assert '<a href="https://www.python.org/">python.org</a>' in content
        assert '<img src="https://pbs.twimg.com/media/one.jpg"/>' in content
        assert "t.co" not in content

    def test_photo(self, resource):
        entry = resource.entries[0]
        assert entry.primary_image.link == "https://pbs.twimg.com/media/one.jpg"
        assert entry.videos == ()

    def test_citations(self, resource):
        hrefs = [link.href for link in resource.entries[0].citations]
        assert hrefs[:2] == ["https://t.co/abc", "https://www.python.org/"]
        assert "https://twitter.com/hashtag/Python" in hrefs
        assert len(hrefs) == len(set(hrefs))

    def test_clean_content(self, resource):
        html = resource.entries[0].clean_content
        assert "<img" not in html
        assert 'class="image"' in html
        assert 'href="https://www.python.org/"' in html

    def test_video(self, resource):
        entry = resource.entries[1]
        video = entry.primary_video
        assert video.link == "https://video.twimg.com/v/low.mp4"
        assert video.bitrate == 832000
        assert video.media_type == "video/mp4"
        assert video.id == "77"
        assert (video.aspect.width, video.aspect.height) == (16, 9)
        assert video.duration_millis == 30000
        assert video.image.link == "https://pbs.twimg.com/media/thumb.jpg"
        assert [v.link for v in video.variants] == ["https://video.twimg.com/v/pl.m3u8"]

    def test_no_user(self, resource):
        entry = resource.entries[1]
        assert entry.authors == ()
        assert entry.canonical_link == "https://twitter.com/i/web/status/5853283999"

    def test_quoted_status(self, resource):
        entry = resource.entries[1]
        quote = '<blockquote cite="https://twitter.com/bob/status/111">The original thought</blockquote>'
        assert quote in entry.original_content
        assert quote in entry.clean_content
        assert "https://twitter.com/bob/status/111" in [link.href for link in entry.citations]

    def test_single_status_object(self):
        from contentnorm.parsers import TwitterAPIParser

        status = {"id": 7, "id_str": "7", "text": "hello", "created_at": "not a date"}
        result = TwitterAPIParser().parse(json.dumps(status))
        entry = result.resource.entries[0]
        assert entry.published_timestamp == 0
        assert entry.original_content == "hello"
        assert entry.clean_content == ""
        assert result.resource.metadata["max_id"] == "7"

    def test_extended_tweet_text(self):
        from contentnorm.parsers import TwitterAPIParser

        status = {
            "id": 8, "id_str": "8", "text": "truncated…",
            "extended_tweet": {"full_text": "The full text #news", "entities": {"hashtags": [{"text": "news"}]}},
        }
        entry = TwitterAPIParser().parse(json.dumps(status)).resource.entries[0]
        assert entry.original_content.startswith("The full text")
        assert entry.tags == ("news",)

    def test_replacement_not_rescanned(self):
        from contentnorm.parsers.twitter import replace_all

        replacements = {
            "#a": '<a href="https://twitter.com/hashtag/a">#a</a>',
            "https://t.co/x": '<a href="https://example.com/#a">x</a>',
        }
        out = replace_all("#a https://t.co/x", replacements)
        assert out == (
            '<a href="https://twitter.com/hashtag/a">#a</a> <a href="https://example.com/#a">x</a>'
        )

    def test_failures(self):
        from contentnorm.parsers import TwitterAPIParser

        for content in ("not json", "[1, 2]"):
            result = TwitterAPIParser().parse(content)
            assert result.has_errors
            assert result.first_error.message == "Twitter Parser Failure"


class TestOEmbedJSONParser:
    def test_video(self, oembed_json):
        from contentnorm.extractors.sanitizer import DefaultContentCleaner
        from contentnorm.parsers import OEmbedJSONParser

        source = "https://www.youtube.com/watch?v=abc"
        result = OEmbedJSONParser().parse(oembed_json, source, DefaultContentCleaner())
        assert not result.has_errors
        assert result.parser_name == "oembed-json"
        resource = result.resource
        assert resource.metadata == {"provider_name": "YouTube", "provider_url": "https://www.youtube.com/"}
        assert resource.site_link == "https://www.youtube.com/"

        entry = resource.entries[0]
        assert entry.title == "Widget demo"
        assert entry.canonical_link == source
        assert entry.authors[0].name == "Jane Smith"
        assert entry.authors[0].link == "https://www.youtube.com/user/jane"
        assert entry.primary_image.link == "https://i.ytimg.com/vi/abc/hqdefault.jpg"
        assert (entry.primary_image.width, entry.primary_image.height) == (480, 360)
        assert "<iframe" in entry.original_content
        assert 'cite="https://www.youtube.com/embed/abc"' in entry.clean_content
        assert "script" not in entry.clean_content

    def test_photo(self):
        from contentnorm.parsers import OEmbedJSONParser

        photo = {"type": "photo", "title": "P", "url": "https://example.com/p.jpg", "width": 640, "height": -1}
        entry = OEmbedJSONParser().parse(json.dumps(photo)).resource.entries[0]
        assert entry.primary_image.link == "https://example.com/p.jpg"
        assert (entry.primary_image.width, entry.primary_image.height) == (640, 0)
        assert entry.original_content == ""

    def test_photo_with_thumbnail(self):
        from contentnorm.parsers import OEmbedJSONParser

        photo = {
            "type": "photo",
            "url": "https://example.com/p.jpg",
            "thumbnail_url": "https://example.com/t.jpg",
        }
        entry = OEmbedJSONParser().parse(json.dumps(photo)).resource.entries[0]
        assert entry.primary_image.link == "https://example.com/t.jpg"
        assert [image.link for image in entry.images] == ["https://example.com/t.jpg", "https://example.com/p.jpg"]

    def test_failures(self):
        from contentnorm.parsers import OEmbedJSONParser

        for content in ("{broken", "[]"):
            result = OEmbedJSONParser().parse(content)
            assert result.has_errors
            assert result.first_error.message == "oEmbed Parser Failure"


class TestOEmbedProviders:
    PROVIDERS = json.dumps([
        {
            "provider_name": "YouTube",
            "provider_url": "https://www.youtube.com/",
            "endpoints": [{
                "url": "https://www.youtube.com/oembed",
                "schemes": ["https://*.youtube.com/watch*", "https://youtu.be/*"],
            }],
        },
        {
            "provider_name": "Example",
            "provider_url": "https://example.com/",
            "endpoints": [{"url": "https://example.com/oembed.{format}", "schemes": ["https://example.com/v/*"]}],
        },
        {"provider_name": "No endpoints", "provider_url": "https://none.example/"},
    ])

    def test_from_json(self):
        from contentnorm.parsers import OEmbedProvider

        providers = OEmbedProvider.from_json(self.PROVIDERS)
        assert set(providers) == {"https://www.youtube.com/", "https://example.com/"}
        youtube = providers["https://www.youtube.com/"]
        assert youtube.name == "YouTube"
        assert youtube.endpoints[0].url == "https://www.youtube.com/oembed"
        assert OEmbedProvider.from_json({"not": "an array"}) == {}

    def test_domain_map(self):
        from contentnorm.parsers import OEmbedProvider
        from contentnorm.parsers.oembed import domain_map

        mapped = domain_map(OEmbedProvider.from_json(self.PROVIDERS).values())
        assert set(mapped) == {"youtube.com", "youtu.be", "example.com"}

    def test_find_endpoint(self):
        from contentnorm.parsers import OEmbedProvider
        from contentnorm.parsers.oembed import find_endpoint

        providers = OEmbedProvider.from_json(self.PROVIDERS).values()
        endpoint = find_endpoint(providers, "https://www.youtube.com/watch?v=abc")
        assert endpoint.url == "https://www.youtube.com/oembed"
        assert find_endpoint(providers, "https://youtu.be/abc").url == "https://www.youtube.com/oembed"
        assert find_endpoint(providers, "https://example.com/other/1") is None
        assert find_endpoint(providers, "https://vimeo.com/1") is None
