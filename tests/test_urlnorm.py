"""Unit tests for URL helpers."""

from __future__ import annotations

from contentnorm.extractors.urlnorm import (
    absolute_url,
    clean_special_characters,
    domain,
    host,
    http_url,
    protocol,
    slugify,
)


class TestHttpUrl:
    def test_absolute_urls_unchanged(self):
        assert http_url("https://example.com/a") == "https://example.com/a"
        assert http_url(" http://example.com/a ") == "http://example.com/a"

    def test_protocol_relative_gets_default(self):
        assert http_url("//cdn.example.com/x.png") == "https://cdn.example.com/x.png"
        assert http_url("//cdn.example.com/x.png", "http") == "http://cdn.example.com/x.png"

    def test_relative_and_other_schemes_rejected(self):
        assert http_url("/relative/path") is None
        assert http_url("ftp://example.com/file") is None
        assert http_url("") is None
        assert http_url(None) is None


class TestProtocol:
    def test_schemes(self):
        assert protocol("HTTPS://example.com") == "https"
        assert protocol("mailto:someone@example.com") == "mailto"

    def test_relative_has_none(self):
        assert protocol("/path/only") is None
        assert protocol("") is None


class TestHost:
    def test_lower_cased(self):
        assert host("https://WWW.Example.COM/path") == "www.example.com"

    def test_missing_scheme_assumed(self):
        assert host("example.com/path") == "example.com"

    def test_empty(self):
        assert host("") is None
        assert host(None) is None


class TestDomain:
    def test_strips_subdomain(self):
        assert domain("https://www.example.com/news") == "example.com"

    def test_multi_part_suffix(self):
        assert domain("http://www.bbc.co.uk/news") == "bbc.co.uk"

    def test_private_suffix_keeps_label(self):
        assert domain("https://test.blogspot.com/2024/01/post.html") == "test.blogspot.com"

    def test_ip_address(self):
        assert domain("http://127.0.0.1:8080/") == "127.0.0.1"

    def test_empty(self):
        assert domain("") is None


class TestAbsoluteUrl:
    def test_relative_resolved(self):
        assert absolute_url("https://example.com/news/a", "/img/x.png") == "https://example.com/img/x.png"
        assert absolute_url("https://example.com/news/a", "b") == "https://example.com/news/b"

    def test_protocol_relative(self):
        assert absolute_url("https://example.com/", "//cdn.example.com/x") == "https://cdn.example.com/x"

    def test_no_base_relative_is_empty(self):
        assert absolute_url("", "/img/x.png") == ""

    def test_absolute_kept(self):
        assert absolute_url("", "https://other.org/") == "https://other.org/"
        assert absolute_url("https://example.com/", "mailto:a@example.com") == "mailto:a@example.com"

    def test_blank_href(self):
        assert absolute_url("https://example.com/", "  ") == ""


class TestSlugify:
    def test_basic(self):
        assert slugify("How to: Parse Feeds!") == "how-to-parse-feeds"

    def test_collapses_dashes(self):
        assert slugify("a -- b __ c") == "a-b-c"

    def test_max_length(self):
        slug = slugify("word " * 50, max_length=20)
        assert len(slug) <= 20
        assert not slug.endswith("-")


class TestCleanSpecialCharacters:
    def test_symbols_replaced(self):
        assert clean_special_characters("a+b=c") == "a b c"

    def test_letters_and_digits_kept(self):
        assert clean_special_characters("Widgets 2024.") == "Widgets 2024."
