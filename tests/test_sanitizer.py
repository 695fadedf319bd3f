"""Tests for safelists and the content sanitizer."""

from __future__ import annotations

import random

import pytest

BASE = "https://example.com/news/a"


def _doc(fragment: str):
    from contentnorm.extractors.dom import parse_html

    return parse_html(f"<html><head><title>T</title></head><body>{fragment}</body></html>")


def _clean(fragment: str, **kwargs) -> str:
    from contentnorm.extractors.sanitizer import DefaultContentCleaner

    cleaner = DefaultContentCleaner(**kwargs)
    return cleaner.to_clean_content(cleaner.transform(_doc(fragment)))


# ---------------------------------------------------------------------------
# Random documents for the safety property
# ---------------------------------------------------------------------------

_TAGS = (
    "a", "b", "blockquote", "div", "em", "embed", "form", "h2", "iframe", "img",
    "input", "li", "object", "p", "q", "script", "section", "span", "style",
    "svg", "table", "td", "tr", "ul", "video",
)
_ATTRS = ("href", "src", "cite", "class", "id", "style", "onclick", "onerror", "data-x", "alt", "title")
_VALUES = (
    "javascript:alert(1)",
    "JaVaScRiPt:alert(2)",
    "https://ok.example/x",
    "http://ok.example/y",
    "//cdn.example/z.png",
    "mailto:someone@example.com",
    "/relative/path",
    "data:text/html;base64,PHNjcmlwdD4=",
    "plain words",
)


def _random_fragment(rng: random.Random, depth: int = 0) -> str:
    parts = []
    for _ in range(rng.randint(1, 4)):
        roll = rng.random()
        if roll < 0.25 or depth >= 4:
            parts.append(rng.choice(("text ", "more & text ", "<!-- note -->")))
            continue
        tag = rng.choice(_TAGS)
        attrs = "".join(
            f' {rng.choice(_ATTRS)}="{rng.choice(_VALUES)}"' for _ in range(rng.randint(0, 3))
        )
        parts.append(f"<{tag}{attrs}>{_random_fragment(rng, depth + 1)}</{tag}>")
    return "".join(parts)


class TestSafetyProperty:
    @pytest.mark.parametrize("seed", range(30))
    def test_output_within_safelist(self, seed):
        from contentnorm.extractors import safelist
        from contentnorm.extractors.dom import body_of
        from contentnorm.extractors.sanitizer import find_violations, sanitize

        rng = random.Random(seed)
        doc = _doc(_random_fragment(rng))
        sanitize(doc, base_uri=BASE)
        assert find_violations(body_of(doc), safelist.content()) == []

    @pytest.mark.parametrize("seed", range(10))
    def test_output_within_image_safelist(self, seed):
        from contentnorm.extractors import safelist
        from contentnorm.extractors.dom import body_of
        from contentnorm.extractors.sanitizer import assert_safe, sanitize

        rng = random.Random(1000 + seed)
        doc = _doc(_random_fragment(rng))
        sanitize(doc, base_uri=BASE, with_images=True)
        assert_safe(body_of(doc), safelist.content_with_images())

    def test_assert_safe_reports_violations(self):
        from contentnorm.extractors import safelist
        from contentnorm.extractors.dom import body_of
        from contentnorm.extractors.sanitizer import SanitizationInvariantViolation, assert_safe

        doc = _doc('<p onclick="x()"><a href="javascript:alert(1)">x</a><script>1</script></p>')
        with pytest.raises(SanitizationInvariantViolation) as excinfo:
            assert_safe(body_of(doc), safelist.content())
        joined = " ".join(excinfo.value.violations)
        assert "attribute p[onclick]" in joined
        assert "protocol a[href" in joined
        assert "tag <script>" in joined


class TestDefaultContentCleaner:
    def test_removes_scripts_and_handlers(self):
        html = _clean('<p onclick="evil()">Hello <script>alert(1)</script><b>world</b></p>')
        assert html == "<p>Hello <b>world</b></p>"

    def test_unwraps_disallowed_tags(self):
        assert _clean("<div><span>kept</span> text</div>") == "kept text"

    def test_strips_bad_protocols(self):
        html = _clean('<p><a href="javascript:alert(1)">x</a></p>')
        assert html == "<p><a>x</a></p>"

    def test_resolves_relative_links(self):
        html = _clean('<p><a href="/about">About</a></p>', base_uri=BASE)
        assert 'href="https://example.com/about"' in html

    def test_relative_link_dropped_without_base(self):
        assert _clean('<p><a href="/about">About</a></p>') == "<p><a>About</a></p>"

    def test_protocol_relative_links(self):
        html = _clean('<p><a href="//cdn.example.com/x">x</a></p>', base_uri="http://example.com/")
        assert 'href="http://cdn.example.com/x"' in html

    def test_mailto_becomes_citation(self):
        html = _clean('<p><a href="mailto:desk@example.com">Write us</a></p>')
        assert html == '<p><q cite="mailto:desk@example.com" class="mailto">Write us</q></p>'

    def test_images_become_markers(self):
        html = _clean('<p><img src="/img/a.png" alt="Chart"/>text</p>', base_uri=BASE)
        assert "<img" not in html
        assert 'cite="https://example.com/img/a.png"' in html
        assert 'class="image"' in html
        assert 'alt="Chart"' in html

    def test_images_kept(self):
        html = _clean('<p><img src="/img/a.png" onerror="x()"/></p>', base_uri=BASE, with_images=True)
        assert html == '<p><img src="https://example.com/img/a.png"/></p>'

    def test_image_without_src_removed(self):
        assert _clean("<p><img alt='nothing'/>text</p>", with_images=True) == "<p>text</p>"

    def test_iframe_becomes_marker(self):
        html = _clean('<p><iframe src="//www.youtube.com/embed/abc">fallback</iframe></p>', base_uri=BASE)
        assert "iframe" not in html.replace('class="iframe"', "")
        assert 'cite="https://www.youtube.com/embed/abc"' in html
        assert "fallback" not in html

    def test_twitter_blockquote_cited(self):
        html = _clean(
            '<blockquote class="twitter-tweet"><p>Hi</p>'
            '<a href="https://twitter.com/jane/status/123">Jan 1</a></blockquote>',
        )
        assert html.startswith('<blockquote cite="https://twitter.com/jane/status/123">')

    def test_prefers_main_then_article(self):
        assert _clean("<nav>menu</nav><article><p>story</p></article>") == "<p>story</p>"
        assert _clean("<article><p>a</p></article><main><p>m</p></main>") == "<p>m</p>"

    def test_idempotent(self):
        fragment = (
            '<p>Intro <a href="/x" onclick="y()">link</a> <img src="/i.png"/></p>'
            '<ul><li><a href="mailto:a@example.com">mail</a></li></ul>'
            '<iframe src="https://player.example/embed/1"></iframe>'
        )
        once = _clean(fragment, base_uri=BASE)
        assert _clean(once, base_uri=BASE) == once

    def test_idempotent_when_safelist_keeps_images(self):
        from contentnorm.extractors import safelist

        allowed = safelist.content_with_images().add_tags("iframe").add_attributes("iframe", "src")
        fragment = (
            '<p>A <img src="https://example.com/a.jpg" alt="x"> b</p>'
            '<iframe src="https://player.example/embed/1"></iframe>'
        )
        once = _clean(fragment, allowed=allowed, base_uri=BASE)
        assert once.count('class="image"') == 1
        assert once.count('class="iframe"') == 1
        assert "<img" in once
        twice = _clean(once, allowed=allowed, base_uri=BASE)
        assert twice == once

    def test_base_element_used_when_no_base_uri(self):
        from contentnorm.extractors.dom import parse_html
        from contentnorm.extractors.sanitizer import DefaultContentCleaner

        soup = parse_html(
            '<html><head><base href="https://base.example/dir/"></head>'
            '<body><p><a href="page">p</a></p></body></html>',
        )
        cleaner = DefaultContentCleaner()
        html = cleaner.to_clean_content(cleaner.transform(soup))
        assert 'href="https://base.example/dir/page"' in html

    def test_from_properties(self):
        from contentnorm.extractors.sanitizer import DefaultContentCleaner

        assert DefaultContentCleaner.from_properties({"withImages": "true"}).with_images
        assert not DefaultContentCleaner.from_properties({}).with_images

    def test_is_content_cleaner(self):
        from contentnorm.extractors.sanitizer import (
            NOOP,
            ContentCleaner,
            DefaultAMPCleaner,
            DefaultContentCleaner,
        )

        for cleaner in (NOOP, DefaultAMPCleaner(), DefaultContentCleaner()):
            assert isinstance(cleaner, ContentCleaner)


class TestNoopCleaner:
    def test_leaves_markup(self):
        from contentnorm.extractors.sanitizer import NOOP

        doc = _doc("<p onclick='x()'>hi</p>")
        assert "onclick" in NOOP.to_clean_content(NOOP.transform(doc))


class TestAMPCleaner:
    def test_amp_media_rewritten(self):
        from contentnorm.extractors.sanitizer import DefaultAMPCleaner

        cleaner = DefaultAMPCleaner("https://example.com/")
        doc = _doc(
            '<p><amp-img src="/a.jpg" width="10" height="10"></amp-img></p>'
            '<amp-video poster="/poster.jpg" width="640" height="360"><source src="/v.mp4"/></amp-video>'
            '<amp-video poster="/nosize.jpg" width="640"></amp-video>',
        )
        html = cleaner.to_clean_content(cleaner.transform(doc))
        assert "amp-" not in html
        assert '<img src="https://example.com/a.jpg" width="10" height="10"/>' in html
        assert '<img src="https://example.com/poster.jpg" width="640" height="360"/>' in html
        assert '<img src="https://example.com/nosize.jpg"/>' in html
        assert "v.mp4" not in html


class TestSafelists:
    _HTML = (
        "<html><head><title>Title</title></head><body><div>"
        "<p onfocus='bad' data-test='test-data' id='testid' class='testclass'><em>test</em></p>"
        "</div></body></html>"
    )

    def test_block_elements(self):
        from contentnorm.extractors import safelist
        from contentnorm.extractors.dom import body_of, parse_html
        from contentnorm.extractors.sanitizer import clean

        body = clean(body_of(parse_html(self._HTML)), safelist.block_elements())
        assert body.find("div") is not None
        p = body.find("p")
        assert p.get("data-test") == "test-data"
        assert p.get("id") == "testid"
        assert p.get("class") == ["testclass"]
        assert p.get("onfocus") is None

    def test_custom_elements(self):
        from contentnorm.extractors import safelist
        from contentnorm.extractors.dom import body_of, parse_html
        from contentnorm.extractors.sanitizer import clean

        allowed = safelist.safelist({"p"}, {"id", "data-*"})
        body = clean(body_of(parse_html(self._HTML)), allowed)
        assert body.find("div") is None
        assert body.find("em") is None
        p = body.find("p")
        assert p.get("data-test") == "test-data"
        assert p.get("id") == "testid"
        assert p.get("class") is None
        assert p.get("onfocus") is None
        assert p.get_text() == "test"

    def test_presets_are_independent(self):
        from contentnorm.extractors import safelist

        extended = safelist.content().add_tags("img")
        assert extended.is_safe_tag("img")
        assert not safelist.content().is_safe_tag("img")

    def test_preset_lookup(self):
        from contentnorm.extractors import safelist

        assert safelist.preset("content_with_images").is_safe_tag("img")
        with pytest.raises(KeyError):
            safelist.preset("everything")

    def test_protocol_checks(self):
        from contentnorm.extractors import safelist

        basic = safelist.basic()
        assert basic.is_valid_protocol("a", "href", "HTTPS://example.com")
        assert basic.is_valid_protocol("q", "cite", "mailto:a@example.com")
        assert not basic.is_valid_protocol("blockquote", "cite", "mailto:a@example.com")
        assert not basic.is_valid_protocol("a", "href", "javascript:alert(1)")
        assert basic.protocols_for("p", "class") is None

    def test_event_attributes_never_allowed(self):
        from contentnorm.extractors import safelist

        for allowed in (safelist.basic(), safelist.content_with_images(), safelist.block_elements()):
            for tag in allowed.tags:
                assert not any(allowed.is_safe_attribute(tag, a) for a in safelist.EVENT_ATTRIBUTE_NAMES)

    def test_global_attributes(self):
        from contentnorm.extractors import safelist

        allowed = safelist.basic().add_global_attributes("Title")
        assert allowed.is_safe_attribute("p", "title")
        assert allowed.is_safe_attribute("li", "title")
        assert not safelist.basic().is_safe_attribute("p", "title")

    def test_element_tables_disjoint(self):
        from contentnorm.extractors import safelist

        assert not safelist.SAFE_INLINE_ELEMENT_NAMES & safelist.BLOCK_ELEMENT_NAMES
        assert "img" in safelist.SAFE_INLINE_ELEMENT_NAMES
