"""Tests for YAML cleaner profiles."""

from __future__ import annotations

import pytest

PROFILE = """\
default:
  safelist: basic
domains:
  example.com:
    safelist: content
    with_images: true
  news.example.com:
    extra_tags: [span]
    extra_attributes:
      span: [class]
      a: title
"""


@pytest.fixture
def profile_path(tmp_path):
    path = tmp_path / "profile.yaml"
    path.write_text(PROFILE, encoding="utf-8")
    return path


class TestLoadProfile:
    def test_default_only(self, profile_path):
        from contentnorm.profiles import load_profile

        assert load_profile(profile_path, "https://other.org/a") == {"safelist": "basic"}

    def test_domain_and_subdomain(self, profile_path):
        from contentnorm.profiles import load_profile

        merged = load_profile(profile_path, "https://www.example.com/a")
        assert merged == {"safelist": "content", "with_images": True}

    def test_longest_domain_wins(self, profile_path):
        from contentnorm.profiles import load_profile

        merged = load_profile(profile_path, "https://news.example.com/a")
        assert merged["extra_tags"] == ["span"]
        assert merged["safelist"] == "basic"

    def test_empty_file(self, tmp_path):
        from contentnorm.profiles import load_profile

        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_profile(path, "https://example.com/") == {}


class TestCleanerFromProfile:
    def test_explicit_safelist_kept_with_images(self, profile_path):
        from contentnorm.profiles import cleaner_from_profile

        cleaner = cleaner_from_profile(profile_path, "https://example.com/post")
        assert cleaner.with_images
        assert not cleaner.allowed.is_safe_tag("img")
        assert cleaner.allowed.is_safe_tag("h2")
        assert cleaner.base_uri == "https://example.com/post"

    def test_images_preset_by_default(self, tmp_path):
        from contentnorm.profiles import cleaner_from_profile

        path = tmp_path / "images.yaml"
        path.write_text("default:\n  with_images: true\n", encoding="utf-8")
        cleaner = cleaner_from_profile(path, "https://example.com/")
        assert cleaner.allowed.is_safe_tag("img")
        assert cleaner.allowed.is_safe_attribute("img", "src")

    def test_extra_tags_and_attributes(self, profile_path):
        from contentnorm.profiles import cleaner_from_profile

        cleaner = cleaner_from_profile(profile_path, "https://news.example.com/post")
        assert cleaner.allowed.is_safe_tag("span")
        assert cleaner.allowed.is_safe_attribute("span", "class")
        assert cleaner.allowed.is_safe_attribute("a", "title")
        assert not cleaner.allowed.is_safe_tag("h2")

    def test_unknown_preset(self, tmp_path):
        from contentnorm.profiles import cleaner_from_profile

        path = tmp_path / "bad.yaml"
        path.write_text("default:\n  safelist: everything\n", encoding="utf-8")
        with pytest.raises(KeyError):
            cleaner_from_profile(path, "https://example.com/")
