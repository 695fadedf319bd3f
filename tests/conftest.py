"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def amp_html() -> str:
    return _read_fixture("amp.html")


@pytest.fixture
def rss_xml() -> str:
    return _read_fixture("rss.xml")


@pytest.fixture
def atom_xml() -> str:
    return _read_fixture("atom.xml")


@pytest.fixture
def sitemap_xml() -> str:
    return _read_fixture("sitemap.xml")


@pytest.fixture
def tweet_json() -> str:
    return _read_fixture("tweet.json")


@pytest.fixture
def oembed_json() -> str:
    return _read_fixture("oembed.json")


@pytest.fixture(autouse=True)
def _reset_plugins():
    yield
    from contentnorm.plugins import clear_plugins

    clear_plugins()
