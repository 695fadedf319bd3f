"""Small BeautifulSoup helpers shared by the extractors and drivers."""

from __future__ import annotations

import copy
from typing import Any

from bs4 import BeautifulSoup, NavigableString, Tag


def safe_str(val: Any, default: str = "") -> str:
    """Safely convert a BeautifulSoup attribute value (str | list | None) to str."""
    if val is None:
        return default
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def new_tag(name: str, attrs: dict[str, str] | None = None) -> Tag:
    """Create a detached element."""
    return BeautifulSoup("", "lxml").new_tag(name, attrs=attrs or {})


def clone(node: Any) -> Any:
    """Deep copy of a tree, element or text node."""
    return copy.copy(node)


def is_text(node: Any) -> bool:
    """True for document text nodes (not comments, doctypes, CDATA...)."""
    return type(node) is NavigableString


def normalize_space(text: str) -> str:
    return " ".join(text.split())


def element_text(tag: Tag | None) -> str:
    """Whitespace-normalized text of *tag* and its descendants."""
    if tag is None:
        return ""
    return normalize_space(tag.get_text())


def own_text(tag: Tag | None) -> str:
    """Whitespace-normalized text of the direct text children of *tag*."""
    if tag is None:
        return ""
    return normalize_space("".join(str(c) for c in tag.children if is_text(c)))


def child_elements(tag: Tag) -> list[Tag]:
    return [c for c in tag.children if isinstance(c, Tag)]


def has_child_elements(tag: Tag) -> bool:
    return any(isinstance(c, Tag) for c in tag.children)


def first_child(parent: Tag | None, name: str) -> Tag | None:
    """First direct child element named *name* (case-insensitive)."""
    if parent is None:
        return None
    name = name.lower()
    for child in parent.children:
        if isinstance(child, Tag) and child.name.lower() == name:
            return child
    return None


def first_descendant(parent: Tag | None, name: str) -> Tag | None:
    """First descendant element named *name* (case-insensitive)."""
    if parent is None:
        return None
    name = name.lower()
    for el in parent.descendants:
        if isinstance(el, Tag) and el.name.lower() == name:
            return el
    return None


def first_element_text(parent: Tag | None, name: str) -> str:
    """Own text of the first descendant named *name*, or ``""``."""
    return own_text(first_descendant(parent, name))


def attr(tag: Tag | None, name: str) -> str:
    """Stripped attribute value, ``""`` when absent."""
    if tag is None:
        return ""
    return safe_str(tag.get(name)).strip()


def inner_html(tag: Tag | None) -> str:
    if tag is None:
        return ""
    return "".join(str(c) for c in tag.children)


def body_of(soup: BeautifulSoup | Tag) -> Tag:
    """The ``<body>`` element, or *soup* itself for fragments without one."""
    body = soup.find("body")
    return body if isinstance(body, Tag) else soup


def select_by_attr(root: BeautifulSoup | Tag | None, tag: str, key: str, value: str) -> list[Tag]:
    """Elements named *tag* whose *key* attribute equals *value*.

    Values compare case-insensitively, like ``tag[key=value]`` selectors in
    HTML documents.
    """
    if root is None:
        return []
    value = value.lower()
    return [el for el in root.find_all(tag) if attr(el, key).lower() == value]


def first_attr(elements: list[Tag], name: str) -> str:
    """First non-empty (stripped) *name* attribute among *elements*."""
    for el in elements:
        value = attr(el, name)
        if value:
            return value
    return ""
