"""Flatten JSON values into an element tree.

Embedded JSON blobs (JSON-LD, Parse.ly page metadata, ...) are turned into
elements so the metadata resolver can query them the same way it queries the
HTML document:

    {"title": "T", "author": {"name": "A"}, "tags": ["x", "y"]}

becomes::

    <root><title>T</title><author><name>A</name></author>
          <tags>x</tags><tags>y</tags></root>

Object keys become child elements (names lower-cased, as an HTML parser
would), arrays become repeated elements named after their key, scalars become
text and booleans render as ``true``/``false``.  Numbers keep their literal
JSON text when parsed through :func:`parse_json_tree`.
"""

from __future__ import annotations

import json
import logging
from enum import StrEnum
from typing import Any

from bs4 import BeautifulSoup, Tag

from contentnorm import settings
from contentnorm.extractors.dom import first_attr, safe_str, select_by_attr

logger = logging.getLogger(__name__)


class NullBehavior(StrEnum):
    IGNORE = "ignore"   # drop the element
    REPORT = "report"   # keep it, marked isNull="true"
    EMPTY  = "empty"    # keep it empty


# Embedded JSON sources, in resolution order
_AUX_META_NAMES = ("parsely-metadata", "parsely-page", "contextly-page")
_AUX_SCRIPT_TYPES = ("application/ld+json", "json/pageinfo")


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class _TreeBuilder:
    def __init__(self, null_behavior: NullBehavior) -> None:
        self._soup = BeautifulSoup("", "lxml")
        self._nulls = null_behavior

    def new(self, name: str) -> Tag:
        return self._soup.new_tag(name.lower() or "_")

    def append(self, parent: Tag, name: str) -> Tag:
        el = self.new(name)
        parent.append(el)
        return el

    def value(self, parent: Tag, name: str, value: Any) -> None:
        if isinstance(value, dict):
            self.object(self.append(parent, name), value)
        elif isinstance(value, list):
            self.array(parent, name, value)
        else:
            self.scalar(self.append(parent, name), value)

    def object(self, el: Tag, obj: dict) -> None:
        for key, value in obj.items():
            self.value(el, str(key), value)

    def array(self, parent: Tag, name: str, items: list) -> None:
        for item in items:
            if isinstance(item, list):
                self.array(self.append(parent, name), name, item)
            else:
                self.value(parent, name, item)

    def scalar(self, el: Tag, value: Any) -> None:
        if value is None:
            if self._nulls is NullBehavior.REPORT:
                el["isNull"] = "true"
            elif self._nulls is NullBehavior.IGNORE:
                el.decompose()
            return
        el.append(_scalar_text(value))


def json_to_tree(
    value: Any,
    root_name: str,
    null_behavior: NullBehavior | str = settings.DEFAULT_NULL_BEHAVIOR,
    root: Tag | None = None,
) -> Tag:
    """Build (or extend *root* with) the element tree for a decoded JSON value."""
    builder = _TreeBuilder(NullBehavior(null_behavior))
    if root is None:
        root = builder.new(root_name)
    if isinstance(value, dict):
        builder.object(root, value)
    elif isinstance(value, list):
        builder.array(root, root.name, value)
    elif value is not None:
        root.append(_scalar_text(value))
    return root


def parse_json_tree(
    text: str,
    root_name: str,
    null_behavior: NullBehavior | str = settings.DEFAULT_NULL_BEHAVIOR,
    root: Tag | None = None,
) -> Tag:
    """Parse JSON *text* into an element tree.

    Raises ``json.JSONDecodeError`` (a ``ValueError``) for malformed input.
    """
    value = json.loads(text, parse_int=str, parse_float=str)
    return json_to_tree(value, root_name, null_behavior, root)


def build_aux_metadata(soup: BeautifulSoup) -> Tag:
    """Collect embedded JSON metadata from *soup* into one auxiliary tree.

    Sources, in order: the ``content`` of Parse.ly / Contextly meta tags, then
    the first ``application/ld+json`` and ``json/pageinfo`` scripts.  Blobs
    that fail to decode are skipped.
    """
    aux = _TreeBuilder(NullBehavior.EMPTY).new(settings.AUX_METADATA_TAG)

    blobs: list[str] = []
    for name in _AUX_META_NAMES:
        content = first_attr(select_by_attr(soup, "meta", "name", name), "content")
        if content:
            blobs.append(content)

    for script_type in _AUX_SCRIPT_TYPES:
        scripts = select_by_attr(soup, "script", "type", script_type)
        if scripts:
            script = scripts[0]
            text = safe_str(script.string).strip()
            if text:
                blobs.append(text)

    for blob in blobs:
        try:
            parse_json_tree(blob, aux.name, NullBehavior.EMPTY, root=aux)
        except ValueError as exc:
            logger.debug("Skipping embedded JSON metadata: %s", exc)

    return aux
