"""Flatten nested HTML into a flat sequence of block elements.

Usage::

    splitter = ContentSplitter(
        ignore=BLOCK_ELEMENT_NAMES,
        preserve={"ul", "img", "figure"},
    ).convert_to_inline_with_break("b", "h1", "h2", "h3")
    blocks = splitter.split(soup.body)

Node policy (pre-order, tag names compared lower-cased):

    text          non-blank text joins the pending inline run
    mapped tag    the mapping function's nodes join the run; no descent
    preserve tag  a clone becomes a standalone block; no descent
    ignore tag    boundary: flush the run (unless the tag is inline); descend
    other tag     a clone joins the run as one opaque unit; no descent
    other nodes   skipped

The pending run is wrapped in ``container_tag`` when flushed.  The input
tree is never modified.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace

from bs4 import PageElement, Tag

from contentnorm import settings
from contentnorm.extractors.dom import clone, has_child_elements, is_text, new_tag
from contentnorm.extractors.safelist import INLINE_ELEMENT_NAMES

MapFunction = Callable[[Tag], list[PageElement]]


def _names(values: Iterable[str] | None) -> frozenset[str]:
    return frozenset(v.lower() for v in values or ())


class _Collector:
    """Accumulates blocks for one :meth:`ContentSplitter.split` call."""

    def __init__(self, splitter: ContentSplitter, container_tag: str) -> None:
        self.splitter = splitter
        self.container_tag = container_tag
        self.blocks: list[Tag] = []
        self.inline: list[PageElement] = []

    def flush(self) -> None:
        if not self.inline:
            return
        container = new_tag(self.container_tag)
        for node in self.inline:
            container.append(node)
        self.blocks.append(container)
        self.inline = []

    def visit(self, node: PageElement) -> None:
        if is_text(node):
            if str(node).strip():
                self.inline.append(clone(node))
            return
        if not isinstance(node, Tag):
            return

        name = node.name.lower()
        if name == "body":
            self.visit_children(node)
            return

        sp = self.splitter
        mapper = sp.mapped.get(name)
        if mapper is not None:
            if name in sp.ignore and name not in INLINE_ELEMENT_NAMES:
                self.flush()
            if isinstance(mapper, InlineWithBreak):
                self.inline.extend(mapper.apply(node, sp))
            else:
                self.inline.extend(mapper(node))
        elif name in sp.preserve:
            self.flush()
            self.blocks.append(clone(node))
        elif name in sp.ignore:
            if name not in INLINE_ELEMENT_NAMES:
                self.flush()
            self.visit_children(node)
        else:
            self.inline.append(clone(node))

    def visit_children(self, parent: Tag) -> None:
        for child in list(parent.children):
            self.visit(child)


@dataclass(frozen=True)
class ContentSplitter:
    """Splits an element's content into a list of new block elements.

    Args:
        container_tag: Tag wrapping each run of inline content.
        ignore:        Boundary tags: flush (unless inline) and descend.
        preserve:      Tags emitted as-is as standalone blocks.
        mapped:        Tag name -> function returning replacement nodes.
    """

    container_tag: str = settings.DEFAULT_CONTAINER_TAG
    ignore: frozenset[str] = frozenset()
    preserve: frozenset[str] = frozenset()
    mapped: Mapping[str, MapFunction] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "ignore", _names(self.ignore))
        object.__setattr__(self, "preserve", _names(self.preserve))
        object.__setattr__(
            self, "mapped", {k.lower(): v for k, v in (self.mapped or {}).items()},
        )

    def split(self, root: Tag) -> list[Tag]:
        """Blocks for the content of *root* (*root* itself is not emitted)."""
        collector = _Collector(self, self.container_tag)
        collector.visit_children(root)
        collector.flush()
        return collector.blocks

    # ---- copy helpers ----

    def with_container(self, container_tag: str) -> ContentSplitter:
        if container_tag == self.container_tag:
            return self
        return replace(self, container_tag=container_tag)

    def with_ignore(self, ignore: Iterable[str]) -> ContentSplitter:
        return replace(self, ignore=frozenset(ignore))

    def with_preserve(self, preserve: Iterable[str]) -> ContentSplitter:
        return replace(self, preserve=frozenset(preserve))

    def with_mapped(self, mapped: Mapping[str, MapFunction]) -> ContentSplitter:
        return replace(self, mapped=dict(mapped))

    def convert_to_inline_with_break(self, tag_name: str, *map_tags: str) -> ContentSplitter:
        """Copy that renders each of *map_tags* as ``<tag_name>`` plus ``<br>``.

        Nested content of a mapped element is re-split with the rules of
        whichever splitter meets it, wrapped in ``<tag_name>``.
        """
        fn = InlineWithBreak(tag_name)
        return self.with_mapped({**self.mapped, **{tag.lower(): fn for tag in map_tags}})


class InlineWithBreak:
    """Mapping function: element content as an inline ``tag_name`` run + ``<br>``.

    Children named ``tag_name`` are unwrapped first.  Content with nested
    elements is re-split into ``tag_name`` runs, using *splitter*'s rules when
    one is bound and the calling splitter's rules otherwise.
    """

    def __init__(self, tag_name: str, splitter: ContentSplitter | None = None) -> None:
        self.tag_name = tag_name.lower()
        self.splitter = splitter

    def __call__(self, el: Tag) -> list[PageElement]:
        return self.apply(el, None)

    def apply(self, el: Tag, splitter: ContentSplitter | None) -> list[PageElement]:
        nodes: list[PageElement] = []
        for child in el.children:
            if isinstance(child, Tag) and child.name.lower() == self.tag_name:
                nodes.extend(clone(c) for c in child.children)
            else:
                nodes.append(clone(child))

        if not has_child_elements(el):
            wrapper = new_tag(self.tag_name)
            for node in nodes:
                wrapper.append(node)
            return [wrapper, new_tag("br")]

        root = new_tag("body")
        for node in nodes:
            root.append(node)
        rules = self.splitter or splitter or ContentSplitter()
        result: list[PageElement] = list(rules.with_container(self.tag_name).split(root))
        result.append(new_tag("br"))
        return result

    def __eq__(self, other: object) -> bool:
        return isinstance(other, InlineWithBreak) and other.tag_name == self.tag_name

    def __hash__(self) -> int:
        return hash(self.tag_name)

    def __repr__(self) -> str:
        return f"InlineWithBreak({self.tag_name!r})"


def to_inline_with_break(
    tag_name: str,
    *map_tags: str,
    splitter: ContentSplitter | None = None,
) -> dict[str, MapFunction]:
    """Mapping table sending each of *map_tags* to one :class:`InlineWithBreak`."""
    fn = InlineWithBreak(tag_name, splitter)
    return {tag.lower(): fn for tag in map_tags}
