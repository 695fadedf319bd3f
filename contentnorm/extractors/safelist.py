"""Safelists: which tags, attributes and URI protocols survive sanitizing.

A :class:`Safelist` is an immutable value; the ``add_*`` methods return new
copies so presets can be extended without affecting each other::

    custom = content().add_tags("img").add_attributes("img", "src")

Presets:

    basic()                 inline formatting, lists, quotes and links
    content()               basic() + headings, tables, figures, sections
    content_with_images()   content() + img[src|alt|title|width|height]
    block_elements()        block-level tags with id / class / data-*
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace

# Wildcard accepted in attribute lists: any ``data-`` attribute
DATA_WILDCARD = "data-*"

# Tags whose content is dropped with them instead of being promoted
REMOVE_CONTENT_TAGS: frozenset[str] = frozenset(
    {"script", "style", "template", "noscript", "iframe", "object", "embed", "svg", "math", "head", "title"},
)

# ---------------------------------------------------------------------------
# Element classification
# ---------------------------------------------------------------------------

BLOCK_ELEMENT_NAMES: frozenset[str] = frozenset(
    {
        "address", "article", "aside",
        "blockquote", "canvas", "dd", "div", "dl", "dt", "fieldset",
        "figcaption", "figure", "footer", "form",
        "h1", "h2", "h3", "h4", "h5", "h6",
        "header", "hr", "li", "main", "nav", "noscript",
        "ol", "output", "p", "pre", "section", "table", "tfoot", "ul", "video",
    },
)

INLINE_ELEMENT_NAMES: frozenset[str] = frozenset(
    {
        "a", "abbr", "acronym", "audio", "b", "bdi", "bdo", "big", "br",
        "button", "canvas", "cite", "code", "data", "datalist", "del", "dfn",
        "em", "embed", "i", "iframe", "img", "input", "ins", "kbd", "label",
        "map", "mark", "meter", "noscript", "object", "output", "picture",
        "progress", "q", "ruby", "s", "samp", "script", "select", "slot",
        "small", "span", "strong", "sub", "sup", "svg", "template",
        "textarea", "time", "u", "tt", "var", "video", "wbr",
    },
)

SAFE_INLINE_ELEMENT_NAMES: frozenset[str] = frozenset(
    {
        "a", "abbr", "acronym", "b", "bdo", "big", "br",
        "button", "cite", "code", "dfn", "em", "i", "img", "input", "kbd",
        "label", "map", "q", "samp", "select", "small", "span", "strong",
        "sub", "sup", "textarea", "time", "tt", "var",
    },
)

EVENT_ATTRIBUTE_NAMES: frozenset[str] = frozenset(
    {
        "onafterprint", "onbeforeprint", "onbeforeunload", "onerror",
        "onhashchange", "onload", "onmessage", "onoffline", "ononline",
        "onpagehide", "onpageshow", "onpopstate", "onresize", "onstorage",
        "onunload", "onblur", "onchange", "oncontextmenu", "onfocus",
        "oninput", "oninvalid", "onreset", "onsearch", "onselect", "onsubmit",
        "onkeydown", "onkeypress", "onkeyup", "onclick", "ondblclick",
        "onmousedown", "onmousemove", "onmouseout", "onmouseover",
        "onmouseup", "onmousewheel", "onwheel", "ondrag", "ondragend",
        "ondragenter", "ondragleave", "ondragover", "ondragstart", "ondrop",
        "onscroll", "oncopy", "oncut", "onpaste", "onabort", "oncanplay",
        "oncanplaythrough", "oncuechange", "ondurationchange", "onemptied",
        "onended", "onloadeddata", "onloadedmetadata", "onloadstart",
        "onpause", "onplay", "onplaying", "onprogress", "onratechange",
        "onseeked", "onseeking", "onstalled", "onsuspend", "ontimeupdate",
        "onvolumechange", "onwaiting", "onshow", "ontoggle",
    },
)


# ---------------------------------------------------------------------------
# Safelist
# ---------------------------------------------------------------------------

def _lower_set(values: Iterable[str]) -> frozenset[str]:
    return frozenset(v.strip().lower() for v in values if v and v.strip())


@dataclass(frozen=True)
class Safelist:
    """Allowed tags, per-tag attributes, and per-(tag, attribute) protocols.

    ``global_attributes`` apply to every allowed tag.  An attribute with an
    entry in ``protocols`` must carry one of the listed schemes; relative
    values are only kept when a base URI lets them resolve to one.
    """

    tags: frozenset[str] = frozenset()
    attributes: Mapping[str, frozenset[str]] = field(default_factory=dict)
    global_attributes: frozenset[str] = frozenset()
    protocols: Mapping[tuple[str, str], frozenset[str]] = field(default_factory=dict)
    remove_content: frozenset[str] = REMOVE_CONTENT_TAGS

    # ---- builders ----

    def add_tags(self, *tags: str) -> Safelist:
        return replace(self, tags=self.tags | _lower_set(tags))

    def add_attributes(self, tag: str, *attributes: str) -> Safelist:
        tag = tag.lower()
        merged = dict(self.attributes)
        merged[tag] = merged.get(tag, frozenset()) | _lower_set(attributes)
        return replace(self, attributes=merged)

    def add_global_attributes(self, *attributes: str) -> Safelist:
        return replace(self, global_attributes=self.global_attributes | _lower_set(attributes))

    def add_protocols(self, tag: str, attribute: str, *protocols: str) -> Safelist:
        key = (tag.lower(), attribute.lower())
        merged = dict(self.protocols)
        merged[key] = merged.get(key, frozenset()) | _lower_set(protocols)
        return replace(self, protocols=merged)

    # ---- queries ----

    def is_safe_tag(self, tag: str) -> bool:
        return tag.lower() in self.tags

    def is_safe_attribute(self, tag: str, attribute: str) -> bool:
        attribute = attribute.lower()
        allowed = self.attributes.get(tag.lower(), frozenset()) | self.global_attributes
        if attribute in allowed:
            return True
        return attribute.startswith("data-") and DATA_WILDCARD in allowed

    def protocols_for(self, tag: str, attribute: str) -> frozenset[str] | None:
        """Allowed schemes for (tag, attribute), ``None`` if unrestricted."""
        return self.protocols.get((tag.lower(), attribute.lower()))

    def is_valid_protocol(self, tag: str, attribute: str, value: str) -> bool:
        allowed = self.protocols_for(tag, attribute)
        if allowed is None:
            return True
        lowered = value.strip().lower()
        return any(lowered.startswith(f"{scheme}:") for scheme in allowed)


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

def safelist(tags: Iterable[str], attributes: Iterable[str]) -> Safelist:
    """Safelist allowing *tags* with the same *attributes* on every tag.

    *attributes* may contain ``"data-*"`` to allow every ``data-`` attribute.
    """
    return Safelist(tags=_lower_set(tags), global_attributes=_lower_set(attributes))


def block_elements() -> Safelist:
    return safelist(BLOCK_ELEMENT_NAMES, ("id", "class", DATA_WILDCARD))


def basic() -> Safelist:
    return (
        Safelist()
        .add_tags(
            "a", "b", "blockquote", "br", "cite", "code", "dd", "dl", "dt", "em",
            "i", "li", "ol", "p", "pre", "q", "small", "strike", "del", "s", "strong", "sub",
            "sup", "u", "ul", "mark", "bdi",
        )
        .add_attributes("a", "href")
        .add_attributes("blockquote", "cite")
        .add_attributes("q", "cite", "class", "alt", "title")
        .add_protocols("a", "href", "http", "https", "mailto")
        .add_protocols("blockquote", "cite", "http", "https")
        .add_protocols("cite", "cite", "http", "https")
        .add_protocols("q", "cite", "http", "https", "mailto")
    )


def content() -> Safelist:
    return (
        basic()
        .add_tags(
            "h1", "h2", "h3", "h4", "h5", "h6",
            "table", "tr", "td", "th", "tbody", "tfoot", "thead", "col", "colgroup",
            "figure", "figcaption", "header", "footer",
            "aside", "details", "section", "summary", "time", "article", "main",
        )
        .add_attributes("time", "datetime")
    )


def content_with_images() -> Safelist:
    return (
        content()
        .add_tags("img")
        .add_attributes("img", "src", "title", "alt", "width", "height")
        .add_protocols("img", "src", "http", "https")
    )


PRESETS = {
    "basic": basic,
    "content": content,
    "content_with_images": content_with_images,
    "block_elements": block_elements,
}


def preset(name: str) -> Safelist:
    """Look up a preset by name; raises ``KeyError`` for unknown names."""
    try:
        return PRESETS[name]()
    except KeyError:
        raise KeyError(f"Unknown safelist preset {name!r}; choose from {sorted(PRESETS)}") from None
