"""contentnorm.plugins: extension point registry for custom format parsers.

Usage::

    from contentnorm import register_parser

    class JSONFeedParser:
        name = "jsonfeed"
        def can_parse(self, content: str, content_type: str) -> bool:
            return content_type.startswith("application/feed+json")
        def parse(self, content, source_link="", cleaner=None):
            ...

    register_parser(JSONFeedParser())

:class:`~contentnorm.parsers.universal.UniversalParser` asks registered
parsers first, in registration order, before falling back to format
detection.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from contentnorm.result import ParseResult

# ---------------------------------------------------------------------------
# Protocol definitions
# ---------------------------------------------------------------------------

@runtime_checkable
class ParserPlugin(Protocol):
    """Custom parser for a format the built-in parsers do not handle."""

    name: str

    def can_parse(self, content: str, content_type: str) -> bool:
        """Return True if this plugin should parse *content*."""
        ...

    def parse(self, content: str, source_link: str = "", cleaner: Any = None) -> ParseResult:
        """Parse *content* into a :class:`~contentnorm.result.ParseResult`."""
        ...


# ---------------------------------------------------------------------------
# Module-level registry
# ---------------------------------------------------------------------------

_registry: dict[str, list[Any]] = {
    "parsers": [],
}


def register_parser(plugin: ParserPlugin) -> None:
    """Register a custom :class:`ParserPlugin`."""
    _registry["parsers"].append(plugin)


def get_parsers() -> list[ParserPlugin]:
    """Return all registered parser plugins."""
    return list(_registry["parsers"])


def clear_plugins() -> None:
    """Remove all registered plugins. Primarily for use in tests."""
    for value in _registry.values():
        value.clear()
