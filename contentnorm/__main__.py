"""CLI entry point: python -m contentnorm FILE [options]"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from contentnorm import settings
from contentnorm.extractors.dates import from_millis
from contentnorm.extractors.dom import body_of, parse_html
from contentnorm.extractors.markdown import format_entry_markdown
from contentnorm.extractors.safelist import BLOCK_ELEMENT_NAMES
from contentnorm.extractors.sanitizer import ContentCleaner, DefaultContentCleaner
from contentnorm.extractors.splitter import ContentSplitter
from contentnorm.items import Entry, Resource
from contentnorm.parsers.universal import UniversalParser
from contentnorm.profiles import cleaner_from_profile

logger = logging.getLogger(__name__)

# Blocks kept whole by --split
SPLIT_PRESERVE = frozenset({"blockquote", "figure", "img", "ol", "pre", "table", "ul"})
SPLIT_HEADINGS = ("h1", "h2", "h3", "h4", "h5", "h6")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contentnorm",
        description=(
            "Normalize an HTML page, AMP page, RSS/Atom feed or sitemap into\n"
            "entries with sanitized content. No network access."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("file", metavar="FILE",
                        help="Document to parse ('-' reads standard input)")
    parser.add_argument("--source-link", default="", metavar="URL",
                        help="URL the document was fetched from (resolves relative links)")
    parser.add_argument("--content-type", default="", metavar="TYPE",
                        help="Content-Type hint for format detection (e.g. text/html)")
    parser.add_argument("--output", choices=["json", "markdown", "summary"], default="summary",
                        metavar="{json,markdown,summary}",
                        help="Output format (default: summary)")
    parser.add_argument("--profile", default=None, metavar="YAML",
                        help="Cleaner profile selecting the safelist per domain")
    parser.add_argument("--split", action="store_true", default=False,
                        help="Flatten each entry's clean content into block elements")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help=f"Logging level (default: {settings.LOG_LEVEL})")
    return parser


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8", errors="replace")


def _cleaner(args: argparse.Namespace) -> ContentCleaner:
    if args.profile:
        return cleaner_from_profile(args.profile, args.source_link)
    return DefaultContentCleaner(base_uri=args.source_link)


def split_content(entry: Entry, splitter: ContentSplitter) -> Entry:
    """Entry whose clean content is the splitter's blocks, one per line."""
    if not entry.clean_content:
        return entry
    blocks = splitter.split(body_of(parse_html(entry.clean_content)))
    return entry.with_clean_content("\n".join(str(block) for block in blocks))


def default_splitter() -> ContentSplitter:
    return ContentSplitter(
        ignore=BLOCK_ELEMENT_NAMES - SPLIT_PRESERVE,
        preserve=SPLIT_PRESERVE,
    ).convert_to_inline_with_break("b", *SPLIT_HEADINGS)


def _print_summary(resource: Resource, parser_name: str) -> None:
    from rich import box
    from rich.console import Console
    from rich.rule import Rule
    from rich.table import Table

    console = Console()
    console.print()
    console.print(Rule(f"[bold cyan]{resource.title or resource.source_link or 'Resource'}[/bold cyan]"))
    console.print(f"  [bold]Parser        :[/bold] {parser_name}")
    console.print(f"  [bold]Source        :[/bold] [green]{resource.source_link or '-'}[/green]")
    console.print(f"  [bold]Canonical     :[/bold] [green]{resource.canonical_link or '-'}[/green]")
    console.print(f"  [bold]Entries       :[/bold] {len(resource.entries)}")
    if resource.feed_links:
        console.print(f"  [bold]Feeds         :[/bold] {', '.join(resource.feed_links)}")
    console.print()

    if not resource.entries:
        return
    tbl = Table(
        title=f"[bold green]Entries ({len(resource.entries)})[/bold green]",
        box=box.SIMPLE_HEAVY,
        show_lines=False,
    )
    tbl.add_column("#",         style="dim",    justify="right", width=4,  no_wrap=True)
    tbl.add_column("Title",     style="cyan",   max_width=48,             no_wrap=True)
    tbl.add_column("Author",    style="green",  max_width=18,             no_wrap=True)
    tbl.add_column("Published", style="yellow", width=12,                 no_wrap=True)
    tbl.add_column("Images",    justify="right", width=6,                 no_wrap=True)
    tbl.add_column("Link",      style="blue",   max_width=50,             no_wrap=True)

    for i, entry in enumerate(resource.entries, 1):
        published = from_millis(entry.published_timestamp).date().isoformat() if entry.published_timestamp else "-"
        tbl.add_row(
            str(i),
            (entry.title or "-")[:45],
            (entry.authors[0].name if entry.authors else "-")[:18],
            published,
            str(len(entry.images)),
            entry.canonical_link[:45] or "-",
        )
    console.print(tbl)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format=settings.LOG_FORMAT)

    try:
        content = _read_input(args.file)
    except OSError as exc:
        print(f"ERROR: Could not read {args.file}: {exc}", file=sys.stderr)
        return 1

    try:
        cleaner = _cleaner(args)
    except (OSError, KeyError, yaml.YAMLError) as exc:
        print(f"ERROR: Could not load profile {args.profile}: {exc}", file=sys.stderr)
        return 1

    result = UniversalParser(args.content_type).parse(content, args.source_link, cleaner)
    if result.has_errors or result.resource is None:
        for error in result.errors:
            print(f"ERROR: {result.parser_name}: {error}", file=sys.stderr)
        return 1

    resource = result.resource
    if args.split:
        splitter = default_splitter()
        resource = resource.with_entries([split_content(e, splitter) for e in resource.entries])

    if args.output == "json":
        print(json.dumps(resource.model_dump(mode="json"), indent=2, ensure_ascii=False))
    elif args.output == "markdown":
        print("\n".join(format_entry_markdown(entry) for entry in resource.entries), end="")
    else:
        _print_summary(resource, result.parser_name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
