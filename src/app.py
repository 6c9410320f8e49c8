"""Application entry point for the eventscope lookup CLI."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from art import tprint
from rich.console import Console
from rich.markdown import Markdown

import settings
from adapters.grep_source import GrepLogSource
from adapters.hover_formatting import format_hover
from adapters.rest_items import RestItemDirectory
from adapters.reverse_scan_source import ReverseScanLogSource
from core.config import LogSourceSpec, SearchConfig
from core.errors import DirectoryError
from core.hover import HoverResolver, word_at
from core.models import LogHover
from core.query_engine import LogQueryEngine
from logging_setup import configure_logging

NAME = "EVENTSCOPE"
FONT = "tarty-1"

EXIT_FOUND = 0
EXIT_NOT_FOUND = 1
EXIT_FAILED = 2


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _build_log_source():
    # Select the search adapter based on configuration to keep the core
    # engine independent from how files are scanned.
    if settings.LOG_BACKEND == "grep":
        return GrepLogSource(max_line_bytes=settings.MAX_LINE_BYTES)
    if settings.LOG_BACKEND == "scan":
        return ReverseScanLogSource(max_line_bytes=settings.MAX_LINE_BYTES)
    raise RuntimeError("logs.backend must be 'grep' or 'scan'")


def _build_engine() -> LogQueryEngine:
    sources = []
    if settings.EVENTS_LOG_PATH:
        sources.append(LogSourceSpec(name="events.log", path=settings.EVENTS_LOG_PATH))
    if settings.OPENHAB_LOG_PATH:
        sources.append(LogSourceSpec(name="openhab.log", path=settings.OPENHAB_LOG_PATH))
    if not sources:
        raise RuntimeError("logs.events_log_path or logs.openhab_log_path is required")

    config = SearchConfig(
        min_term_length=settings.MIN_TERM_LENGTH,
        max_term_length=settings.MAX_TERM_LENGTH,
        timeout_seconds=settings.TIMEOUT_SECONDS,
        max_line_bytes=settings.MAX_LINE_BYTES,
    )
    return LogQueryEngine(sources, _build_log_source(), config)


def _build_directory() -> Optional[RestItemDirectory]:
    if not settings.OPENHAB_HOST:
        return None
    return RestItemDirectory(
        settings.OPENHAB_HOST,
        token=settings.OPENHAB_TOKEN,
        timeout=settings.REST_TIMEOUT_SECONDS,
    )


def _render(console: Console, text: str, mode: str) -> None:
    if mode == "markdown":
        console.print(Markdown(text))
    else:
        console.print(text, markup=False, highlight=False)


async def _search(term: str, mode: str, console: Console) -> int:
    engine = _build_engine()
    event = await engine.search_log(term)
    if event is None:
        console.print(f"No log entry found for {term!r}", markup=False)
        return EXIT_NOT_FOUND
    _render(console, format_hover(LogHover(term=term, event=event), term, mode), mode)
    return EXIT_FOUND


async def _hover(path: str, line_number: int, column: int, mode: str, console: Console) -> int:
    logger = logging.getLogger(__name__)
    with open(path, "r", encoding="utf-8") as handle:
        lines = handle.read().splitlines()
    if not 1 <= line_number <= len(lines):
        raise ValueError(f"{path} has no line {line_number}")
    hovered_line = lines[line_number - 1]
    hovered_text = word_at(hovered_line, column - 1)
    if hovered_text is None:
        console.print("Nothing to hover at that position", markup=False)
        return EXIT_NOT_FOUND

    directory = _build_directory()
    if directory is not None:
        try:
            await directory.refresh()
        except DirectoryError:
            logger.exception("Could not reload items from %s", settings.OPENHAB_HOST)

    resolver = HoverResolver(_build_engine(), directory)
    hover = await resolver.resolve(hovered_text, hovered_line)
    if hover is None:
        console.print(f"No hover information for {hovered_text!r}", markup=False)
        return EXIT_NOT_FOUND
    _render(console, format_hover(hover, hovered_text, mode), mode)
    return EXIT_FOUND


async def _items(console: Console) -> int:
    directory = _build_directory()
    if directory is None:
        raise RuntimeError("openhab.host is required to list items")
    await directory.refresh()
    for name in sorted(directory.known_items()):
        console.print(name, markup=False, highlight=False)
    return EXIT_FOUND


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="eventscope")
    parser.add_argument(
        "--format",
        choices=["markdown", "html"],
        default="markdown",
        help="Output format for results",
    )
    subparsers = parser.add_subparsers(dest="command")

    search_parser = subparsers.add_parser("search", help="Show the latest log entry for a term")
    search_parser.add_argument("term")

    hover_parser = subparsers.add_parser("hover", help="Explain the word at a file position")
    hover_parser.add_argument("path")
    hover_parser.add_argument("line", type=int, help="1-based line number")
    hover_parser.add_argument("column", type=int, help="1-based column")

    subparsers.add_parser("items", help="List items known to the REST API")

    args = parser.parse_args(argv)
    if not args.command:
        _print_banner()
        parser.print_help()
        return EXIT_NOT_FOUND

    configure_logging(settings.LOGGING, settings.PROJECT_ROOT, settings.OPENHAB_TOKEN_ENV)
    logger = logging.getLogger(__name__)
    console = Console()

    try:
        if args.command == "search":
            return asyncio.run(_search(args.term, args.format, console))
        if args.command == "hover":
            return asyncio.run(_hover(args.path, args.line, args.column, args.format, console))
        _print_banner()
        return asyncio.run(_items(console))
    except Exception as e:
        # A failed lookup is reported apart from a clean "not found".
        logger.exception("Command %s failed", args.command)
        Console(stderr=True).print(f"Lookup failed: {e}", markup=False)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
