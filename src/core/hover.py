"""Hover resolution (core domain).

Decides how to explain a hovered word in a rules file: a readable duration
for ``sleep(nnn)``, the live state for a known item, or the latest log entry.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from core.durations import humanize_milliseconds
from core.errors import DirectoryError
from core.models import HoverInfo, ItemHover, LogHover, SleepHover
from core.ports import ItemDirectoryPort
from core.query_engine import LogQueryEngine

LOGGER = logging.getLogger(__name__)

SLEEP_ARGUMENT_PATTERN = re.compile(r"(?<=sleep\()[0-9]{1,9}(?=\))")

# sleep(nnn) argument, key="value" / key='value' / key=value, or a plain word.
HOVERED_WORD_PATTERN = re.compile(
    r"""(?<=sleep\()[0-9]{1,9}(?=\))|\w+=(?:"[^"]*"|'[^']*'|\S+)|\w+"""
)


def word_at(line: str, column: int) -> Optional[str]:
    """Return the hovered word covering ``column`` (0-based), if any."""

    for match in HOVERED_WORD_PATTERN.finditer(line):
        if match.start() <= column <= match.end():
            return match.group(0)
        if match.start() > column:
            break
    return None


def find_sleep_milliseconds(line: str) -> Optional[int]:
    """Return the argument of the single ``sleep(nnn)`` call in ``line``."""

    matches = SLEEP_ARGUMENT_PATTERN.findall(line)
    if len(matches) != 1:
        return None
    return int(matches[0])


class HoverResolver:
    """Picks the lookup strategy for a hovered word."""

    def __init__(
        self,
        engine: LogQueryEngine,
        directory: Optional[ItemDirectoryPort] = None,
    ) -> None:
        self._engine = engine
        self._directory = directory

    async def resolve(self, hovered_text: str, hovered_line: str) -> Optional[HoverInfo]:
        milliseconds = find_sleep_milliseconds(hovered_line)
        if milliseconds is not None:
            return SleepHover(milliseconds=milliseconds, text=humanize_milliseconds(milliseconds))

        if self._directory is not None and hovered_text in self._directory.known_items():
            try:
                item = await self._directory.fetch_item(hovered_text)
            except DirectoryError:
                LOGGER.warning("Item lookup failed for %s, falling back to logs", hovered_text)
            else:
                if item is not None:
                    return ItemHover(item=item)

        LOGGER.debug("Checking logs for %s", hovered_text)
        event = await self._engine.search_log(hovered_text)
        if event is None:
            return None
        return LogHover(term=hovered_text, event=event)
