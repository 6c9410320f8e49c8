"""Log query engine.

This module is source-agnostic. It only relies on the log source port,
enabling grep, in-process scanning or any other backend without changes here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional

from core.augmenter import augment
from core.classifier import classify
from core.config import LogSourceSpec, SearchConfig
from core.errors import SOFT_SOURCE_ERRORS, SourceTimeout
from core.models import LogEvent
from core.ports import LogSourcePort

LOGGER = logging.getLogger(__name__)


def count_alnum(term: str) -> int:
    return sum(1 for ch in term if ch.isascii() and ch.isalnum())


def has_line_break(term: str) -> bool:
    return "\n" in term or "\r" in term


def pick_latest(best: Optional[LogEvent], candidate: Optional[LogEvent]) -> Optional[LogEvent]:
    """Keep ``best`` unless ``candidate`` carries a strictly later timestamp.

    Timestamps share a fixed, zero-padded format, so string order is
    chronological order and an empty timestamp sorts lowest.
    """

    if candidate is None:
        return best
    if best is None or candidate.timestamp > best.timestamp:
        return candidate
    return best


class LogQueryEngine:
    """Finds the latest log line mentioning a term across configured sources."""

    def __init__(
        self,
        sources: Iterable[LogSourceSpec],
        log_source: LogSourcePort,
        config: Optional[SearchConfig] = None,
    ) -> None:
        self._sources: List[LogSourceSpec] = list(sources)
        self._log_source = log_source
        self._config = config or SearchConfig()

    def accepts(self, term: Optional[str]) -> bool:
        """Return True when ``term`` is worth a scan."""

        if not term:
            return False
        if not self._config.min_term_length <= len(term) <= self._config.max_term_length:
            return False
        # Log lines never span a line break, so such a term cannot match.
        if has_line_break(term):
            return False
        # Terms made of punctuation would match nearly every line.
        return count_alnum(term) >= self._config.min_alnum_chars

    async def search_log(self, term: str) -> Optional[LogEvent]:
        """Return the most recent classified and augmented match, or None.

        Soft source failures (missing file, missing tool, timeout) are logged
        and skipped. Any other failure is raised once every lookup finished.
        """

        if not self.accepts(term):
            return None
        if not self._sources:
            return None

        outcomes = await asyncio.gather(
            *(self._lookup(source, term) for source in self._sources),
            return_exceptions=True,
        )

        best: Optional[LogEvent] = None
        unexpected: Optional[BaseException] = None
        for source, outcome in zip(self._sources, outcomes):
            if isinstance(outcome, SOFT_SOURCE_ERRORS):
                LOGGER.debug("%s search failed for %r: %s", source.name, term, outcome)
                continue
            if isinstance(outcome, BaseException):
                if unexpected is None:
                    unexpected = outcome
                continue
            best = pick_latest(best, classify(outcome) if outcome else None)

        if unexpected is not None:
            raise unexpected

        if best is None:
            return None
        return augment(term, best)

    async def _lookup(self, source: LogSourceSpec, term: str) -> Optional[str]:
        try:
            return await asyncio.wait_for(
                self._log_source.find_last_match(source.path, term),
                timeout=self._config.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise SourceTimeout(
                f"{source.name} lookup exceeded {self._config.timeout_seconds}s"
            ) from e
