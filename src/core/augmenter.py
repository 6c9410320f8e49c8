"""Key=value augmentation (core domain).

Recovers structure the line classifier cannot see: either the query term is
itself a ``key=value`` pair, or the matched line carries ``term=value``.
"""

from __future__ import annotations

from dataclasses import replace
import re
from typing import Optional

from core.models import EventKind, LogEvent

# Shared tail: "double quoted", 'single quoted' or a bare non-space token.
_VALUE_ALTERNATIVES = r"""(?:"([^"]*)"|'([^']*)'|(\S+))"""

TERM_KV_PATTERN = re.compile(r"^(\w+)=" + _VALUE_ALTERNATIVES + r"$")


def _first_group(match: re.Match, *groups: int) -> Optional[str]:
    for group in groups:
        value = match.group(group)
        if value is not None:
            return value
    return None


def _usable(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


def inline_kv_pattern(term: str) -> re.Pattern:
    """Pattern for ``term=value`` inside a line; the term is matched literally."""

    return re.compile(re.escape(term) + "=" + _VALUE_ALTERNATIVES)


def augment(term: str, event: LogEvent) -> LogEvent:
    """Return ``event`` refined by any key=value structure, or unchanged."""

    term_match = TERM_KV_PATTERN.match(term)
    if term_match:
        value = _usable(_first_group(term_match, 2, 3, 4))
        if value is not None:
            return replace(
                event,
                subject=term_match.group(1),
                value=value,
                kind=EventKind.STATE_CHANGED,
            )
        return event

    line_match = inline_kv_pattern(term).search(event.raw_line)
    if line_match:
        value = _usable(_first_group(line_match, 1, 2, 3))
        if value is not None:
            return replace(
                event,
                subject=term,
                value=value,
                kind=EventKind.STATE_CHANGED,
                value_from_inline_kv=True,
            )

    return event
