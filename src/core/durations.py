"""Readable durations for ``sleep(...)`` arguments."""

from __future__ import annotations

from typing import List, Tuple

_UNITS: List[Tuple[str, int]] = [
    ("hour", 3_600_000),
    ("minute", 60_000),
    ("second", 1_000),
    ("millisecond", 1),
]


def humanize_milliseconds(milliseconds: int) -> str:
    """Return e.g. ``"1 hour 2 minutes 3 seconds 4 milliseconds"``."""

    if milliseconds < 0:
        raise ValueError(f"Duration must not be negative: {milliseconds}")
    if milliseconds == 0:
        return "0 milliseconds"

    parts: List[str] = []
    remaining = milliseconds
    for unit, size in _UNITS:
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count} {unit}{'' if count == 1 else 's'}")
    return " ".join(parts)
