"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LogSourceSpec:
    """One log file to search, listed in priority order."""

    name: str
    path: str


@dataclass(frozen=True)
class SearchConfig:
    """Limits applied to every query."""

    min_term_length: int = 2
    max_term_length: int = 100
    min_alnum_chars: int = 2
    timeout_seconds: float = 3.0
    max_line_bytes: int = 4096
