"""Ports (interfaces) used by the core.

Ports define the minimal contracts for log sources and the item directory so
that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import FrozenSet, Optional, Protocol

from core.models import ItemSnapshot


class LogSourcePort(Protocol):
    """Last-match lookup over an append-only log file."""

    async def find_last_match(self, path: str, literal_term: str) -> Optional[str]:
        """Return the last line containing ``literal_term``, or None.

        Raises a ``core.errors.SourceError`` subclass for missing files,
        missing tooling and timeouts.
        """
        ...


class ItemDirectoryPort(Protocol):
    """Live set of known item names, refreshed out-of-band."""

    def known_items(self) -> FrozenSet[str]:
        ...

    async def refresh(self) -> None:
        ...

    async def fetch_item(self, name: str) -> Optional[ItemSnapshot]:
        ...
