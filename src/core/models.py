"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any log source or presentation specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class EventKind(str, Enum):
    """Domain event a log line was recognised as."""

    STATE_CHANGED = "StateChanged"
    COMMAND_RECEIVED = "CommandReceived"
    THING_STATUS_CHANGED = "ThingStatusChanged"
    UNCLASSIFIED = "Unclassified"


@dataclass(frozen=True)
class LogEvent:
    """Structured view of a single log line."""

    timestamp: str
    subject: Optional[str]
    value: Optional[str]
    kind: EventKind
    raw_line: str
    value_from_inline_kv: bool = False


@dataclass(frozen=True)
class ItemSnapshot:
    """Live item state as reported by the REST item directory."""

    name: str
    state: str
    type: str
    members: Tuple["ItemSnapshot", ...] = ()

    @property
    def is_group(self) -> bool:
        return self.type == "Group"


@dataclass(frozen=True)
class SleepHover:
    milliseconds: int
    text: str


@dataclass(frozen=True)
class ItemHover:
    item: ItemSnapshot


@dataclass(frozen=True)
class LogHover:
    term: str
    event: LogEvent


HoverInfo = Union[SleepHover, ItemHover, LogHover]
