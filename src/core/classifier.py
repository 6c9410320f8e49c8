"""Line classification (core domain).

An ordered list of rules maps an events.log line onto a domain event. Each
rule is independent data, evaluated in priority order; the first hit wins.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import List, Optional

from core.models import EventKind, LogEvent

TIMESTAMP_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3})")


@dataclass(frozen=True)
class EventRule:
    """Compiled pattern plus the fields it surfaces."""

    name: str
    kind: EventKind
    pattern: re.Pattern
    value_group: int
    subject_group: int = 1


# Order matters: a group-relayed change also reads like a plain change, so
# the plain rule refuses tails shaped like " through <member>".
EVENT_RULES: List[EventRule] = [
    EventRule(
        name="item_state_changed",
        kind=EventKind.STATE_CHANGED,
        pattern=re.compile(
            r"Item '([^']+)' changed from (.+?) to (?!.* through \S+$)(.+?)(?:\s+\(source: .+\))?$"
        ),
        value_group=3,
    ),
    EventRule(
        name="group_item_state_changed",
        kind=EventKind.STATE_CHANGED,
        pattern=re.compile(r"Item '([^']+)' changed from (.+?) to (.+?) through (\S+)$"),
        value_group=3,
    ),
    EventRule(
        name="item_command",
        kind=EventKind.COMMAND_RECEIVED,
        pattern=re.compile(r"Item '([^']+)' received command (.+?)(?:\s+\(source: .+\))?$"),
        value_group=2,
    ),
    EventRule(
        name="thing_status_changed",
        kind=EventKind.THING_STATUS_CHANGED,
        pattern=re.compile(r"Thing '([^']+)' changed from (.+?) to (.+)$"),
        value_group=3,
    ),
]


def extract_timestamp(line: str) -> str:
    """Return the leading timestamp, or an empty string when there is none."""

    match = TIMESTAMP_PATTERN.match(line)
    return match.group(1) if match else ""


def _clean_value(raw: str) -> Optional[str]:
    value = raw.strip()
    return value or None


def classify(line: str, rules: Optional[List[EventRule]] = None) -> Optional[LogEvent]:
    """Classify one raw log line.

    Returns None for blank input. A non-blank line that matches no rule still
    yields an ``Unclassified`` event: it proves the term occurred.
    """

    if not line or not line.strip():
        return None

    timestamp = extract_timestamp(line)
    for rule in EVENT_RULES if rules is None else rules:
        match = rule.pattern.search(line)
        if not match:
            continue
        return LogEvent(
            timestamp=timestamp,
            subject=match.group(rule.subject_group),
            value=_clean_value(match.group(rule.value_group)),
            kind=rule.kind,
            raw_line=line,
        )

    return LogEvent(
        timestamp=timestamp,
        subject=None,
        value=None,
        kind=EventKind.UNCLASSIFIED,
        raw_line=line,
    )
