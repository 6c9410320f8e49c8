"""Shared hover formatting helpers.

Keeping formatting here prevents drift between output surfaces and keeps
hovers consistent regardless of whether they end up in a terminal or a page.
"""

from __future__ import annotations

import html
import re
from typing import List

from core.models import EventKind, HoverInfo, ItemHover, ItemSnapshot, LogEvent, LogHover, SleepHover

_MARKDOWN_SPECIALS = re.compile(r"([\\`*_{}\[\]()#+\-.!|])")

_EVENT_LABELS = {
    EventKind.COMMAND_RECEIVED: "command",
    EventKind.THING_STATUS_CHANGED: "status",
}


def escape_markdown(text: str) -> str:
    return _MARKDOWN_SPECIALS.sub(r"\\\1", text)


def event_label(event: LogEvent) -> str:
    """Word used for the headline: command, status or state."""

    return _EVENT_LABELS.get(event.kind, "state")


def _code_block(text: str, language: str = "openhab") -> str:
    return f"```{language}\n{text}\n```"


def _item_lines(item: ItemSnapshot) -> List[str]:
    if not item.is_group:
        return [item.state]
    lines = [f"Item {item.name} | {item.state}"]
    lines.extend(f"Item {member.name} | {member.state}" for member in item.members)
    return lines


def _format_markdown(hover: HoverInfo, hovered_text: str) -> str:
    """Create the Markdown body used by editors and the terminal renderer."""

    if isinstance(hover, SleepHover):
        return _code_block(hover.text)

    if isinstance(hover, ItemHover):
        item = hover.item
        if not item.is_group:
            return _code_block(item.state)
        parts = [_code_block(f"Item {item.name} | {item.state}"), "##### Members:"]
        parts.extend(_code_block(f"Item {member.name} | {member.state}") for member in item.members)
        return "\n".join(parts)

    event = hover.event
    if event.value is None:
        return "\n".join(["**Last seen in events.log**", _code_block(event.raw_line, "log")])

    if event.value_from_inline_kv:
        return _code_block(f"eventslog: {event.value}")

    lines = [
        f"**Latest {event_label(event)}** *(from events.log)*",
        "",
        _code_block(f"{event.subject or hovered_text} → {event.value}"),
    ]
    if event.timestamp:
        lines.extend(["", f"`{event.timestamp}`"])
    lines.extend(["", "---", escape_markdown(event.raw_line)])
    return "\n".join(lines)


def _format_html(hover: HoverInfo, hovered_text: str) -> str:
    """Create the HTML body used by web views."""

    if isinstance(hover, SleepHover):
        return f"<pre>{html.escape(hover.text)}</pre>"

    if isinstance(hover, ItemHover):
        body = "\n".join(html.escape(line) for line in _item_lines(hover.item))
        return f"<pre>{body}</pre>"

    event = hover.event
    raw_line = html.escape(event.raw_line)
    if event.value is None:
        return f"<b>Last seen in events.log</b>\n<pre>{raw_line}</pre>"

    value = html.escape(event.value)
    if event.value_from_inline_kv:
        return f"<pre>eventslog: {value}</pre>"

    subject = html.escape(event.subject or hovered_text)
    parts = [
        f"<b>Latest {event_label(event)}</b> <i>(from events.log)</i>",
        f"<pre>{subject} → {value}</pre>",
    ]
    if event.timestamp:
        parts.append(f"<code>{html.escape(event.timestamp)}</code>")
    parts.extend(["<hr>", f"<small>{raw_line}</small>"])
    return "\n".join(parts)


def format_hover(hover: HoverInfo, hovered_text: str, mode: str = "markdown") -> str:
    """Return the hover formatted for the requested mode."""

    if mode == "markdown":
        return _format_markdown(hover, hovered_text)
    if mode == "html":
        return _format_html(hover, hovered_text)
    raise ValueError(f"Unsupported hover format: {mode}")
