from __future__ import annotations

import asyncio
import io
import logging
import os
import shutil
import sys
import threading
import time
from pathlib import Path

import pytest

from adapters import reverse_scan_source
from adapters.grep_source import GrepLogSource, _LastLineBuffer
from adapters.reverse_scan_source import ReverseScanLogSource, scan_last_line
from core.config import LogSourceSpec, SearchConfig
from core.errors import SourceFileNotFound, SourceUnavailable
from core.query_engine import LogQueryEngine

LOG_LINES = [
    "2024-01-01 09:00:00.000 [INFO] Item 'Fan' changed from 1 to 2",
    "2024-01-01 09:00:01.000 [INFO] Item 'Lamp' received command ON",
    "2024-01-01 09:00:02.000 [INFO] Item 'Fan' changed from 2 to 3",
    "2024-01-01 09:00:03.000 [INFO] Item 'fan_speed' changed from 0 to 1",
]

needs_grep = pytest.mark.skipif(shutil.which("grep") is None, reason="grep not installed")


def _write_log(tmp_path: Path, lines: list[str], name: str = "events.log") -> str:
    path = tmp_path / name
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(path)


def test_scan_crosses_block_boundaries() -> None:
    data = b"alpha\nbravo charlie\ndelta\n"
    assert scan_last_line(io.BytesIO(data), b"o ch", block_size=4) == b"bravo charlie"
    assert scan_last_line(io.BytesIO(data), b"alpha", block_size=4) == b"alpha"
    assert scan_last_line(io.BytesIO(data), b"delta", block_size=4) == b"delta"
    assert scan_last_line(io.BytesIO(data), b"echo", block_size=4) is None


def test_scan_matches_needle_far_into_a_long_line() -> None:
    data = b"short Fan\n" + b"x" * 5000 + b" Fan tail\nlast\n"
    line = scan_last_line(io.BytesIO(data), b"Fan", block_size=64, max_line_bytes=8)
    assert line == b"xxxxxxxx"


def test_scan_without_newlines_is_bounded_and_still_matches() -> None:
    data = b"Fan" + b"y" * 10_000
    line = scan_last_line(io.BytesIO(data), b"Fan", block_size=128, max_line_bytes=16)
    assert line == b"Fan" + b"y" * 13
    assert scan_last_line(io.BytesIO(b"z" * 10_000), b"Fan", block_size=128) is None


def test_scan_stops_when_asked() -> None:
    stop = threading.Event()
    stop.set()
    assert scan_last_line(io.BytesIO(b"Fan\n"), b"Fan", stop=stop) is None


def test_reverse_scan_timeout_does_not_hold_up_the_loop(tmp_path: Path, monkeypatch) -> None:
    path = _write_log(tmp_path, [f"line {index}" for index in range(200)])
    real_read_block = reverse_scan_source._read_block

    def slow_read_block(handle, position, size):
        time.sleep(0.05)
        return real_read_block(handle, position, size)

    monkeypatch.setattr(reverse_scan_source, "_read_block", slow_read_block)
    engine = LogQueryEngine(
        [LogSourceSpec(name="events.log", path=path)],
        ReverseScanLogSource(block_size=8),
        SearchConfig(timeout_seconds=0.1),
    )

    started = time.monotonic()
    assert asyncio.run(engine.search_log("Fan")) is None
    # A full scan would take over 5 seconds at this pace.
    assert time.monotonic() - started < 1.5


def test_reverse_scan_returns_last_match(tmp_path: Path) -> None:
    path = _write_log(tmp_path, LOG_LINES)
    source = ReverseScanLogSource(block_size=16)
    line = asyncio.run(source.find_last_match(path, "Item 'Fan'"))
    assert line == LOG_LINES[2]


def test_reverse_scan_is_case_sensitive_and_literal(tmp_path: Path) -> None:
    path = _write_log(tmp_path, LOG_LINES)
    source = ReverseScanLogSource()
    assert asyncio.run(source.find_last_match(path, "fan_")) == LOG_LINES[3]
    assert asyncio.run(source.find_last_match(path, "F.n")) is None


def test_reverse_scan_no_match(tmp_path: Path) -> None:
    path = _write_log(tmp_path, LOG_LINES)
    assert asyncio.run(ReverseScanLogSource().find_last_match(path, "Garage")) is None


def test_reverse_scan_truncates_long_lines(tmp_path: Path) -> None:
    path = _write_log(tmp_path, ["needle " + "x" * 100])
    line = asyncio.run(ReverseScanLogSource(max_line_bytes=10).find_last_match(path, "needle"))
    assert line == "needle xxx"


def test_reverse_scan_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SourceFileNotFound):
        asyncio.run(ReverseScanLogSource().find_last_match(str(tmp_path / "nope.log"), "Fan"))


def test_last_line_buffer_keeps_only_tail() -> None:
    buffer = _LastLineBuffer(max_line_bytes=64)
    buffer.feed(b"first\nsec")
    buffer.feed(b"ond\nthi")
    buffer.feed(b"rd\n")
    assert buffer.finish() == b"third"


def test_last_line_buffer_without_trailing_newline() -> None:
    buffer = _LastLineBuffer(max_line_bytes=64)
    buffer.feed(b"one\ntwo")
    assert buffer.finish() == b"two"


def test_last_line_buffer_truncates() -> None:
    buffer = _LastLineBuffer(max_line_bytes=4)
    buffer.feed(b"abcdefgh")
    buffer.feed(b"ijkl\n")
    assert buffer.finish() == b"abcd"


@needs_grep
def test_grep_returns_last_match(tmp_path: Path) -> None:
    path = _write_log(tmp_path, LOG_LINES)
    line = asyncio.run(GrepLogSource().find_last_match(path, "Item 'Fan'"))
    assert line == LOG_LINES[2]


@needs_grep
def test_grep_treats_term_as_fixed_string(tmp_path: Path) -> None:
    path = _write_log(tmp_path, LOG_LINES + ["2024-01-01 09:00:04.000 value=a.*b"])
    source = GrepLogSource()
    assert asyncio.run(source.find_last_match(path, "a.*b")) == "2024-01-01 09:00:04.000 value=a.*b"
    assert asyncio.run(source.find_last_match(path, "-v")) is None


@needs_grep
def test_grep_no_match_is_none(tmp_path: Path) -> None:
    path = _write_log(tmp_path, LOG_LINES)
    assert asyncio.run(GrepLogSource().find_last_match(path, "Garage")) is None


def test_grep_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SourceFileNotFound):
        asyncio.run(GrepLogSource().find_last_match(str(tmp_path / "nope.log"), "Fan"))


def test_grep_missing_binary(tmp_path: Path) -> None:
    path = _write_log(tmp_path, LOG_LINES)
    source = GrepLogSource(grep_binary="definitely-not-a-grep-binary")
    with pytest.raises(SourceUnavailable):
        asyncio.run(source.find_last_match(path, "Fan"))


def test_last_line_buffer_skips_trailing_blank_lines() -> None:
    buffer = _LastLineBuffer(max_line_bytes=64)
    buffer.feed(b"first\nsecond\n\n")
    assert buffer.finish() == b"second"

    buffer = _LastLineBuffer(max_line_bytes=64)
    buffer.feed(b"first\n")
    buffer.feed(b"\n\n")
    assert buffer.finish() == b"first"


@needs_grep
def test_grep_term_with_line_break_never_matches(tmp_path: Path) -> None:
    path = _write_log(
        tmp_path,
        [
            "2024-01-01 09:00:00.000 [INFO] Item 'Fan' changed from 1 to 2",
            "2024-01-01 09:00:01.000 [INFO] unrelated line",
            "",
        ],
    )
    source = GrepLogSource()
    assert asyncio.run(source.find_last_match(path, "Fan\nzz")) is None
    assert asyncio.run(source.find_last_match(path, "Fan\n")) is None
    assert asyncio.run(ReverseScanLogSource().find_last_match(path, "Fan\nzz")) is None


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell script")
def test_grep_child_is_killed_on_timeout(tmp_path: Path, caplog) -> None:
    path = _write_log(tmp_path, LOG_LINES)
    pid_file = tmp_path / "grep.pid"
    slow_grep = tmp_path / "slow-grep"
    slow_grep.write_text(f"#!/bin/sh\necho $$ > {pid_file}\nexec sleep 30\n", encoding="utf-8")
    slow_grep.chmod(0o755)

    engine = LogQueryEngine(
        [LogSourceSpec(name="events.log", path=path)],
        GrepLogSource(grep_binary=str(slow_grep)),
        SearchConfig(timeout_seconds=1.0),
    )
    with caplog.at_level(logging.DEBUG, logger="core.query_engine"):
        started = time.monotonic()
        assert asyncio.run(engine.search_log("Fan")) is None
        assert time.monotonic() - started < 5

    assert "exceeded" in caplog.text
    pid = int(pid_file.read_text(encoding="utf-8").strip())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)
