"""In-process log source adapter.

Implements the core LogSourcePort by reading the file backwards in fixed-size
blocks, so the newest match is found without reading the whole file and
without any external tooling.
"""

from __future__ import annotations

import asyncio
import os
import threading
from typing import BinaryIO, Optional

from core.errors import SourceFileNotFound, SourceUnavailable

DEFAULT_BLOCK_SIZE = 64 * 1024


def _read_block(handle: BinaryIO, position: int, size: int) -> bytes:
    handle.seek(position)
    return handle.read(size)


def scan_last_line(
    handle: BinaryIO,
    needle: bytes,
    block_size: int = DEFAULT_BLOCK_SIZE,
    max_line_bytes: int = 4096,
    stop: Optional[threading.Event] = None,
) -> Optional[bytes]:
    """Return the first ``max_line_bytes`` of the last line containing ``needle``.

    The line being assembled across blocks is cut to ``max_line_bytes`` plus
    the needle length, so memory stays bounded by the block size even for
    files without newlines. Setting ``stop`` abandons the scan with None.
    """

    keep = max_line_bytes + len(needle)
    handle.seek(0, os.SEEK_END)
    position = handle.tell()
    partial = b""
    partial_hit = False
    while position > 0:
        if stop is not None and stop.is_set():
            return None
        read_size = min(block_size, position)
        position -= read_size
        pieces = (_read_block(handle, position, read_size) + partial).split(b"\n")
        # The first piece may be the tail of a line that started earlier.
        head = pieces.pop(0)
        if pieces:
            newest = len(pieces) - 1
            for index in range(newest, -1, -1):
                line = pieces[index]
                # Only the newest piece continues the partial line from before.
                if needle in line or (index == newest and partial_hit):
                    return line[:max_line_bytes]
            partial_hit = False
        partial_hit = partial_hit or needle in head
        partial = head[:keep]
    if partial_hit:
        return partial[:max_line_bytes]
    return None


def find_last_line(
    path: str,
    needle: bytes,
    block_size: int = DEFAULT_BLOCK_SIZE,
    max_line_bytes: int = 4096,
    stop: Optional[threading.Event] = None,
) -> Optional[bytes]:
    with open(path, "rb") as handle:
        return scan_last_line(handle, needle, block_size, max_line_bytes, stop)


class ReverseScanLogSource:
    """Case-sensitive literal last-match lookup without subprocesses."""

    def __init__(self, max_line_bytes: int = 4096, block_size: int = DEFAULT_BLOCK_SIZE) -> None:
        self._max_line_bytes = max_line_bytes
        self._block_size = block_size

    async def find_last_match(self, path: str, literal_term: str) -> Optional[str]:
        if not os.path.exists(path):
            raise SourceFileNotFound(f"Log file not found: {path}")

        needle = literal_term.encode("utf-8")
        stop = threading.Event()
        try:
            line = await asyncio.to_thread(
                find_last_line, path, needle, self._block_size, self._max_line_bytes, stop
            )
        except OSError as e:
            raise SourceUnavailable(f"Cannot read {path}: {e}") from e
        finally:
            # A cancelled await leaves the worker running; this ends it at the
            # next block so the event loop can shut down and the file closes.
            stop.set()

        if line is None:
            return None
        text = line.decode("utf-8", errors="replace").rstrip("\r")
        return text if text.strip() else None
