"""grep-backed log source adapter.

Implements the core LogSourcePort by running ``grep -F`` and keeping only the
last matching line, so memory stays bounded no matter how many lines match.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from core.errors import SourceFileNotFound, SourceUnavailable
from core.query_engine import has_line_break

LOGGER = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class _LastLineBuffer:
    """Streaming tail keeper: remembers the last complete line only."""

    def __init__(self, max_line_bytes: int) -> None:
        self._max = max_line_bytes
        self._last = b""
        self._pending = b""

    def feed(self, chunk: bytes) -> None:
        data = self._pending + chunk
        head, sep, tail = data.rpartition(b"\n")
        if sep:
            # Blank lines can trail a chunk; keep the newest line with content.
            for previous in reversed(head.split(b"\n")):
                if previous:
                    self._last = previous[: self._max]
                    break
            self._pending = tail[: self._max]
        else:
            self._pending = data[: self._max]

    def finish(self) -> bytes:
        if self._pending:
            self._last = self._pending
            self._pending = b""
        return self._last


class GrepLogSource:
    """Fixed-string, case-sensitive last-match lookup via grep."""

    def __init__(self, max_line_bytes: int = 4096, grep_binary: str = "grep") -> None:
        self._max_line_bytes = max_line_bytes
        self._grep_binary = grep_binary

    async def find_last_match(self, path: str, literal_term: str) -> Optional[str]:
        if not os.path.exists(path):
            raise SourceFileNotFound(f"Log file not found: {path}")
        # grep -F reads each line of the pattern as its own pattern, while a
        # term spanning lines can never be inside a single log line.
        if has_line_break(literal_term):
            return None

        # Arguments go straight to exec, so the term never meets a shell.
        try:
            process = await asyncio.create_subprocess_exec(
                self._grep_binary,
                "-F",
                "--",
                literal_term,
                path,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise SourceUnavailable(f"{self._grep_binary} is not installed") from e

        try:
            buffer = _LastLineBuffer(self._max_line_bytes)
            while True:
                chunk = await process.stdout.read(_CHUNK_SIZE)
                if not chunk:
                    break
                buffer.feed(chunk)
            stderr = await process.stderr.read()
            returncode = await process.wait()
        finally:
            if process.returncode is None:
                # Cancelled mid-scan (usually a timeout): do not leak the child.
                process.kill()
                await asyncio.shield(process.wait())

        # grep exits with 1 when nothing matched; that's a clean miss.
        if returncode == 1:
            return None
        if returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise SourceUnavailable(f"grep failed with exit code {returncode}: {message}")

        line = buffer.finish().decode("utf-8", errors="replace").rstrip("\r")
        if not line.strip():
            return None
        LOGGER.debug("grep matched %r in %s", literal_term, path)
        return line
