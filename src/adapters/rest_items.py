"""openHAB REST item directory adapter.

Implements the core ItemDirectoryPort on top of ``/rest/items``. The set of
known item names is cached and only changes when ``refresh`` is called.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, FrozenSet, Optional

from core.errors import DirectoryError
from core.models import ItemSnapshot

LOGGER = logging.getLogger(__name__)


def parse_item(payload: dict[str, Any]) -> ItemSnapshot:
    """Map one REST item document onto an ItemSnapshot."""

    try:
        name = str(payload["name"])
    except (KeyError, TypeError) as e:
        raise DirectoryError(f"Item payload without a name: {payload!r}") from e
    members = tuple(parse_item(member) for member in payload.get("members", []) or [])
    return ItemSnapshot(
        name=name,
        state=str(payload.get("state", "NULL")),
        type=str(payload.get("type", "")),
        members=members,
    )


def parse_item_names(payload: Any) -> FrozenSet[str]:
    """Extract item names from the ``/rest/items`` listing."""

    if not isinstance(payload, list):
        raise DirectoryError("Expected a JSON list from /rest/items")
    return frozenset(str(entry["name"]) for entry in payload if isinstance(entry, dict) and entry.get("name"))


class RestItemDirectory:
    """Thin REST client that satisfies the ItemDirectoryPort contract."""

    def __init__(self, host: str, token: Optional[str] = None, timeout: float = 10) -> None:
        self._host = host.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._known: FrozenSet[str] = frozenset()

    def _request(self, path: str) -> urllib.request.Request:
        request = urllib.request.Request(f"{self._host}{path}", method="GET")
        request.add_header("Accept", "application/json")
        if self._token:
            request.add_header("X-OPENHAB-TOKEN", self._token)
        return request

    def _get_json(self, path: str) -> Any:
        # Blocking call; callers run it in a worker thread.
        try:
            with urllib.request.urlopen(self._request(path), timeout=self._timeout) as response:
                body = response.read().decode("utf-8")
        except urllib.error.HTTPError:
            raise
        except (urllib.error.URLError, OSError) as e:
            raise DirectoryError(f"Cannot reach {self._host}{path}: {e}") from e
        try:
            return json.loads(body)
        except ValueError as e:
            raise DirectoryError(f"Invalid JSON from {self._host}{path}") from e

    def known_items(self) -> FrozenSet[str]:
        return self._known

    async def refresh(self) -> None:
        """Reload the set of known item names."""

        try:
            payload = await asyncio.to_thread(self._get_json, "/rest/items")
        except urllib.error.HTTPError as e:
            raise DirectoryError(f"Item listing failed with HTTP {e.code}") from e
        self._known = parse_item_names(payload)
        LOGGER.info("Loaded %s items from %s", len(self._known), self._host)

    async def fetch_item(self, name: str) -> Optional[ItemSnapshot]:
        """Return the live state of ``name``, or None when it does not exist."""

        path = f"/rest/items/{urllib.parse.quote(name, safe='')}"
        try:
            payload = await asyncio.to_thread(self._get_json, path)
        except urllib.error.HTTPError as e:
            if e.code == 404:
                return None
            raise DirectoryError(f"Item lookup for {name} failed with HTTP {e.code}") from e
        if not isinstance(payload, dict):
            raise DirectoryError(f"Unexpected payload for item {name}")
        return parse_item(payload)
