"""Static configuration for eventscope.

All user-editable settings (log paths, search limits, REST host, logging)
live in a single JSON file for quick edits without touching Python. Secrets
stay in the environment and are read through python-dotenv.
"""

import json
import os
from typing import Optional

from dotenv import load_dotenv

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

# config.json sits at the project root unless EVENTSCOPE_CONFIG points elsewhere.
CONFIG_PATH = os.getenv("EVENTSCOPE_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: Optional[str]) -> Optional[str]:
    """Relative log paths are taken from the project root."""

    if not path:
        return None
    path = os.path.expanduser(path)
    if not os.path.isabs(path):
        path = os.path.join(PROJECT_ROOT, path)
    return path


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Log files searched by the query engine. events.log is primary; openhab.log
# is optional and only consulted when configured.
_logs = _CONFIG.get("logs", {})
EVENTS_LOG_PATH = _resolve_path(_logs.get("events_log_path"))
OPENHAB_LOG_PATH = _resolve_path(_logs.get("openhab_log_path"))
# Search backend switches adapters without changing core logic.
# - "grep": grep -F subprocess (fast on large files)
# - "scan": in-process reverse scan (no external tooling)
LOG_BACKEND = _logs.get("backend", "grep")
TIMEOUT_SECONDS = float(_logs.get("timeout_seconds", 3))
MAX_LINE_BYTES = int(_logs.get("max_line_bytes", 4096))

# Query limits guarding against pathological scans.
_search = _CONFIG.get("search", {})
MIN_TERM_LENGTH = int(_search.get("min_term_length", 2))
MAX_TERM_LENGTH = int(_search.get("max_term_length", 100))

# REST item directory. The token itself never lives in config.json.
_openhab = _CONFIG.get("openhab", {})
OPENHAB_HOST = _openhab.get("host")
OPENHAB_TOKEN_ENV = _openhab.get("token_env", "OPENHAB_TOKEN")
OPENHAB_TOKEN = os.getenv(OPENHAB_TOKEN_ENV)
REST_TIMEOUT_SECONDS = float(_openhab.get("timeout_seconds", 10))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
