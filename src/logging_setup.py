"""Logging setup for the eventscope CLI.

Builds handlers from the ``logging`` section of config.json. Every handler
shares one formatter that masks secret environment values, so the REST token
never lands in a terminal or a rotated log file.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Iterable, Mapping, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MASK = "***"


class SecretMaskingFormatter(logging.Formatter):
    def __init__(self, secrets: Iterable[str], fmt: str = LOG_FORMAT, datefmt: Optional[str] = DATE_FORMAT) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, MASK)
        return message


def secret_env_names(config: Mapping, token_env: Optional[str]) -> list[str]:
    """Environment variables whose values must never be logged.

    The REST token variable is always included; ``redact.patterns`` adds more
    when ``redact.enabled`` is set.
    """

    names = [token_env] if token_env else []
    redact_cfg = config.get("redact", {})
    if redact_cfg.get("enabled", False):
        names.extend(redact_cfg.get("patterns", []))
    return names


def _file_handler(file_cfg: Mapping, project_root: str) -> logging.Handler:
    path = file_cfg.get("path", "logs/eventscope.log")
    if not os.path.isabs(path):
        path = os.path.join(project_root, path)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def build_handlers(config: Mapping, project_root: str, token_env: Optional[str] = None) -> list[logging.Handler]:
    """Return configured handlers; empty when logging is disabled."""

    if not config.get("enabled", False):
        return []

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    secrets = [os.getenv(name) or "" for name in secret_env_names(config, token_env)]
    formatter = SecretMaskingFormatter(secrets)

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        # stderr keeps log output apart from the rendered result on stdout.
        handlers.append(logging.StreamHandler(sys.stderr))
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_file_handler(file_cfg, project_root))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def configure_logging(config: Mapping, project_root: str, token_env: Optional[str] = None) -> None:
    handlers = build_handlers(config or {}, project_root, token_env)
    if not handlers:
        return
    logging.basicConfig(level=handlers[0].level, handlers=handlers)
