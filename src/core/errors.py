"""Errors raised across the core/adapter boundary."""

from __future__ import annotations


class SourceError(Exception):
    """A log source could not answer a lookup."""


class SourceFileNotFound(SourceError):
    """The log file does not exist."""


class SourceUnavailable(SourceError):
    """The search mechanism is missing or failed."""


class SourceTimeout(SourceError):
    """The lookup exceeded its time budget."""


# Soft failures degrade to "no candidate from this source".
SOFT_SOURCE_ERRORS = (SourceFileNotFound, SourceUnavailable, SourceTimeout)


class DirectoryError(Exception):
    """The live item directory could not be reached or returned garbage."""
