"""CodeLinks exception hierarchy.

All exceptions inherit from CodeLinksError so callers can catch the base
class when they want to handle any CodeLinks failure uniformly.
"""

from __future__ import annotations

from pathlib import Path


class CodeLinksError(Exception):
    """Base exception for all CodeLinks errors."""


class ConfigError(CodeLinksError):
    """Configuration-related errors (bad TOML values, invalid overrides, etc.)."""


class IndexerError(CodeLinksError):
    """Errors while walking a project tree or maintaining the tag index."""


class ScanError(IndexerError):
    """A single file could not be read for marker scanning."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = path
