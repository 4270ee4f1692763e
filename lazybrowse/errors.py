"""Error types raised by pager components.

Local failures are converted to status-line messages by the dispatcher.
Only the top-level recovery point in ``lazybrowse.cli`` sees anything else.
"""

from __future__ import annotations

from pathlib import Path


class BrowseError(Exception):
    """Base class for recoverable pager errors."""


class OpenFailure(BrowseError):
    """A file in the browsing list could not be opened."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class PatternError(BrowseError):
    """A search pattern failed to compile."""

    def __init__(self, pattern: str, message: str) -> None:
        super().__init__(f"{message}: {pattern}")
        self.pattern = pattern
        self.message = message
