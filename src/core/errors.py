"""fb2shelf exception hierarchy.

Fatal batch errors and per-entry errors are separate types so the
ingest pipeline can isolate entry failures without inspecting messages.
"""

from __future__ import annotations


class ShelfError(Exception):
    """Base exception for all fb2shelf failures."""


class ShelfConfigError(ShelfError):
    """Raised for invalid runtime configuration."""


class ShelfArchiveError(ShelfError):
    """Raised when an archive cannot be opened or listed at all."""


class ShelfEntryError(ShelfError):
    """Raised when a single archive entry cannot be opened or read."""


class ShelfExtractionError(ShelfError):
    """Raised when an entry's bytes do not yield a valid book record.

    Attributes:
        reason: ``"malformed"`` for unparseable documents,
            ``"missing_title"`` when the mandatory title is absent.
    """

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class ShelfStoreError(ShelfError):
    """Raised for book store persistence failures."""


class ShelfExportError(ShelfError):
    """Raised for site export failures."""


class ShelfDependencyError(ShelfError):
    """Raised when an optional runtime dependency is missing."""
