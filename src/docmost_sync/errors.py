"""Exception hierarchy shared by the synchronization engine and the CLI."""

from __future__ import annotations

from typing import Optional


class DocmostSyncError(RuntimeError):
    """Base class for all errors raised by docmost-sync."""


class ConfigError(DocmostSyncError):
    """Configuration is missing or invalid."""


class RetrievalError(DocmostSyncError):
    """The remote workspace could not be reached or returned an unusable response."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MetadataError(DocmostSyncError):
    """The ``_metadata.json`` document of a working tree is missing or malformed."""


class PublishError(DocmostSyncError):
    """The directory swap for a space failed; the previously published tree is kept."""


class LockError(DocmostSyncError):
    """Another process already holds the instance lock."""


class SyncCancelledError(DocmostSyncError):
    """A run stopped at a space boundary because shutdown was requested."""


class PartialSyncError(DocmostSyncError):
    """At least one space failed during an otherwise completed run."""

    def __init__(self, failed_spaces: list[str]) -> None:
        names = ", ".join(failed_spaces)
        super().__init__(f"{len(failed_spaces)} space(s) failed: {names}")
        self.failed_spaces = failed_spaces
