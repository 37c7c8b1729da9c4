"""
Exception types for learnsync.

Component boundaries convert these into tagged outcomes (see outcomes.py);
they only escape a public API for programmer errors or a failed mount.
"""

from __future__ import annotations


class LearnSyncError(Exception):
    """Base class for learnsync errors."""


class ApiError(LearnSyncError):
    """Raised by the HTTP clients for a non-2xx response."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


class IdentityLookupFailed(LearnSyncError):
    """User or student lookup failed; the caller degrades to guest."""


class ResolutionFailed(LearnSyncError):
    """The progress record could not be fetched or created."""


class PersistFailed(LearnSyncError):
    """A resolved record rejected a write."""


class LocalStorageFailed(LearnSyncError):
    """The local key-value store could not be written."""


class ContentLoadFailed(LearnSyncError):
    """The course tree could not be fetched at mount."""
