"""
Tagged outcomes returned across component boundaries.

Every asynchronous operation reports its result as one of these values
instead of raising, and call sites branch on the concrete type.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .models import ProgressRecord


class FailureKind(str, Enum):
    """Error taxonomy for the sync subsystem."""

    IDENTITY_LOOKUP_FAILED = "identity_lookup_failed"
    RESOLUTION_FAILED = "resolution_failed"
    PERSIST_FAILED = "persist_failed"
    LOCAL_STORAGE_FAILED = "local_storage_failed"


class LocalOnlyReason(str, Enum):
    """Why a save stopped at the local mirror."""

    GUEST = "guest"
    ROLE = "role"  # Authenticated, but not a student
    NETWORK = "network"


@dataclass(frozen=True)
class Resolved:
    """A progress record was found or created."""

    record: ProgressRecord


@dataclass(frozen=True)
class Synced:
    """Code reached the local mirror and the remote record."""

    record_id: str
    language: str


@dataclass(frozen=True)
class LocalOnly:
    """Code reached the local mirror only."""

    reason: LocalOnlyReason
    failure: FailureKind | None = None
    detail: str = ""


@dataclass(frozen=True)
class Failed:
    """The operation failed outright."""

    kind: FailureKind
    detail: str = ""


ResolveOutcome = Union[Resolved, Failed]
SaveOutcome = Union[Synced, LocalOnly, Failed]


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """User-visible message emitted by the save pipeline."""

    level: NotificationLevel
    message: str


def describe_outcome(outcome: SaveOutcome) -> Notification:
    """Map a save outcome to the message shown to the learner."""
    if isinstance(outcome, Synced):
        return Notification(NotificationLevel.SUCCESS, "Code saved")
    if isinstance(outcome, LocalOnly):
        if outcome.failure == FailureKind.PERSIST_FAILED:
            return Notification(
                NotificationLevel.WARNING, "Saved locally, sync failed"
            )
        if outcome.reason == LocalOnlyReason.NETWORK:
            return Notification(
                NotificationLevel.WARNING,
                "Saved locally only, progress service unreachable",
            )
        return Notification(NotificationLevel.SUCCESS, "Saved locally")
    return Notification(
        NotificationLevel.ERROR, f"Could not save code: {outcome.detail or outcome.kind.value}"
    )
