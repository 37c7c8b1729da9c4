"""
Learning-session synchronizer.

Components (leaf-first):
- identity_resolver: route token -> Identity, guest on failure
- progress_resolver: find-or-create the per-course progress record
- time_tracker: local study clock with periodic flushes
- snapshot_saver: local-first save pipeline
- navigation: cursor updates plus background position recording
- session: SessionController / SessionHandle / mount_session
"""

from .identity_resolver import IdentityResolver
from .navigation import LessonNavigationCoordinator
from .progress_resolver import ProgressRecordResolver
from .session import SessionController, SessionHandle, SessionServices, mount_session
from .snapshot_saver import CodeSnapshotSaver
from .state import SessionState
from .time_tracker import FlushResult, TimeTracker, TrackerState

__all__ = [
    "IdentityResolver",
    "ProgressRecordResolver",
    "TimeTracker",
    "TrackerState",
    "FlushResult",
    "CodeSnapshotSaver",
    "LessonNavigationCoordinator",
    "SessionState",
    "SessionController",
    "SessionHandle",
    "SessionServices",
    "mount_session",
]
