"""
Core Module - Shared domain models, outcomes and pure helpers.

Components:
- models: Identity, ProgressRecord, Course tree, SessionCursor
- outcomes: Tagged results (Resolved, Synced, LocalOnly, Failed)
- errors: Exception taxonomy
- language: Source language detection
- identity_token: Route token codec and initials
- tasks: Background task group
"""

from learnsync.core.errors import (
    ApiError,
    ContentLoadFailed,
    IdentityLookupFailed,
    LearnSyncError,
    LocalStorageFailed,
    PersistFailed,
    ResolutionFailed,
)
from learnsync.core.identity_token import decode_token, encode_email, generate_initials
from learnsync.core.language import detect_language
from learnsync.core.models import (
    GUEST_ID,
    Course,
    GuestOwner,
    Identity,
    Lesson,
    LessonProgress,
    ProgressRecord,
    Role,
    SavedCode,
    SessionCursor,
    Slide,
    StudentOwner,
)
from learnsync.core.outcomes import (
    Failed,
    FailureKind,
    LocalOnly,
    LocalOnlyReason,
    Notification,
    NotificationLevel,
    Resolved,
    SaveOutcome,
    Synced,
)
from learnsync.core.tasks import BackgroundTasks

__all__ = [
    # Errors
    "LearnSyncError",
    "ApiError",
    "IdentityLookupFailed",
    "ResolutionFailed",
    "PersistFailed",
    "LocalStorageFailed",
    "ContentLoadFailed",
    # Models
    "GUEST_ID",
    "Role",
    "GuestOwner",
    "StudentOwner",
    "Identity",
    "Slide",
    "Lesson",
    "Course",
    "LessonProgress",
    "SavedCode",
    "ProgressRecord",
    "SessionCursor",
    # Outcomes
    "FailureKind",
    "LocalOnlyReason",
    "Resolved",
    "Synced",
    "LocalOnly",
    "Failed",
    "SaveOutcome",
    "Notification",
    "NotificationLevel",
    # Helpers
    "detect_language",
    "encode_email",
    "decode_token",
    "generate_initials",
    "BackgroundTasks",
]
