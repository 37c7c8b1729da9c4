"""
CodeSnapshotSaver: the save pipeline.

1. Mirror the buffer locally (always first, never contingent on the network)
2. Stop for guests and non-student roles
3. Re-verify the identity
4. Resolve the progress record
5. Detect the language
6. Mark the lesson complete with elapsed minutes (best-effort)
7. Persist the code (the only remote step that flips the outcome)
8. Notify the learner

Nothing raises past `save()`; every path returns a SaveOutcome.
"""

from __future__ import annotations

from typing import Callable

import httpx
from loguru import logger

from learnsync.core.errors import ApiError, LocalStorageFailed, PersistFailed
from learnsync.core.language import detect_language
from learnsync.core.models import ProgressRecord
from learnsync.core.outcomes import (
    Failed,
    FailureKind,
    LocalOnly,
    LocalOnlyReason,
    Notification,
    Resolved,
    SaveOutcome,
    Synced,
    describe_outcome,
)
from learnsync.integrations.progress_client import ProgressClient
from learnsync.storage.local_mirror import LocalMirror

from .identity_resolver import IdentityResolver
from .progress_resolver import ProgressRecordResolver
from .state import SessionState

Notifier = Callable[[Notification], None]


def log_notification(notification: Notification) -> None:
    """Default notifier: route the message to the log."""
    logger.info("[{}] {}", notification.level.value, notification.message)


class CodeSnapshotSaver:
    """Orchestrates a save across the local mirror and the progress service."""

    def __init__(
        self,
        mirror: LocalMirror,
        identity_resolver: IdentityResolver,
        record_resolver: ProgressRecordResolver,
        client: ProgressClient,
        elapsed_minutes: Callable[[], int] = lambda: 0,
        notify: Notifier | None = None,
    ):
        self.mirror = mirror
        self.identity_resolver = identity_resolver
        self.record_resolver = record_resolver
        self.client = client
        self.elapsed_minutes = elapsed_minutes
        self.notify = notify or log_notification

    async def save(self, state: SessionState) -> SaveOutcome:
        """Run the pipeline and report the outcome to the learner."""
        outcome = await self._run(state)

        logger.info(
            "Save {}/{} -> {}", state.course_id, state.cursor.lesson_id, outcome
        )
        if state.mounted:
            try:
                self.notify(describe_outcome(outcome))
            except Exception as exc:
                logger.warning("Save notification failed: {}", exc)
        return outcome

    async def _run(self, state: SessionState) -> SaveOutcome:
        lesson_id = state.cursor.lesson_id
        code = state.cursor.code_buffer

        # 1. Local mirror
        try:
            self.mirror.write(state.course_id, lesson_id, code, state.identity.student_id)
        except LocalStorageFailed as e:
            logger.error("Local mirror write failed: {}", e)
            return Failed(FailureKind.LOCAL_STORAGE_FAILED, str(e))

        # 2. Guest / role gate
        if state.identity.is_guest:
            return LocalOnly(LocalOnlyReason.GUEST)
        if not state.identity.can_sync:
            return LocalOnly(LocalOnlyReason.ROLE)

        # 3. Identity (cached after mount)
        identity = await self.identity_resolver.resolve(state.token)
        if not identity.can_sync:
            return LocalOnly(
                LocalOnlyReason.GUEST, FailureKind.IDENTITY_LOOKUP_FAILED
            )
        student_id = identity.student_id

        # 4. Progress record
        first_lesson = state.course.first_lesson
        resolved = await self.record_resolver.resolve(
            student_id, state.course_id, first_lesson.id if first_lesson else None
        )
        if not isinstance(resolved, Resolved):
            return LocalOnly(LocalOnlyReason.NETWORK, resolved.kind, resolved.detail)
        state.record = resolved.record
        record_id = resolved.record.id

        # 5. Language
        language = detect_language(code)

        # 6. Lesson completion (best-effort)
        minutes = self.elapsed_minutes()
        try:
            updated = await self.client.complete_lesson(record_id, lesson_id, minutes)
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Could not mark lesson {} complete: {}", lesson_id, e)
        else:
            self._refresh(state, updated)

        # 7. Persist code
        try:
            updated = await self._persist(record_id, lesson_id, language, code)
        except PersistFailed as e:
            logger.warning("Code persist failed: {}", e)
            return LocalOnly(LocalOnlyReason.NETWORK, FailureKind.PERSIST_FAILED, str(e))
        self._refresh(state, updated)

        return Synced(record_id=record_id, language=language)

    async def _persist(
        self, record_id: str, lesson_id: str, language: str, code: str
    ) -> ProgressRecord | None:
        try:
            return await self.client.save_code(record_id, lesson_id, language, code)
        except (ApiError, httpx.HTTPError) as e:
            raise PersistFailed(f"record {record_id}: {e}") from e

    def _refresh(self, state: SessionState, record: ProgressRecord | None) -> None:
        if record is not None and record.id:
            state.record = record
            self.record_resolver.remember(record)
