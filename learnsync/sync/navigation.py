"""
LessonNavigationCoordinator: move the cursor, then record the position.

The cursor update is synchronous so the view reflects the new lesson or
slide immediately. Recording the position remotely is a background task
whose failure is logged and never rolls navigation back.
"""

from __future__ import annotations

from datetime import datetime

import httpx
from loguru import logger

from learnsync.core.errors import ApiError
from learnsync.core.models import Lesson, LessonProgress, ProgressRecord, utcnow
from learnsync.core.outcomes import Resolved
from learnsync.core.tasks import BackgroundTasks
from learnsync.integrations.progress_client import ProgressClient
from learnsync.storage.local_mirror import LocalMirror

from .progress_resolver import ProgressRecordResolver
from .state import SessionState


def initial_code_for(
    state: SessionState, lesson: Lesson, mirror: LocalMirror | None
) -> str:
    """
    Pick the buffer contents for a lesson.

    Local mirror first (written on every save attempt on this device), then
    the record's last saved code, then the first slide's starting code.
    """
    if mirror is not None:
        mirrored = mirror.read(state.course_id, lesson.id, state.identity.student_id)
        if mirrored is not None:
            return mirrored

    if state.record is not None:
        saved = state.record.saved_code_for(lesson.id)
        if saved is not None:
            return saved

    return lesson.starting_code


class LessonNavigationCoordinator:
    """Handles lesson and slide selection for a mounted session."""

    def __init__(
        self,
        record_resolver: ProgressRecordResolver,
        client: ProgressClient,
        tasks: BackgroundTasks,
        mirror: LocalMirror | None = None,
    ):
        self.record_resolver = record_resolver
        self.client = client
        self.tasks = tasks
        self.mirror = mirror

    def select_lesson(self, state: SessionState, lesson_id: str) -> None:
        """
        Switch lessons: first slide, buffer reloaded for the new lesson.

        Raises:
            ValueError: If the lesson is not part of the course
        """
        lesson = state.course.get_lesson(lesson_id)
        if lesson is None:
            raise ValueError(f"Lesson {lesson_id} is not part of course {state.course_id}")

        state.cursor.lesson_id = lesson.id
        state.cursor.slide_index = 0
        state.cursor.code_buffer = initial_code_for(state, lesson, self.mirror)

        self._record_position(state, lesson.id, lesson.slides[0].id if lesson.slides else None)

    def select_slide(self, state: SessionState, index: int) -> None:
        """
        Move to a slide in the current lesson. The buffer is left as is.

        Raises:
            ValueError: If the index is out of range
        """
        lesson = state.current_lesson
        slide_count = len(lesson.slides) if lesson else 0
        if not 0 <= index < max(slide_count, 1):
            raise ValueError(f"Slide index {index} out of range (0..{slide_count - 1})")

        state.cursor.slide_index = index
        slide_id = lesson.slides[index].id if lesson and lesson.slides else None
        self._record_position(state, state.cursor.lesson_id, slide_id)

    def _record_position(self, state: SessionState, lesson_id: str, slide_id: str | None) -> None:
        if not state.identity.can_sync:
            return
        self.tasks.spawn(
            self.record_position(state, lesson_id, slide_id), label="navigation"
        )

    async def record_position(
        self, state: SessionState, lesson_id: str, slide_id: str | None
    ) -> bool:
        """
        Patch lastAccessed for a known lesson entry, or create a
        zero-progress entry for a new one. Returns True on success.
        """
        record = state.record or await self._resolve(state)
        if record is None:
            return False

        now = utcnow()
        entry = record.lessons.get(lesson_id)
        payload: dict[str, object] = {
            "lessonId": lesson_id,
            "lastAccessed": now.isoformat(),
        }
        if slide_id:
            payload["slideId"] = slide_id
        if entry is None:
            payload["minutes"] = 0

        self._apply_locally(record, lesson_id, slide_id, entry, now)

        try:
            updated = await self.client.update_time_spent(record.id, payload)
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Failed to record position {}/{}: {}", lesson_id, slide_id, e)
            return False

        if updated is not None and updated.id:
            self.record_resolver.remember(updated)
            if state.record is None or state.record.id == updated.id:
                state.record = updated
        return True

    async def _resolve(self, state: SessionState) -> ProgressRecord | None:
        cached = self.record_resolver.last_resolved(state.identity.student_id, state.course_id)
        if cached is not None:
            state.record = cached
            return cached

        first = state.course.first_lesson
        outcome = await self.record_resolver.resolve(
            state.identity.student_id, state.course_id, first.id if first else None
        )
        if isinstance(outcome, Resolved):
            state.record = outcome.record
            return outcome.record
        return None

    @staticmethod
    def _apply_locally(
        record: ProgressRecord,
        lesson_id: str,
        slide_id: str | None,
        entry: LessonProgress | None,
        now: datetime,
    ) -> None:
        if entry is None:
            record.lessons[lesson_id] = LessonProgress(lesson_id=lesson_id, last_accessed=now)
        else:
            entry.last_accessed = now
        record.current_lesson_id = lesson_id
        if slide_id:
            record.current_slide_id = slide_id
        record.last_accessed = now
