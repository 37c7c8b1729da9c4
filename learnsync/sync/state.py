"""Mutable per-mount session state, owned by SessionController."""

from __future__ import annotations

from dataclasses import dataclass

from learnsync.core.models import Course, Identity, Lesson, ProgressRecord, SessionCursor


@dataclass
class SessionState:
    """
    Everything a mounted session mutates.

    One instance per mount; components receive it by reference instead of
    reaching for module-level state.
    """

    token: str
    course: Course
    identity: Identity
    cursor: SessionCursor
    record: ProgressRecord | None = None
    mounted: bool = True

    @property
    def course_id(self) -> str:
        return self.course.id

    @property
    def record_id(self) -> str | None:
        return self.record.id if self.record else None

    @property
    def current_lesson(self) -> Lesson | None:
        return self.course.get_lesson(self.cursor.lesson_id)

    @property
    def current_slide_id(self) -> str | None:
        lesson = self.current_lesson
        if lesson is None or not lesson.slides:
            return None
        if 0 <= self.cursor.slide_index < len(lesson.slides):
            return lesson.slides[self.cursor.slide_index].id
        return None
