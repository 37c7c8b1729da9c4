"""
Local mirror of the most recently edited code per lesson.

Keys follow the IDE's browser storage scheme:
    code-{courseId}-{lessonId}            (no student, legacy)
    code-{courseId}-{lessonId}-{studentId}
Guests are stored under the "guest" student id.
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from learnsync.core.errors import LocalStorageFailed


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> bool: ...

    def keys(self, prefix: str = "") -> list[str]: ...


def mirror_key(course_id: str, lesson_id: str, student_id: str | None = None) -> str:
    """Build the storage key for a lesson's code."""
    key = f"code-{course_id}-{lesson_id}"
    if student_id:
        key = f"{key}-{student_id}"
    return key


class LocalMirror:
    """Code cache written synchronously on every save attempt."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def write(self, course_id: str, lesson_id: str, code: str, student_id: str | None = None) -> str:
        """
        Store the code text and return the key used.

        Raises:
            LocalStorageFailed: If the underlying store rejects the write
        """
        key = mirror_key(course_id, lesson_id, student_id)
        try:
            self.store.set(key, code)
        except LocalStorageFailed:
            raise
        except Exception as e:
            raise LocalStorageFailed(f"Could not write {key}: {e}") from e

        logger.debug("Mirrored {} chars to {}", len(code), key)
        return key

    def read(self, course_id: str, lesson_id: str, student_id: str | None = None) -> str | None:
        """
        Read mirrored code, falling back to the student-less legacy key.
        """
        code = self.store.get(mirror_key(course_id, lesson_id, student_id))
        if code is None and student_id:
            code = self.store.get(mirror_key(course_id, lesson_id))
        return code

    def clear(self, course_id: str, lesson_id: str, student_id: str | None = None) -> bool:
        return self.store.delete(mirror_key(course_id, lesson_id, student_id))

    def keys_for_course(self, course_id: str) -> list[str]:
        return self.store.keys(f"code-{course_id}-")
