"""
Progress service client.

The sync layer owns the client-side contract for these endpoints. Every
write returns the updated record so callers can refresh their snapshot.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from learnsync.core.errors import ApiError
from learnsync.core.models import ProgressRecord

from .api_client import ApiClient


def _record(data: Any) -> ProgressRecord | None:
    return ProgressRecord.from_dict(data) if isinstance(data, dict) and data else None


class ProgressClient(ApiClient):
    """HTTP client for per-course progress records."""

    async def get_by_student_and_course(
        self, student_id: str, course_id: str
    ) -> ProgressRecord | None:
        """
        Fetch the record for a (student, course) pair.

        Returns:
            The record, or None when the service reports it absent
            (404 or an empty body). A summary that names the pair but
            carries no id is still returned, with an empty `id`.

        Raises:
            ApiError: On any other non-2xx response
            httpx.RequestError: On connection failure
        """
        try:
            data = await self._get(f"/progress/{student_id}/{course_id}")
        except ApiError as e:
            if e.is_not_found:
                return None
            raise

        if not isinstance(data, dict) or not any(
            data.get(key) for key in ("_id", "id", "studentId", "courseId")
        ):
            return None
        return ProgressRecord.from_dict(data)

    async def create(self, payload: dict[str, Any]) -> ProgressRecord | None:
        data = await self._post("/progress", payload)
        logger.info(
            "Created progress record for student {} in course {}",
            payload.get("studentId"),
            payload.get("courseId"),
        )
        return _record(data)

    async def complete_lesson(
        self, record_id: str, lesson_id: str, time_spent_minutes: int
    ) -> ProgressRecord | None:
        data = await self._patch(
            f"/progress/{record_id}/complete-lesson",
            {"lessonId": lesson_id, "timeSpent": time_spent_minutes},
        )
        return _record(data)

    async def save_code(
        self, record_id: str, lesson_id: str, language: str, code: str
    ) -> ProgressRecord | None:
        data = await self._patch(
            f"/progress/{record_id}/save-code",
            {"lessonId": lesson_id, "language": language, "code": code},
        )
        return _record(data)

    async def update_time_spent(
        self, record_id: str, payload: dict[str, Any]
    ) -> ProgressRecord | None:
        """
        Patch time spent and/or position.

        Payload keys: minutes, lessonId, slideId, lastAccessed.
        """
        data = await self._patch(f"/progress/{record_id}/time-spent", payload)
        return _record(data)

    async def get_completion_percentage(self, student_id: str, course_id: str) -> float:
        data = await self._get(f"/progress/{student_id}/{course_id}/percentage")
        if not isinstance(data, dict):
            return 0.0
        return float(data.get("percentage") or 0.0)
