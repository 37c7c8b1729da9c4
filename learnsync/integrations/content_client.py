"""
Content service client: courses, lessons and slides (read-only).
"""

from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from learnsync.core.models import Course, Lesson, Slide

from .api_client import ApiClient


class ContentClient(ApiClient):
    """HTTP client for the course content service."""

    async def get_course(self, course_id: str) -> dict[str, Any]:
        return await self._get(f"/courses/{course_id}")

    async def get_lessons_by_course(self, course_id: str) -> list[dict[str, Any]]:
        return await self._get("/lessons", params={"courseId": course_id}) or []

    async def get_slides_by_lesson(self, lesson_id: str) -> list[dict[str, Any]]:
        return await self._get("/slides", params={"lessonId": lesson_id}) or []

    async def get_course_with_content(self, course_id: str) -> Course:
        """
        Hydrate the full course tree in one go.

        Lessons and slides are sorted by their `order` field.

        Raises:
            ApiError: On a non-2xx response
            httpx.RequestError: On connection failure
        """
        course_data = await self.get_course(course_id)
        lessons_data = await self.get_lessons_by_course(course_id)

        slides_per_lesson = await asyncio.gather(
            *(self.get_slides_by_lesson(str(lesson.get("_id") or lesson.get("id") or ""))
              for lesson in lessons_data)
        )

        lessons = [
            Lesson.from_dict(lesson, [Slide.from_dict(slide) for slide in slides])
            for lesson, slides in zip(lessons_data, slides_per_lesson)
        ]
        course = Course.from_dict(course_data or {"_id": course_id}, lessons)
        if not course.id:
            course.id = course_id

        logger.debug(
            "Loaded course {} with {} lessons", course.id, len(course.lessons)
        )
        return course
