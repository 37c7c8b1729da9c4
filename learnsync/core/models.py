"""
Domain models for the learning-session synchronizer.

Payload parsing lives next to each type (`from_dict` / `to_dict`) so the
HTTP clients stay thin wrappers around the service endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

GUEST_ID = "guest"


class Role(str, Enum):
    """Account role reported by the identity service."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"
    PARENT = "parent"

    @classmethod
    def parse(cls, value: Any) -> Role:
        """Parse a role string, defaulting to STUDENT."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.STUDENT


# =============================================================================
# Ownership
# =============================================================================


@dataclass(frozen=True)
class GuestOwner:
    """Unauthenticated session; never persisted remotely."""

    @property
    def student_id(self) -> str:
        return GUEST_ID


@dataclass(frozen=True)
class StudentOwner:
    """Session backed by a student account."""

    student_id: str


Owner = Union[GuestOwner, StudentOwner]


def owner_for(student_id: str | None) -> Owner:
    """Build the owner variant for a raw student id."""
    if not student_id or student_id == GUEST_ID:
        return GuestOwner()
    return StudentOwner(student_id=student_id)


# =============================================================================
# Identity
# =============================================================================


@dataclass(frozen=True)
class Identity:
    """Resolved learner identity, immutable for the life of a session."""

    owner: Owner
    email: str = GUEST_ID
    user_id: str = GUEST_ID
    name: str = "Guest User"
    initials: str = "GU"
    role: Role = Role.STUDENT

    @classmethod
    def guest(cls, email: str = GUEST_ID) -> Identity:
        return cls(owner=GuestOwner(), email=email or GUEST_ID)

    @property
    def student_id(self) -> str:
        return self.owner.student_id

    @property
    def is_guest(self) -> bool:
        return isinstance(self.owner, GuestOwner)

    @property
    def can_sync(self) -> bool:
        """Only student accounts with the student role persist remotely."""
        return isinstance(self.owner, StudentOwner) and self.role == Role.STUDENT


# =============================================================================
# Course content
# =============================================================================


def _sort_by_order(items: list[Any]) -> list[Any]:
    """Sort by `order`, keeping service order for items without one."""
    if all(item.order is not None for item in items):
        return sorted(items, key=lambda item: item.order)
    return list(items)


@dataclass
class Slide:
    id: str
    title: str = ""
    order: int | None = None
    starting_code: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Slide:
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            title=data.get("title", ""),
            order=data.get("order"),
            starting_code=data.get("startingCode") or "",
        )


@dataclass
class Lesson:
    id: str
    title: str = ""
    order: int | None = None
    slides: list[Slide] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any], slides: list[Slide] | None = None) -> Lesson:
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            title=data.get("title", ""),
            order=data.get("order"),
            slides=_sort_by_order(slides or []),
        )

    @property
    def starting_code(self) -> str:
        return self.slides[0].starting_code if self.slides else ""

    def slide_index(self, slide_id: str | None) -> int | None:
        """Index of a slide id in this lesson, or None."""
        if not slide_id:
            return None
        for index, slide in enumerate(self.slides):
            if slide.id == slide_id:
                return index
        return None


@dataclass
class Course:
    id: str
    title: str = ""
    lessons: list[Lesson] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any], lessons: list[Lesson] | None = None) -> Course:
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            title=data.get("courseTitle") or data.get("title", ""),
            lessons=_sort_by_order(lessons or []),
        )

    @property
    def first_lesson(self) -> Lesson | None:
        return self.lessons[0] if self.lessons else None

    def get_lesson(self, lesson_id: str | None) -> Lesson | None:
        for lesson in self.lessons:
            if lesson.id == lesson_id:
                return lesson
        return None


# =============================================================================
# Progress
# =============================================================================


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _sum_time(value: Any) -> int:
    """`timeSpent` is either total minutes or a week-key -> minutes map."""
    if isinstance(value, dict):
        return int(sum(v for v in value.values() if isinstance(v, (int, float))))
    if isinstance(value, (int, float)):
        return int(value)
    return 0


def _as_mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _last_position(value: Any) -> dict[str, Any] | None:
    """Last entry of the legacy `progress` list, if any."""
    if not isinstance(value, list):
        return None
    entries = [entry for entry in value if isinstance(entry, dict)]
    return entries[-1] if entries else None


@dataclass
class LessonProgress:
    """Per-lesson entry inside a progress record."""

    lesson_id: str
    is_completed: bool = False
    completed_at: datetime | None = None
    time_spent: int = 0
    last_accessed: datetime | None = None

    @classmethod
    def from_dict(cls, lesson_id: str, data: dict[str, Any]) -> LessonProgress:
        return cls(
            lesson_id=lesson_id,
            is_completed=bool(data.get("isCompleted", False)),
            completed_at=_parse_datetime(data.get("completedAt")),
            time_spent=_sum_time(data.get("timeSpent")),
            last_accessed=_parse_datetime(data.get("lastAccessed")),
        )


@dataclass
class SavedCode:
    language: str
    code: str
    timestamp: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SavedCode:
        return cls(
            language=data.get("language", "javascript"),
            code=data.get("code", ""),
            timestamp=_parse_datetime(data.get("timestamp")),
        )


@dataclass
class ProgressRecord:
    """The single server-side progress record for a (student, course) pair."""

    id: str
    owner: Owner
    course_id: str
    current_lesson_id: str | None = None
    current_slide_id: str | None = None
    accumulated_time_spent: int = 0  # minutes
    lessons: dict[str, LessonProgress] = field(default_factory=dict)
    last_saved_code: dict[str, SavedCode] = field(default_factory=dict)
    last_accessed: datetime | None = None
    completion_percentage: float = 0.0
    completed_lesson_count: int = 0
    total_lessons: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProgressRecord:
        """
        Parse a progress service response.

        Accepts both the full record (`completedLessons` / `lessonCode` maps,
        weekly `timeSpent`) and the per-course summary, where
        `completedLessons` and `timeSpent` are plain numbers and the last
        position lives in the legacy `progress` list.
        """
        completed = _as_mapping(data.get("completedLessons"))
        lesson_code = _as_mapping(data.get("lessonCode"))

        lessons = {
            str(lesson_id): LessonProgress.from_dict(str(lesson_id), entry)
            for lesson_id, entry in completed.items()
            if isinstance(entry, dict)
        }
        saved_code = {
            str(lesson_id): SavedCode.from_dict(entry)
            for lesson_id, entry in lesson_code.items()
            if isinstance(entry, dict)
        }

        completed_count = data.get("completedLessons")
        if isinstance(completed_count, bool) or not isinstance(completed_count, (int, float)):
            completed_count = sum(1 for entry in lessons.values() if entry.is_completed)

        current_lesson = data.get("currentLesson")
        current_slide = data.get("currentSlide")

        last = _last_position(data.get("progress"))
        if last is not None:
            last_lesson = last.get("lessonId")
            last_lesson = str(last_lesson) if last_lesson else None
            if current_lesson is None:
                current_lesson = last_lesson
            if current_slide is None and last_lesson and last_lesson == str(current_lesson):
                current_slide = last.get("slideId")
            if last_lesson and last.get("code") and last_lesson not in saved_code:
                saved_code[last_lesson] = SavedCode.from_dict(
                    {"code": last["code"], "timestamp": last.get("lastAccessed")}
                )

        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            owner=owner_for(str(data.get("studentId") or "")),
            course_id=str(data.get("courseId") or ""),
            current_lesson_id=str(current_lesson) if current_lesson else None,
            current_slide_id=str(current_slide) if current_slide else None,
            accumulated_time_spent=_sum_time(data.get("timeSpent")),
            lessons=lessons,
            last_saved_code=saved_code,
            last_accessed=_parse_datetime(data.get("lastAccessed") or data.get("updatedAt")),
            completion_percentage=float(data.get("completionPercentage") or 0.0),
            completed_lesson_count=int(completed_count),
            total_lessons=int(data.get("totalLessons") or 0),
        )

    @property
    def student_id(self) -> str:
        return self.owner.student_id

    def saved_code_for(self, lesson_id: str) -> str | None:
        saved = self.last_saved_code.get(lesson_id)
        return saved.code if saved else None


def initial_progress_payload(student_id: str, course_id: str, first_lesson_id: str | None) -> dict[str, Any]:
    """Defaults for a brand-new progress record."""
    payload: dict[str, Any] = {
        "studentId": student_id,
        "courseId": course_id,
        "timeSpent": 0,
        "completionPercentage": 0,
    }
    if first_lesson_id:
        payload["currentLesson"] = first_lesson_id
    return payload


# =============================================================================
# Session cursor
# =============================================================================


@dataclass
class SessionCursor:
    """In-memory pointer to what the learner is viewing and editing."""

    lesson_id: str
    slide_index: int = 0
    code_buffer: str = ""
