"""
Fakes for the backend service clients.

The fakes mirror the public surface of ContentClient, IdentityClient and
ProgressClient so the sync components can be exercised without a network.
Failure switches raise the same exceptions the real clients do.
"""

import asyncio
from typing import Any

import httpx
import pytest

from learnsync.core.errors import ApiError, LocalStorageFailed
from learnsync.core.models import ProgressRecord
from learnsync.storage.kv_store import MemoryKeyValueStore


def unreachable() -> httpx.ConnectError:
    return httpx.ConnectError("progress service unreachable")


class FakeProgressClient:
    """In-memory progress service with per-endpoint failure switches."""

    def __init__(self):
        self.records: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.create_count = 0
        self.fail_get = False
        self.fail_create = False
        self.fail_complete = False
        self.fail_save = False
        self.fail_time = 0  # number of upcoming time-spent calls that fail
        self.hang = False
        self.percentage = 0.0

    def seed(self, data: dict[str, Any]) -> None:
        self.records[(data["studentId"], data["courseId"])] = dict(data)

    def _by_id(self, record_id: str) -> dict[str, Any]:
        for data in self.records.values():
            if data["_id"] == record_id:
                return data
        raise ApiError(404, f"progress {record_id} not found")

    async def _maybe_hang(self) -> None:
        if self.hang:
            await asyncio.Event().wait()

    async def get_by_student_and_course(self, student_id, course_id):
        self.calls.append(("get", (student_id, course_id)))
        await asyncio.sleep(0)
        if self.fail_get:
            raise unreachable()
        data = self.records.get((student_id, course_id))
        return ProgressRecord.from_dict(data) if data else None

    async def create(self, payload):
        self.calls.append(("create", payload))
        await asyncio.sleep(0)
        if self.fail_create:
            raise ApiError(500, "create failed")
        self.create_count += 1
        data = {**payload, "_id": f"progress-{self.create_count}"}
        self.records[(payload["studentId"], payload["courseId"])] = data
        return ProgressRecord.from_dict(data)

    async def complete_lesson(self, record_id, lesson_id, time_spent_minutes):
        self.calls.append(("complete", (record_id, lesson_id, time_spent_minutes)))
        await self._maybe_hang()
        if self.fail_complete:
            raise unreachable()
        data = self._by_id(record_id)
        data.setdefault("completedLessons", {})[lesson_id] = {
            "isCompleted": True,
            "timeSpent": time_spent_minutes,
        }
        return ProgressRecord.from_dict(data)

    async def save_code(self, record_id, lesson_id, language, code):
        self.calls.append(("save_code", (record_id, lesson_id, language, code)))
        await self._maybe_hang()
        if self.fail_save:
            raise ApiError(503, "save-code unavailable")
        data = self._by_id(record_id)
        data.setdefault("lessonCode", {})[lesson_id] = {"language": language, "code": code}
        return ProgressRecord.from_dict(data)

    async def update_time_spent(self, record_id, payload):
        self.calls.append(("time", (record_id, payload)))
        await self._maybe_hang()
        if self.fail_time:
            self.fail_time -= 1
            raise unreachable()
        data = self._by_id(record_id)
        current = data.get("timeSpent") or 0
        if isinstance(current, dict):
            current = sum(current.values())
        data["timeSpent"] = current + int(payload.get("minutes", 0))
        if "lessonId" in payload:
            data["currentLesson"] = payload["lessonId"]
            data.setdefault("completedLessons", {}).setdefault(
                payload["lessonId"], {"isCompleted": False, "timeSpent": 0}
            )
        if "slideId" in payload:
            data["currentSlide"] = payload["slideId"]
        return ProgressRecord.from_dict(data)

    async def get_completion_percentage(self, student_id, course_id):
        if self.fail_get:
            raise unreachable()
        return self.percentage

    def calls_named(self, name: str) -> list[Any]:
        return [args for call, args in self.calls if call == name]

    async def close(self):
        pass


class FakeIdentityClient:
    """Identity service keyed by email."""

    def __init__(self):
        self.users: dict[str, dict[str, Any]] = {}
        self.students: dict[str, dict[str, Any]] = {}
        self.lookups = 0
        self.pings: list[str] = []
        self.fail = False
        self.fail_ping = False

    def add_student(self, email, student_id="student-1", user_id="user-1", name="Ada Lovelace", role="student"):
        self.users[email] = {"_id": user_id, "email": email, "name": name, "role": role}
        self.students[email] = {"_id": student_id, "email": email}

    async def get_user_by_email(self, email):
        self.lookups += 1
        if self.fail:
            raise unreachable()
        if email not in self.users:
            raise ApiError(404, "user not found")
        return self.users[email]

    async def get_student_by_email(self, email):
        if self.fail:
            raise unreachable()
        if email not in self.students:
            raise ApiError(404, "student not found")
        return self.students[email]

    async def ping_activity(self, student_id):
        self.pings.append(student_id)
        if self.fail_ping:
            raise unreachable()
        return {"_id": student_id}

    async def close(self):
        pass


class FailingStore(MemoryKeyValueStore):
    """Key-value store whose writes always fail."""

    def set(self, key, value):
        raise LocalStorageFailed(f"disk full writing {key}")


@pytest.fixture
def progress_client():
    return FakeProgressClient()


@pytest.fixture
def identity_client():
    client = FakeIdentityClient()
    client.add_student("ada@example.com")
    return client


@pytest.fixture
def memory_store():
    return MemoryKeyValueStore()


@pytest.fixture
def failing_store():
    return FailingStore()
