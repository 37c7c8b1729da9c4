"""
Unit tests for SessionController / mount_session.
"""

import pytest

from config import Settings
from learnsync.core.errors import ApiError, ContentLoadFailed
from learnsync.core.models import Course
from learnsync.core.outcomes import LocalOnly, LocalOnlyReason, Synced
from learnsync.storage.local_mirror import LocalMirror
from learnsync.sync.session import SessionServices, mount_session
from learnsync.sync.time_tracker import TrackerState


class FakeContentClient:
    def __init__(self, course=None, fail=False):
        self.course = course
        self.fail = fail
        self.requests = 0

    async def get_course_with_content(self, course_id):
        self.requests += 1
        if self.fail:
            raise ApiError(503, "content service down")
        return self.course

    async def close(self):
        pass


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def settings():
    return Settings(flush_every_ticks=2, tick_interval_seconds=60)


@pytest.fixture
def services(sample_course, identity_client, progress_client, memory_store):
    return SessionServices(
        content=FakeContentClient(sample_course),
        identity=identity_client,
        progress=progress_client,
        store=memory_store,
    )


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def mount(services, settings, notifications):
    async def _mount(token="ada@example.com", **kwargs):
        kwargs.setdefault("schedule_ticks", False)
        return await mount_session(
            "course-1", token, services, settings, notify=notifications.append, **kwargs
        )

    return _mount


class TestMount:
    """Tests for mount_session()."""

    @pytest.mark.asyncio
    async def test_fresh_student(self, mount, progress_client):
        handle = await mount()

        assert handle.mounted
        assert handle.identity.student_id == "student-1"
        assert handle.record.id == "progress-1"
        assert handle.cursor.lesson_id == "lesson-1"
        assert handle.cursor.slide_index == 0
        assert handle.cursor.code_buffer == "x = 1"
        assert handle.tracker.state == TrackerState.RUNNING
        assert progress_client.create_count == 1

        handle.unmount()

    @pytest.mark.asyncio
    async def test_resumes_from_record(self, mount, progress_client, sample_progress_data):
        progress_client.seed(sample_progress_data)

        handle = await mount()

        assert handle.cursor.lesson_id == "lesson-2"
        assert handle.cursor.slide_index == 1
        assert handle.cursor.code_buffer == "for i in range(10): print(i)"
        assert handle.tracker.accumulated_minutes == 42
        assert progress_client.create_count == 0

        handle.unmount()

    @pytest.mark.asyncio
    async def test_resumes_from_progress_list(self, mount, progress_client):
        progress_client.seed({
            "_id": "progress-7",
            "studentId": "student-1",
            "courseId": "course-1",
            "completedLessons": 1,
            "totalLessons": 2,
            "timeSpent": 25,
            "progress": [
                {"lessonId": "lesson-1", "slideId": "slide-1c", "code": "x = 2", "completed": True},
                {"lessonId": "lesson-2", "slideId": "slide-2b", "code": "resume me", "completed": False},
            ],
        })

        handle = await mount()

        assert handle.record.id == "progress-7"
        assert handle.cursor.lesson_id == "lesson-2"
        assert handle.cursor.slide_index == 1
        assert handle.cursor.code_buffer == "resume me"
        assert handle.tracker.accumulated_minutes == 25
        assert progress_client.create_count == 0

        handle.unmount()

    @pytest.mark.asyncio
    async def test_stale_record_position_falls_back(self, mount, progress_client, sample_progress_data):
        progress_client.seed({**sample_progress_data, "currentLesson": "deleted", "currentSlide": None})

        handle = await mount()

        assert handle.cursor.lesson_id == "lesson-1"
        assert handle.cursor.slide_index == 0

        handle.unmount()

    @pytest.mark.asyncio
    async def test_mirror_wins_over_remote_code(self, mount, memory_store, progress_client, sample_progress_data):
        progress_client.seed(sample_progress_data)
        LocalMirror(memory_store).write("course-1", "lesson-2", "offline edits", "student-1")

        handle = await mount()

        assert handle.cursor.code_buffer == "offline edits"

        handle.unmount()

    @pytest.mark.asyncio
    async def test_guest_mount(self, mount, progress_client, identity_client):
        handle = await mount(token="guest")

        assert handle.identity.is_guest
        assert handle.record is None
        assert progress_client.calls == []
        assert identity_client.lookups == 0

        handle.unmount()

    @pytest.mark.asyncio
    async def test_unreachable_progress_mounts_local_only(self, mount, progress_client):
        progress_client.fail_get = True

        handle = await mount()

        assert handle.identity.can_sync
        assert handle.record is None
        assert handle.tracker.accumulated_minutes == 0

        handle.unmount()

    @pytest.mark.asyncio
    async def test_pre_hydrated_course_skips_content(self, mount, services, sample_course):
        handle = await mount(course=sample_course)

        assert handle.course is sample_course
        assert services.content.requests == 0

        handle.unmount()

    @pytest.mark.asyncio
    async def test_content_failure(self, mount, services):
        services.content.fail = True

        with pytest.raises(ContentLoadFailed):
            await mount()

    @pytest.mark.asyncio
    async def test_empty_course(self, mount, services):
        services.content.course = Course(id="course-1")

        with pytest.raises(ContentLoadFailed):
            await mount()


class TestActiveSession:
    """Tests for operations on a mounted session."""

    @pytest.mark.asyncio
    async def test_edit_and_save(self, mount, progress_client, memory_store, notifications):
        clock = FakeClock()
        handle = await mount(clock=clock)

        handle.update_code("body { color: red; }")
        clock.now += 125
        outcome = await handle.save()

        assert outcome == Synced(record_id="progress-1", language="css")
        assert progress_client.calls_named("complete") == [("progress-1", "lesson-1", 2)]
        assert memory_store.get("code-course-1-lesson-1-student-1") == "body { color: red; }"
        assert notifications[-1].message == "Code saved"

        handle.unmount()

    @pytest.mark.asyncio
    async def test_guest_save_is_local_only(self, mount, progress_client):
        handle = await mount(token="guest")
        handle.update_code("print('hi')")

        outcome = await handle.save()

        assert outcome == LocalOnly(LocalOnlyReason.GUEST)
        assert progress_client.calls == []

        handle.unmount()

    @pytest.mark.asyncio
    async def test_navigation_then_save(self, mount, progress_client):
        handle = await mount()

        handle.select_lesson("lesson-2")
        handle.select_slide(1)
        handle.update_code("while True: break")
        outcome = await handle.save()
        await handle.wait_idle()

        assert isinstance(outcome, Synced)
        assert progress_client.calls_named("save_code")[0][1] == "lesson-2"
        assert progress_client.create_count == 1

        handle.unmount()

    @pytest.mark.asyncio
    async def test_tracker_flushes_through_session(self, mount, progress_client):
        handle = await mount()

        handle.tracker.tick()
        handle.tracker.tick()
        await handle.wait_idle()

        assert progress_client.calls_named("time") == [("progress-1", {"minutes": 2})]

        handle.unmount()

    @pytest.mark.asyncio
    async def test_completion_percentage(self, mount, progress_client, sample_progress_data):
        progress_client.seed(sample_progress_data)
        progress_client.percentage = 75.0
        handle = await mount()

        assert await handle.completion_percentage() == 75.0

        progress_client.fail_get = True
        assert await handle.completion_percentage() == 50.0

        handle.unmount()


class TestUnmount:
    """Tests for unmount()."""

    @pytest.mark.asyncio
    async def test_stops_tracker(self, mount):
        handle = await mount()

        handle.unmount()
        handle.tracker.tick()

        assert not handle.mounted
        assert handle.tracker.state == TrackerState.STOPPED
        assert handle.tracker.accumulated_minutes == 0

    @pytest.mark.asyncio
    async def test_save_after_unmount_is_silent(self, mount, notifications):
        handle = await mount()
        notifications.clear()

        handle.unmount()
        outcome = await handle.save()

        assert isinstance(outcome, Synced)
        assert notifications == []

    @pytest.mark.asyncio
    async def test_cancel_pending(self, mount, progress_client):
        handle = await mount()
        progress_client.hang = True

        handle.select_lesson("lesson-2")
        handle.unmount(cancel_pending=True)
        await handle.wait_idle()

        assert handle.cursor.lesson_id == "lesson-2"
        assert len(handle.controller.tasks) == 0

    @pytest.mark.asyncio
    async def test_unmount_twice(self, mount):
        handle = await mount()

        handle.unmount()
        handle.unmount()

        assert not handle.mounted
