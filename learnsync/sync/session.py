"""
SessionController: lifecycle of one learning session (mount -> active -> unmount).

Usage:
    services = SessionServices.from_settings(get_settings())
    handle = await mount_session("course-1", token, services)
    handle.update_code("print('hi')")
    outcome = await handle.save()
    handle.unmount()
    await services.aclose()
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

import httpx
from loguru import logger

from config import Settings, get_settings
from learnsync.core.errors import ApiError, ContentLoadFailed
from learnsync.core.models import Course, Identity, ProgressRecord, SessionCursor
from learnsync.core.outcomes import Resolved, SaveOutcome
from learnsync.core.tasks import BackgroundTasks
from learnsync.integrations.content_client import ContentClient
from learnsync.integrations.identity_client import IdentityClient
from learnsync.integrations.progress_client import ProgressClient
from learnsync.storage.kv_store import SqliteKeyValueStore
from learnsync.storage.local_mirror import KeyValueStore, LocalMirror

from .identity_resolver import IdentityResolver
from .navigation import LessonNavigationCoordinator, initial_code_for
from .progress_resolver import ProgressRecordResolver
from .snapshot_saver import CodeSnapshotSaver, Notifier
from .state import SessionState
from .time_tracker import TimeTracker


@dataclass
class SessionServices:
    """External collaborators a session talks to."""

    content: ContentClient
    identity: IdentityClient
    progress: ProgressClient
    store: KeyValueStore

    @classmethod
    def from_settings(cls, settings: Settings) -> SessionServices:
        options = settings.get_client_options()
        return cls(
            content=ContentClient(**options),
            identity=IdentityClient(**options),
            progress=ProgressClient(**options),
            store=SqliteKeyValueStore(settings.local_store_path),
        )

    async def aclose(self) -> None:
        for client in (self.content, self.identity, self.progress):
            await client.close()


class SessionController:
    """Owns every mutable field of one mounted session."""

    def __init__(
        self,
        services: SessionServices,
        settings: Settings | None = None,
        notify: Notifier | None = None,
        clock: Callable[[], float] = time.monotonic,
        schedule_ticks: bool = True,
    ):
        self.services = services
        self.settings = settings or get_settings()
        self.notify = notify
        self.clock = clock
        self.schedule_ticks = schedule_ticks

        self.tasks: BackgroundTasks | None = None
        self.state: SessionState | None = None
        self.tracker: TimeTracker | None = None
        self.saver: CodeSnapshotSaver | None = None
        self.navigator: LessonNavigationCoordinator | None = None
        self.mirror = LocalMirror(services.store)
        self.identity_resolver: IdentityResolver | None = None
        self.record_resolver = ProgressRecordResolver(services.progress)

    async def mount(
        self, course_id: str, token: str, course: Course | None = None
    ) -> SessionState:
        """
        Resolve identity, hydrate content, resolve progress, start the clock.

        Raises:
            ContentLoadFailed: If the course tree cannot be fetched or is empty
        """
        self.tasks = BackgroundTasks(f"session:{course_id}")
        self.identity_resolver = IdentityResolver(
            self.services.identity, self.tasks, salt=self.settings.identity_salt
        )

        identity = await self.identity_resolver.resolve(token)
        course = course or await self._load_course(course_id)
        first_lesson = course.first_lesson
        if first_lesson is None:
            raise ContentLoadFailed(f"Course {course_id} has no lessons")

        record = await self._resolve_record(identity, course)

        state = SessionState(
            token=token,
            course=course,
            identity=identity,
            cursor=SessionCursor(lesson_id=first_lesson.id),
            record=record,
        )
        self._place_cursor(state)
        self.state = state

        self.tracker = TimeTracker(
            self.services.progress,
            lambda: state.record_id,
            tasks=self.tasks,
            tick_interval_seconds=self.settings.tick_interval_seconds,
            flush_every_ticks=self.settings.flush_every_ticks,
            clock=self.clock,
        )
        self.tracker.start(
            seed_minutes=record.accumulated_time_spent if record else 0,
            schedule=self.schedule_ticks,
        )

        self.saver = CodeSnapshotSaver(
            self.mirror,
            self.identity_resolver,
            self.record_resolver,
            self.services.progress,
            elapsed_minutes=lambda: self.tracker.elapsed_minutes,
            notify=self.notify,
        )
        self.navigator = LessonNavigationCoordinator(
            self.record_resolver, self.services.progress, self.tasks, self.mirror
        )

        logger.info(
            "Mounted course {} for {} ({})",
            course.id,
            identity.student_id,
            "synced" if record else "local-only",
        )
        return state

    async def _load_course(self, course_id: str) -> Course:
        try:
            return await self.services.content.get_course_with_content(course_id)
        except (ApiError, httpx.HTTPError) as e:
            logger.error("Failed to load course {}: {}", course_id, e)
            raise ContentLoadFailed(f"Failed to load course {course_id}: {e}") from e

    async def _resolve_record(self, identity: Identity, course: Course) -> ProgressRecord | None:
        if not identity.can_sync:
            return None

        first_lesson = course.first_lesson
        outcome = await self.record_resolver.resolve(
            identity.student_id, course.id, first_lesson.id if first_lesson else None
        )
        if isinstance(outcome, Resolved):
            return outcome.record

        logger.warning("Continuing local-only: {}", outcome.detail)
        return None

    def _place_cursor(self, state: SessionState) -> None:
        """Resume at the record's lesson/slide when they exist in the course."""
        lesson = state.course.first_lesson
        slide_index = 0

        if state.record is not None:
            resumed = state.course.get_lesson(state.record.current_lesson_id)
            if resumed is not None:
                lesson = resumed
                slide_index = lesson.slide_index(state.record.current_slide_id) or 0

        state.cursor.lesson_id = lesson.id
        state.cursor.slide_index = slide_index
        state.cursor.code_buffer = initial_code_for(state, lesson, self.mirror)

    def _require_state(self) -> SessionState:
        if self.state is None:
            raise RuntimeError("Session is not mounted")
        return self.state

    # =========================================================================
    # View-facing operations
    # =========================================================================

    def select_lesson(self, lesson_id: str) -> None:
        self.navigator.select_lesson(self._require_state(), lesson_id)

    def select_slide(self, index: int) -> None:
        self.navigator.select_slide(self._require_state(), index)

    def update_code(self, text: str) -> None:
        self._require_state().cursor.code_buffer = text

    async def save(self) -> SaveOutcome:
        state = self._require_state()
        if not state.mounted:
            logger.debug("Saving after unmount; result will not be shown")
        return await self.saver.save(state)

    async def completion_percentage(self) -> float:
        """Course completion from the progress service, or the last snapshot."""
        state = self._require_state()
        fallback = state.record.completion_percentage if state.record else 0.0
        if not state.identity.can_sync:
            return fallback

        try:
            return await self.services.progress.get_completion_percentage(
                state.identity.student_id, state.course_id
            )
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Completion percentage unavailable: {}", e)
            return fallback

    def unmount(self, cancel_pending: bool = False) -> None:
        """
        Stop the clock and detach the view.

        In-flight saves and writes keep running (their outcome is logged
        only) unless cancel_pending is set.
        """
        state = self._require_state()
        if not state.mounted:
            return

        state.mounted = False
        self.tracker.stop()
        if cancel_pending:
            cancelled = self.tasks.cancel_all()
            logger.debug("Cancelled {} pending session tasks", cancelled)
        logger.info("Unmounted course {}", state.course_id)

    async def wait_idle(self) -> None:
        """Wait for background writes (pings, flushes, navigation) to finish."""
        if self.tasks is not None:
            await self.tasks.wait()


class SessionHandle:
    """The interface the view layer holds for a mounted session."""

    def __init__(self, controller: SessionController):
        self._controller = controller

    @property
    def controller(self) -> SessionController:
        return self._controller

    @property
    def cursor(self) -> SessionCursor:
        return self._controller._require_state().cursor

    @property
    def identity(self) -> Identity:
        return self._controller._require_state().identity

    @property
    def course(self) -> Course:
        return self._controller._require_state().course

    @property
    def record(self) -> ProgressRecord | None:
        return self._controller._require_state().record

    @property
    def tracker(self) -> TimeTracker:
        return self._controller.tracker

    @property
    def mounted(self) -> bool:
        return self._controller._require_state().mounted

    def select_lesson(self, lesson_id: str) -> None:
        self._controller.select_lesson(lesson_id)

    def select_slide(self, index: int) -> None:
        self._controller.select_slide(index)

    def update_code(self, text: str) -> None:
        self._controller.update_code(text)

    async def save(self) -> SaveOutcome:
        return await self._controller.save()

    async def completion_percentage(self) -> float:
        return await self._controller.completion_percentage()

    def unmount(self, cancel_pending: bool = False) -> None:
        self._controller.unmount(cancel_pending)

    async def wait_idle(self) -> None:
        await self._controller.wait_idle()


async def mount_session(
    course_id: str,
    encoded_identity: str,
    services: SessionServices,
    settings: Settings | None = None,
    course: Course | None = None,
    notify: Notifier | None = None,
    **controller_options,
) -> SessionHandle:
    """
    Mount a session for a course and route token.

    Args:
        course_id: Course to open
        encoded_identity: Route token (encoded email, plain email, or "guest")
        services: Backend clients and local store
        settings: Overrides the cached settings
        course: Pre-hydrated course tree (skips the content service)
        notify: Receives user-visible save notifications
        **controller_options: clock / schedule_ticks, mainly for tests

    Raises:
        ContentLoadFailed: If the course tree cannot be fetched
    """
    controller = SessionController(services, settings, notify, **controller_options)
    await controller.mount(course_id, encoded_identity, course)
    return SessionHandle(controller)
