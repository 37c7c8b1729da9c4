"""
ProgressRecordResolver: find-or-create the single progress record for a
(student, course) pair.

The service exposes no upsert, so resolution is GET, then CREATE on absence,
then GET again for the canonical record. Concurrent resolutions for the same
pair inside this process share one in-flight request, so a session never
races itself into a duplicate create. Cross-process races still rely on the
server's own dedupe.
"""

from __future__ import annotations

import asyncio

import httpx
from loguru import logger

from learnsync.core.errors import ApiError, ResolutionFailed
from learnsync.core.models import GUEST_ID, ProgressRecord, initial_progress_payload
from learnsync.core.outcomes import Failed, FailureKind, Resolved, ResolveOutcome
from learnsync.integrations.progress_client import ProgressClient

PairKey = tuple[str, str]


class ProgressRecordResolver:
    """Resolve-before-create access to progress records."""

    def __init__(self, client: ProgressClient):
        self.client = client
        self._in_flight: dict[PairKey, asyncio.Future[ProgressRecord]] = {}
        self._records: dict[PairKey, ProgressRecord] = {}

    def last_resolved(self, student_id: str, course_id: str) -> ProgressRecord | None:
        """Most recent record seen for the pair, without a network call."""
        return self._records.get((student_id, course_id))

    def remember(self, record: ProgressRecord) -> None:
        """Refresh the snapshot with a record returned by a write."""
        if record.id:
            self._records[(record.student_id, record.course_id)] = record

    async def resolve(
        self,
        student_id: str,
        course_id: str,
        default_lesson_id: str | None = None,
    ) -> ResolveOutcome:
        """
        Return the existing record or create exactly one.

        Args:
            student_id: Student account id (never "guest")
            course_id: Course id
            default_lesson_id: Current lesson for a newly created record

        Returns:
            Resolved(record), or Failed(RESOLUTION_FAILED) when the service
            is unreachable or erroring
        """
        if student_id == GUEST_ID:
            raise ValueError("Guest identities have no remote progress record")

        key = (student_id, course_id)
        pending = self._in_flight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(
                self._resolve_once(student_id, course_id, default_lesson_id)
            )
            self._in_flight[key] = pending
            pending.add_done_callback(lambda _: self._in_flight.pop(key, None))
        else:
            logger.debug("Joining in-flight resolution for {}/{}", student_id, course_id)

        try:
            record = await asyncio.shield(pending)
        except ResolutionFailed as e:
            logger.warning("Progress record unreachable for {}/{}: {}", student_id, course_id, e)
            return Failed(FailureKind.RESOLUTION_FAILED, str(e))

        self._records[key] = record
        return Resolved(record)

    async def _resolve_once(
        self, student_id: str, course_id: str, default_lesson_id: str | None
    ) -> ProgressRecord:
        try:
            record = await self.client.get_by_student_and_course(student_id, course_id)
            if record is not None:
                return _require_id(record)

            logger.info("No progress for {}/{}; creating", student_id, course_id)
            await self.client.create(
                initial_progress_payload(student_id, course_id, default_lesson_id)
            )

            record = await self.client.get_by_student_and_course(student_id, course_id)
        except (ApiError, httpx.HTTPError) as e:
            raise ResolutionFailed(str(e)) from e

        if record is None:
            raise ResolutionFailed("record still absent after create")
        return _require_id(record)


def _require_id(record: ProgressRecord) -> ProgressRecord:
    """A record that exists without an id cannot be written to, and must not be re-created."""
    if not record.id:
        raise ResolutionFailed(
            f"progress for {record.student_id}/{record.course_id} exists but has no id"
        )
    return record
