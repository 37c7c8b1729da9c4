"""
TimeTracker: local study clock with periodic remote flushes.

State machine: STOPPED -> RUNNING -> STOPPED.

Each tick adds one minute to the local accumulator. Every
`flush_every_ticks` ticks the unflushed delta is pushed to the progress
record in the background. A failed flush never un-counts local time; the
next flush carries the larger delta.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import httpx
from loguru import logger

from learnsync.core.errors import ApiError
from learnsync.core.tasks import BackgroundTasks
from learnsync.integrations.progress_client import ProgressClient


class TrackerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass
class FlushResult:
    """Outcome of one flush attempt."""

    minutes: int
    success: bool
    error: str | None = None


class TimeTracker:
    """
    Accumulates session minutes and flushes them to the remote record.

    Usage:
        tracker = TimeTracker(progress_client, lambda: record_id)
        tracker.start(seed_minutes=record.accumulated_time_spent)
        # ... session runs ...
        tracker.stop()
    """

    def __init__(
        self,
        client: ProgressClient,
        record_id: Callable[[], str | None],
        tasks: BackgroundTasks | None = None,
        tick_interval_seconds: float = 60.0,
        flush_every_ticks: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the tracker.

        Args:
            client: Progress service client used for flushes
            record_id: Returns the resolved record id, or None when local-only
            tasks: Task group for background flushes
            tick_interval_seconds: Wall-clock seconds per tick
            flush_every_ticks: Ticks between flushes
            clock: Monotonic clock, injectable for tests
        """
        if flush_every_ticks < 1:
            raise ValueError("flush_every_ticks must be >= 1")

        self.client = client
        self.record_id = record_id
        self.tasks = tasks or BackgroundTasks("tracker")
        self.tick_interval_seconds = tick_interval_seconds
        self.flush_every_ticks = flush_every_ticks
        self.clock = clock

        self.state = TrackerState.STOPPED
        self.accumulated_minutes = 0
        self.flushed_minutes = 0
        self._sending_minutes = 0
        self.ticks = 0
        self.last_flush: FlushResult | None = None
        self._started_at: float | None = None
        self._loop_task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self.state == TrackerState.RUNNING

    @property
    def pending_minutes(self) -> int:
        """Minutes counted locally but not yet acknowledged remotely."""
        return self.accumulated_minutes - self.flushed_minutes

    @property
    def elapsed_minutes(self) -> int:
        """Whole minutes since start (floor), independent of tick timing."""
        if self._started_at is None:
            return 0
        return int((self.clock() - self._started_at) // 60)

    def start(self, seed_minutes: int = 0, schedule: bool = True) -> None:
        """
        Enter RUNNING, seeding from the record's accumulated time.

        Args:
            seed_minutes: Minutes already on the remote record
            schedule: Start the periodic tick task (requires a running loop)
        """
        if self.is_running:
            logger.warning("Time tracker already running")
            return

        self.accumulated_minutes = seed_minutes
        self.flushed_minutes = seed_minutes
        self.ticks = 0
        self._started_at = self.clock()
        self.state = TrackerState.RUNNING

        if schedule:
            self._loop_task = asyncio.get_running_loop().create_task(
                self._run(), name="time-tracker"
            )
        logger.debug("Time tracker started at {} min", seed_minutes)

    def stop(self) -> None:
        """Enter STOPPED and cancel the pending tick. No final flush."""
        if not self.is_running:
            return

        self.state = TrackerState.STOPPED
        if self._loop_task is not None:
            self._loop_task.cancel()
            self._loop_task = None
        logger.debug(
            "Time tracker stopped at {} min ({} unflushed)",
            self.accumulated_minutes,
            self.pending_minutes,
        )

    async def _run(self) -> None:
        while self.is_running:
            await asyncio.sleep(self.tick_interval_seconds)
            if not self.is_running:
                break
            self.tick()

    def tick(self) -> None:
        """Count one minute; schedule a flush on the flush boundary."""
        if not self.is_running:
            return

        self.ticks += 1
        self.accumulated_minutes += 1

        if self.ticks % self.flush_every_ticks == 0:
            self.tasks.spawn(self.flush(), label="time-flush")

    async def flush(self) -> FlushResult | None:
        """
        Push unflushed minutes to the remote record.

        Sends the whole unacknowledged delta, not a single unit, so minutes
        left over by a failed flush ride along with the next one and the
        remote total converges.

        Returns:
            The flush result, or None if there was nothing to send or no
            record to send it to
        """
        record_id = self.record_id()
        if not record_id:
            return None

        # Minutes already claimed by an overlapping flush are not resent
        delta = self.pending_minutes - self._sending_minutes
        if delta <= 0:
            return None

        self._sending_minutes += delta
        try:
            await self.client.update_time_spent(record_id, {"minutes": delta})
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Time flush of {} min failed: {}", delta, e)
            self.last_flush = FlushResult(minutes=delta, success=False, error=str(e))
            return self.last_flush
        finally:
            self._sending_minutes -= delta

        self.flushed_minutes += delta
        self.last_flush = FlushResult(minutes=delta, success=True)
        logger.debug("Flushed {} min to record {}", delta, record_id)
        return self.last_flush
