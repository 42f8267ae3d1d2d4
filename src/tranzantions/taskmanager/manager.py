"""Background job scheduling.

Each registered ``CronJob`` gets its own asyncio task. Runs are scheduled
against the event loop clock, so a slow handler shortens the following
sleep instead of pushing every later run back. A run that raises is logged
and counted in the job's ``JobState``; the schedule continues.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from tranzantions.metrics.collector import NotifierMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CronJob:
    """A recurring background job."""

    handler: Callable[[], Awaitable[None]]
    period: float  # seconds
    name: str = ""
    run_immediately: bool = False


@dataclass
class JobState:
    """Bookkeeping for one job, readable while the manager runs."""

    runs: int = 0
    failures: int = 0
    last_started: datetime | None = None
    last_error: str | None = None
    in_progress: bool = False


class TaskManager:
    """Runs named ``CronJob``s until stopped.

    Usage::

        tm = TaskManager(metrics=metrics)
        tm.register("poll_transactions", CronJob(handler=..., period=30))
        await tm.start()
        ...
        await tm.stop()
    """

    def __init__(self, *, metrics: NotifierMetrics | None = None) -> None:
        self._metrics = metrics
        self._jobs: dict[str, CronJob] = {}
        self._states: dict[str, JobState] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def jobs(self) -> dict[str, CronJob]:
        """Snapshot of registered jobs keyed by name."""
        return dict(self._jobs)

    def state(self, name: str) -> JobState:
        """Run bookkeeping for *name*. Raises KeyError for unknown jobs."""
        return self._states[name]

    def register(self, name: str, job: CronJob) -> None:
        """Add or replace *name*; scheduled right away when running."""
        if name in self._tasks:
            self._tasks.pop(name).cancel()
        job = CronJob(
            handler=job.handler,
            period=job.period,
            name=name,
            run_immediately=job.run_immediately,
        )
        self._jobs[name] = job
        self._states.setdefault(name, JobState())
        if self._running:
            self._spawn(job)

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        for job in self._jobs.values():
            self._spawn(job)
        logger.info("TaskManager started: %s", ", ".join(sorted(self._jobs)) or "no jobs")

    async def stop(self) -> None:
        """Cancel every job task and wait until they have all exited."""
        if not self._running:
            return
        self._running = False
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        for outcome in await asyncio.gather(*tasks, return_exceptions=True):
            if isinstance(outcome, Exception) and not isinstance(outcome, asyncio.CancelledError):
                logger.error("Job exited with error during shutdown: %s", outcome)
        logger.info("TaskManager stopped")

    async def run_once(self, name: str) -> None:
        """Run *name* now, outside its schedule. Errors propagate."""
        await self._execute(self._jobs[name])

    def _spawn(self, job: CronJob) -> None:
        self._tasks[job.name] = asyncio.create_task(
            self._schedule(job), name=f"cron:{job.name}"
        )

    async def _schedule(self, job: CronJob) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + (0 if job.run_immediately else job.period)
        while self._running:
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            if not self._running:
                return
            try:
                await self._execute(job)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Cron job %r failed", job.name)
            deadline = max(deadline + job.period, loop.time())

    async def _execute(self, job: CronJob) -> None:
        state = self._states[job.name]
        state.runs += 1
        state.last_started = datetime.now(UTC)
        state.in_progress = True
        try:
            if self._metrics is None:
                await job.handler()
            else:
                with self._metrics.track_cron(job.name):
                    await job.handler()
        except Exception as exc:
            state.failures += 1
            state.last_error = str(exc) or type(exc).__name__
            raise
        else:
            state.last_error = None
        finally:
            state.in_progress = False
