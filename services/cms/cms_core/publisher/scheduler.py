"""Sweep scheduler — drives publication sweeps on a fixed cadence.

An APScheduler ``AsyncIOScheduler`` owned by whoever starts it (the worker
process or the API lifespan) fires one sweep immediately, then one per
interval. Sweeps of the same scheduler never overlap: a tick that comes due
while a sweep is still running is dropped, not queued.
Cross-process safety comes from the sweep's skip-locked selection, not
from here.

Every sweep failure is logged and counted, then swallowed; the loop keeps
ticking until :meth:`SweepScheduler.stop` is awaited, which lets every
in-flight sweep (scheduled or triggered by hand) run to completion.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from functools import partial

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cms_core.config import Settings
from cms_core.publisher.schemas import PublisherHealth, SweepResult
from cms_core.publisher.service import run_sweep

logger = logging.getLogger(__name__)

SweepCallable = Callable[[], Awaitable[SweepResult]]

DEFAULT_INTERVAL_SECS = 60.0
SWEEP_JOB_ID = "publication-sweep"


class SweepScheduler:
    """Run ``sweep`` now and every ``interval_secs`` until stopped.

    Example:
        >>> scheduler = SweepScheduler(partial(run_sweep, factory))
        >>> scheduler.start()
        >>> # ... on shutdown ...
        >>> await scheduler.stop()
    """

    def __init__(
        self,
        sweep: SweepCallable,
        *,
        interval_secs: float = DEFAULT_INTERVAL_SECS,
        run_on_startup: bool = True,
    ) -> None:
        if interval_secs <= 0:
            raise ValueError("interval_secs must be positive")
        self._sweep = sweep
        self._interval = interval_secs
        self._run_on_startup = run_on_startup
        self._scheduler: AsyncIOScheduler | None = None
        self._stopping = False
        self._sweep_lock = asyncio.Lock()
        self._inflight: set[asyncio.Task[SweepResult | None]] = set()
        self._tick_count = 0
        self._error_count = 0
        self._last_tick: datetime | None = None
        self._last_error: str | None = None
        self._last_result: SweepResult | None = None

    # ── lifecycle ───────────────────────────────────────────────────────

    def start(self) -> None:
        """Start ticking on the running event loop."""
        if self.is_running:
            logger.warning("SweepScheduler already started")
            return
        self._stopping = False
        job_kwargs: dict[str, datetime] = {}
        if self._run_on_startup:
            job_kwargs["next_run_time"] = datetime.now(timezone.utc)

        self._scheduler = AsyncIOScheduler(
            event_loop=asyncio.get_running_loop(), timezone=timezone.utc
        )
        self._scheduler.add_job(
            self._tick,
            IntervalTrigger(seconds=self._interval, timezone=timezone.utc),
            id=SWEEP_JOB_ID,
            name="Publish due lessons",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
            **job_kwargs,
        )
        self._scheduler.start()
        logger.info("SweepScheduler started (interval=%ss)", self._interval)

    async def stop(self) -> None:
        """Stop scheduling new sweeps and wait for every running one to finish.

        Safe to call more than once or concurrently; each caller returns only
        once no sweep of this scheduler is running.
        """
        self._stopping = True
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None:
            scheduler.shutdown(wait=False)

        # Let sweeps created just before stop() reach the lock, then drain it
        await asyncio.sleep(0)
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
        async with self._sweep_lock:
            pass

        if scheduler is not None:
            logger.info("SweepScheduler stopped after %d tick(s)", self._tick_count)

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def is_sweeping(self) -> bool:
        return self._sweep_lock.locked()

    # ── ticks ───────────────────────────────────────────────────────────

    async def run_once(self) -> SweepResult | None:
        """Run one sweep now. Never raises; returns None if skipped or failed."""
        if self._sweep_lock.locked():
            logger.info("Sweep already in progress; skipping trigger")
            return None

        async with self._sweep_lock:
            self._tick_count += 1
            self._last_tick = datetime.now(timezone.utc)
            try:
                result = await self._sweep()
            except Exception as exc:
                self._error_count += 1
                self._last_error = f"{type(exc).__name__}: {exc}"
                logger.exception("Publication sweep failed")
                return None

            self._last_error = None
            self._last_result = result
            logger.info(
                "Sweep finished: %d lesson(s) published, %d program(s) promoted",
                result.lessons_published,
                result.programs_promoted,
            )
            return result

    async def _tick(self) -> None:
        if self._stopping:
            return
        # Scheduler shutdown cancels running job coroutines; the sweep runs in
        # its own task so it commits or rolls back instead of being cut short
        task = asyncio.ensure_future(self.run_once())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        await asyncio.shield(task)

    # ── observability ───────────────────────────────────────────────────

    def health(self) -> PublisherHealth:
        return PublisherHealth(
            running=self.is_running,
            interval_secs=self._interval,
            tick_count=self._tick_count,
            error_count=self._error_count,
            last_tick=self._last_tick,
            last_error=self._last_error,
            last_result=self._last_result,
        )

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def error_count(self) -> int:
        return self._error_count


def build_publisher(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
) -> SweepScheduler:
    sweep = partial(run_sweep, session_factory, limit=settings.publish_batch_size)
    return SweepScheduler(
        sweep,
        interval_secs=settings.publish_interval_secs,
        run_on_startup=settings.publish_on_startup,
    )
