"""
Publication worker — scheduled lesson publishing.

Runs as a SEPARATE process from the FastAPI API server.

Start:  python -m cms_core.worker
Scale:  run N instances for redundancy; each sweep claims due lessons with
        FOR UPDATE SKIP LOCKED, so a lesson is published by exactly one worker.

Lifecycle:
  start     → DB pool initialised, first sweep immediately, then every
              PUBLISH_INTERVAL_SECS
  SIGINT /
  SIGTERM   → no new sweeps are scheduled; the in-flight sweep (if any)
              finishes and commits or rolls back on its own
"""
from __future__ import annotations

import asyncio
import logging
import signal

from cms_core.config import Settings
from cms_core.database import dispose_db, init_db
from cms_core.publisher.scheduler import build_publisher

logger = logging.getLogger("cms.worker")


def _install_signal_handlers(shutdown: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(shutdown.set))


async def run_worker(settings: Settings, shutdown: asyncio.Event | None = None) -> None:
    """Run the publication scheduler until ``shutdown`` is set."""
    shutdown = shutdown or asyncio.Event()
    session_factory = init_db(settings.cms_database_url)
    publisher = build_publisher(session_factory, settings)

    publisher.start()
    logger.info("Worker started; publishing every %ss", settings.publish_interval_secs)
    try:
        await shutdown.wait()
        logger.info("Worker shutting down")
    finally:
        await publisher.stop()
        await dispose_db()


async def main() -> None:
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s:%(name)s: %(message)s",
    )
    shutdown = asyncio.Event()
    _install_signal_handlers(shutdown)
    await run_worker(settings, shutdown)


if __name__ == "__main__":
    asyncio.run(main())
