"""
Seed a dev database with a small catalogue for trying the publisher.

Run from repo root: python -m cms_core.seed
Uses CMS_DATABASE_URL from env or .env. Existing programs, terms and lessons
are deleted first.

One lesson is scheduled ~90 seconds ahead, so a worker started right after
seeding publishes it (and its draft program) on one of its first ticks.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cms_core.config import Settings
from cms_core.database import dispose_db, init_db
from cms_core.models import Lesson, Program, Term
from cms_core.models.enums import ContentType, LessonStatus, ProgramStatus

logger = logging.getLogger("cms.seed")

SCHEDULED_LEAD = timedelta(seconds=90)
SAMPLE_VIDEO = "https://www.w3schools.com/html/mov_bbb.mp4"


async def seed_demo(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    now: datetime | None = None,
) -> Lesson:
    """Replace the catalogue with demo data; returns the scheduled lesson."""
    now = now or datetime.now(timezone.utc)
    async with session_factory() as session:
        async with session.begin():
            for model in (Lesson, Term, Program):
                await session.execute(delete(model))

            web = Program(
                title="Full Stack Web Development",
                description="Master the art of web development with our comprehensive bootcamp.",
                language_primary="en",
                languages_available=["en", "hi"],
                status=ProgramStatus.PUBLISHED,
                published_at=now,
            )
            ux = Program(
                title="UX Design Fundamentals",
                description="Learn how to design user-friendly interfaces.",
                language_primary="en",
                languages_available=["en"],
            )
            session.add_all([web, ux])
            await session.flush()

            frontend = Term(program_id=web.id, term_number=1, title="Frontend Basics")
            backend = Term(program_id=web.id, term_number=2, title="Backend Mastery")
            design = Term(program_id=ux.id, term_number=1, title="Design Thinking")
            session.add_all([frontend, backend, design])
            await session.flush()

            scheduled = Lesson(
                term_id=design.id,
                lesson_number=1,
                title="User Research (Scheduled)",
                content_type=ContentType.VIDEO,
                duration_ms=400_000,
                status=LessonStatus.SCHEDULED,
                publish_at=now + SCHEDULED_LEAD,
                content_urls_by_language={"en": SAMPLE_VIDEO},
            )
            session.add_all(
                [
                    Lesson(
                        term_id=frontend.id,
                        lesson_number=1,
                        title="HTML & CSS Intro",
                        duration_ms=600_000,
                        status=LessonStatus.PUBLISHED,
                        published_at=now,
                        content_urls_by_language={"en": SAMPLE_VIDEO, "hi": SAMPLE_VIDEO},
                    ),
                    Lesson(
                        term_id=frontend.id,
                        lesson_number=2,
                        title="JavaScript Basics",
                        content_type=ContentType.ARTICLE,
                        status=LessonStatus.PUBLISHED,
                        published_at=now,
                    ),
                    Lesson(
                        term_id=backend.id,
                        lesson_number=1,
                        title="Node.js Setup",
                        duration_ms=300_000,
                    ),
                    scheduled,
                ]
            )

    logger.info("Seeded 2 programs; lesson %s publishes at %s", scheduled.id, scheduled.publish_at)
    return scheduled


async def main() -> None:
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s:%(name)s: %(message)s",
    )
    session_factory = init_db(settings.cms_database_url)
    try:
        await seed_demo(session_factory)
    finally:
        await dispose_db()


if __name__ == "__main__":
    asyncio.run(main())
