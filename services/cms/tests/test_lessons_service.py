import uuid
from datetime import datetime, timedelta, timezone

import pytest

from cms_core.exceptions import (
    InvalidStatusTransitionError,
    LessonNotFoundError,
    PublishAtRequiredError,
)
from cms_core.lessons.service import get_lesson_by_id, update_lesson_status
from cms_core.models.enums import LessonStatus, ProgramStatus
from cms_core.publisher.service import run_sweep
from conftest import as_utc


@pytest.mark.asyncio
async def test_schedule_requires_publish_at(db_session, seed) -> None:
    _, term = await seed.program()
    lesson = await seed.lesson(term, status=LessonStatus.DRAFT)

    with pytest.raises(PublishAtRequiredError):
        await update_lesson_status(db_session, lesson.id, LessonStatus.SCHEDULED)


@pytest.mark.asyncio
async def test_schedule_sets_publish_at(db_session, seed, future) -> None:
    _, term = await seed.program()
    lesson = await seed.lesson(term, status=LessonStatus.DRAFT)

    updated = await update_lesson_status(
        db_session, lesson.id, LessonStatus.SCHEDULED, publish_at=future
    )
    await db_session.commit()

    assert updated.status == LessonStatus.SCHEDULED
    assert as_utc(updated.publish_at) == future
    assert updated.published_at is None


@pytest.mark.asyncio
async def test_naive_publish_at_is_read_as_utc(db_session, seed) -> None:
    _, term = await seed.program()
    lesson = await seed.lesson(term, status=LessonStatus.DRAFT)
    naive = datetime(2030, 1, 1, 9, 30)

    updated = await update_lesson_status(
        db_session, lesson.id, LessonStatus.SCHEDULED, publish_at=naive
    )

    assert as_utc(updated.publish_at) == naive.replace(tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_publish_now_promotes_draft_program(db_session, seed) -> None:
    program, term = await seed.program()
    lesson = await seed.lesson(term, status=LessonStatus.DRAFT)

    updated = await update_lesson_status(db_session, lesson.id, LessonStatus.PUBLISHED)
    await db_session.commit()

    assert updated.status == LessonStatus.PUBLISHED
    assert updated.published_at is not None
    assert updated.publish_at is None
    parent = await seed.get_program(program.id)
    assert parent.status == ProgramStatus.PUBLISHED
    assert parent.published_at is not None


@pytest.mark.asyncio
async def test_publish_now_leaves_published_program_alone(db_session, seed, now) -> None:
    earlier = now - timedelta(days=10)
    program, term = await seed.program(status=ProgramStatus.PUBLISHED, published_at=earlier)
    lesson = await seed.lesson(term, status=LessonStatus.DRAFT)

    await update_lesson_status(db_session, lesson.id, LessonStatus.PUBLISHED)
    await db_session.commit()

    assert as_utc((await seed.get_program(program.id)).published_at) == earlier


@pytest.mark.asyncio
async def test_published_lesson_cannot_be_rescheduled(db_session, seed, now, future) -> None:
    _, term = await seed.program(status=ProgramStatus.PUBLISHED, published_at=now)
    lesson = await seed.lesson(term, status=LessonStatus.PUBLISHED, published_at=now)

    with pytest.raises(InvalidStatusTransitionError):
        await update_lesson_status(
            db_session, lesson.id, LessonStatus.SCHEDULED, publish_at=future
        )


@pytest.mark.asyncio
async def test_back_to_draft_clears_timestamps_but_keeps_program(db_session, seed, now) -> None:
    program, term = await seed.program(status=ProgramStatus.PUBLISHED, published_at=now)
    lesson = await seed.lesson(term, status=LessonStatus.PUBLISHED, published_at=now)

    updated = await update_lesson_status(db_session, lesson.id, LessonStatus.DRAFT)
    await db_session.commit()

    assert updated.status == LessonStatus.DRAFT
    assert updated.publish_at is None
    assert updated.published_at is None
    assert (await seed.get_program(program.id)).status == ProgramStatus.PUBLISHED


@pytest.mark.asyncio
async def test_unknown_lesson_raises(db_session) -> None:
    with pytest.raises(LessonNotFoundError):
        await get_lesson_by_id(db_session, uuid.uuid4())


@pytest.mark.asyncio
async def test_scheduled_lesson_is_published_by_next_sweep(
    db_session, seed, session_factory, now
) -> None:
    program, term = await seed.program()
    lesson = await seed.lesson(term, status=LessonStatus.DRAFT)
    publish_at = now + timedelta(minutes=5)

    await update_lesson_status(db_session, lesson.id, LessonStatus.SCHEDULED, publish_at=publish_at)
    await db_session.commit()

    early = await run_sweep(session_factory, now=now)
    due = await run_sweep(session_factory, now=publish_at + timedelta(seconds=1))

    assert early.lessons_published == 0
    assert due.lesson_ids == [lesson.id]
    assert due.program_ids == [program.id]
