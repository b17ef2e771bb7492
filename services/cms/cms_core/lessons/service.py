"""Lessons service — editor-driven status changes, no FastAPI imports.

The publisher only ever moves ``scheduled → published``; every other lesson
transition happens here. Publishing a lesson by hand promotes its program
exactly like a sweep does.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cms_core.exceptions import (
    InvalidStatusTransitionError,
    LessonNotFoundError,
    OrphanLessonError,
    ProgramNotFoundError,
    PublishAtRequiredError,
)
from cms_core.models.enums import LessonStatus
from cms_core.models.lesson import Lesson
from cms_core.models.term import Term
from cms_core.publisher.service import promote_program

logger = logging.getLogger(__name__)

# target status -> statuses it may be entered from
_ALLOWED_FROM: dict[LessonStatus, frozenset[LessonStatus]] = {
    LessonStatus.DRAFT: frozenset(LessonStatus),
    LessonStatus.SCHEDULED: frozenset({LessonStatus.DRAFT, LessonStatus.SCHEDULED}),
    LessonStatus.PUBLISHED: frozenset(LessonStatus),
}


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


async def get_lesson_by_id(
    db: AsyncSession, lesson_id: UUID, *, for_update: bool = False
) -> Lesson:
    stmt = select(Lesson).where(Lesson.id == lesson_id)
    if for_update:
        # Plain FOR UPDATE: wait for a sweep holding the row instead of racing it
        stmt = stmt.with_for_update()
    lesson = (await db.execute(stmt)).scalar_one_or_none()
    if lesson is None:
        raise LessonNotFoundError(str(lesson_id))
    return lesson


async def _program_id_for(db: AsyncSession, lesson: Lesson) -> UUID:
    program_id = await db.scalar(select(Term.program_id).where(Term.id == lesson.term_id))
    if program_id is None:
        raise OrphanLessonError(str(lesson.id), "")
    return program_id


async def update_lesson_status(
    db: AsyncSession,
    lesson_id: UUID,
    target: LessonStatus,
    *,
    publish_at: datetime | None = None,
) -> Lesson:
    lesson = await get_lesson_by_id(db, lesson_id, for_update=True)

    if lesson.status not in _ALLOWED_FROM[target]:
        raise InvalidStatusTransitionError(lesson.status.value, target.value)

    if target == LessonStatus.SCHEDULED:
        if publish_at is None:
            raise PublishAtRequiredError()
        lesson.status = LessonStatus.SCHEDULED
        lesson.publish_at = _utc(publish_at)
        lesson.published_at = None

    elif target == LessonStatus.PUBLISHED:
        now = datetime.now(timezone.utc)
        lesson.status = LessonStatus.PUBLISHED
        lesson.publish_at = None
        # "Publish now" may overwrite an earlier published_at
        lesson.published_at = now
        await db.flush()
        program_id = await _program_id_for(db, lesson)
        try:
            if await promote_program(db, program_id, now=now):
                logger.info("Lesson %s published manually; promoted program %s", lesson.id, program_id)
        except ProgramNotFoundError:
            raise OrphanLessonError(str(lesson.id), str(program_id)) from None

    else:
        lesson.status = LessonStatus.DRAFT
        lesson.publish_at = None
        lesson.published_at = None

    await db.flush()
    await db.refresh(lesson)
    logger.info("Lesson %s moved to %s", lesson.id, lesson.status.value)
    return lesson
