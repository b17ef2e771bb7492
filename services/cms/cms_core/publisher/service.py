"""Publisher service — promotes due scheduled lessons, no FastAPI imports.

One sweep claims every lesson with ``status = 'scheduled'`` and
``publish_at <= now`` via ``SELECT ... FOR UPDATE OF lessons SKIP LOCKED``,
flips each one to ``published`` and promotes its owning program the first
time one of its lessons goes live. Concurrent workers never block on each
other: a row locked by another sweep is simply absent from this sweep's
claimed set. All writes share one transaction owned by :func:`run_sweep`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import ColumnElement, Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cms_core.exceptions import OrphanLessonError, ProgramNotFoundError
from cms_core.models.enums import LessonStatus, ProgramStatus
from cms_core.models.lesson import Lesson
from cms_core.models.program import Program
from cms_core.models.term import Term
from cms_core.publisher.schemas import SweepResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DueLesson:
    lesson_id: UUID
    title: str
    program_id: UUID


def _as_of(now: datetime | None) -> datetime | ColumnElement[datetime]:
    # Server clock by default; on PostgreSQL now() is fixed for the whole transaction
    return now if now is not None else func.now()


def due_lessons_query(
    *, now: datetime | None = None, limit: int | None = None
) -> Select[tuple[UUID, str, UUID]]:
    """Due lessons with their program id, locked FOR UPDATE OF lessons SKIP LOCKED.

    Only lesson rows are locked; the joined term rows stay free so editors
    and other sweeps are never blocked on them.
    """
    stmt = (
        select(Lesson.id, Lesson.title, Term.program_id)
        .join(Term, Lesson.term_id == Term.id)
        .where(
            Lesson.status == LessonStatus.SCHEDULED,
            Lesson.publish_at <= _as_of(now),
        )
        .with_for_update(of=Lesson.__table__, skip_locked=True)
    )
    if limit is not None:
        stmt = stmt.order_by(Lesson.publish_at, Lesson.id).limit(limit)
    return stmt


async def select_due_lessons(
    db: AsyncSession,
    *,
    now: datetime | None = None,
    limit: int | None = None,
) -> list[DueLesson]:
    """Claim due lessons; rows locked by a concurrent sweep are skipped, not waited on."""
    result = await db.execute(due_lessons_query(now=now, limit=limit))
    return [
        DueLesson(lesson_id=row.id, title=row.title, program_id=row.program_id)
        for row in result
    ]


async def mark_lesson_published(
    db: AsyncSession,
    lesson_id: UUID,
    *,
    now: datetime | None = None,
) -> bool:
    stmt = (
        update(Lesson)
        .where(Lesson.id == lesson_id, Lesson.status == LessonStatus.SCHEDULED)
        .values(status=LessonStatus.PUBLISHED, published_at=_as_of(now))
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1


async def promote_program(
    db: AsyncSession,
    program_id: UUID,
    *,
    now: datetime | None = None,
) -> bool:
    """Publish a program unless it already is. Returns True when this call changed it."""
    current = await db.scalar(select(Program.status).where(Program.id == program_id))
    if current is None:
        raise ProgramNotFoundError(str(program_id))
    if current == ProgramStatus.PUBLISHED:
        return False

    result = await db.execute(
        update(Program)
        .where(Program.id == program_id, Program.status != ProgramStatus.PUBLISHED)
        .values(status=ProgramStatus.PUBLISHED, published_at=_as_of(now))
        .execution_options(synchronize_session=False)
    )
    # A concurrent sweep may have promoted it between the read and the write
    return result.rowcount == 1


async def publish_due_lessons(
    db: AsyncSession,
    *,
    now: datetime | None = None,
    limit: int | None = None,
) -> SweepResult:
    """Run one sweep inside the caller's transaction.

    The caller commits; any exception leaves the transaction to be rolled
    back so no lesson or program from this sweep becomes visible.
    """
    started_at = datetime.now(timezone.utc)
    logger.debug("Checking for scheduled lessons (as_of=%s)", now or "server now()")

    due = await select_due_lessons(db, now=now, limit=limit)
    if not due:
        return SweepResult(started_at=started_at, finished_at=datetime.now(timezone.utc))

    logger.info("Claimed %d scheduled lesson(s) for publication", len(due))

    published: list[UUID] = []
    # program id -> first lesson published for it in this sweep
    parents: dict[UUID, UUID] = {}

    for lesson in due:
        if not await mark_lesson_published(db, lesson.lesson_id, now=now):
            continue
        published.append(lesson.lesson_id)
        parents.setdefault(lesson.program_id, lesson.lesson_id)
        logger.info("Published lesson %s (%s)", lesson.lesson_id, lesson.title)

    # Each program is read and written at most once, in id order so
    # concurrent sweeps take program row locks in the same sequence
    promoted: list[UUID] = []
    for program_id in sorted(parents):
        try:
            wrote = await promote_program(db, program_id, now=now)
        except ProgramNotFoundError:
            raise OrphanLessonError(str(parents[program_id]), str(program_id)) from None
        if wrote:
            promoted.append(program_id)
            logger.info("Published parent program %s", program_id)

    return SweepResult(
        lesson_ids=published,
        program_ids=promoted,
        started_at=started_at,
        finished_at=datetime.now(timezone.utc),
    )


async def run_sweep(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    now: datetime | None = None,
    limit: int | None = None,
) -> SweepResult:
    """Open a session, run one sweep in a single transaction and commit it.

    Failures roll the whole transaction back and propagate; the scheduler
    contains them at the tick boundary.
    """
    async with session_factory() as session:
        async with session.begin():
            result = await publish_due_lessons(session, now=now, limit=limit)

    if result.lessons_published:
        logger.info(
            "Sweep committed: %d lesson(s) published, %d program(s) promoted",
            result.lessons_published,
            result.programs_promoted,
        )
    return result
