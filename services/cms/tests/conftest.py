import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

import cms_core.models  # noqa: F401 - register with Base
from cms_core.models import Lesson, Program, Term
from cms_core.models.enums import LessonStatus, ProgramStatus
from shared.database.postgres import Base

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; normalise for comparisons."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class Seeder:
    """Inserts programs/terms/lessons in their own committed transactions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._factory = session_factory
        self._lesson_numbers: dict[uuid.UUID, int] = {}

    async def program(
        self,
        *,
        status: ProgramStatus = ProgramStatus.DRAFT,
        published_at: datetime | None = None,
        title: str = "Spanish for Beginners",
    ) -> tuple[Program, Term]:
        async with self._factory() as session:
            program = Program(
                title=title,
                language_primary="en",
                languages_available=["en", "es"],
                status=status,
                published_at=published_at,
            )
            session.add(program)
            await session.flush()
            term = Term(program_id=program.id, term_number=1, title="Term 1")
            session.add(term)
            await session.commit()
            return program, term

    async def term_without_program(self) -> Term:
        async with self._factory() as session:
            term = Term(program_id=uuid.uuid4(), term_number=1, title="Dangling term")
            session.add(term)
            await session.commit()
            return term

    async def lesson(
        self,
        term: Term,
        *,
        status: LessonStatus = LessonStatus.SCHEDULED,
        publish_at: datetime | None = None,
        published_at: datetime | None = None,
        title: str | None = None,
    ) -> Lesson:
        number = self._lesson_numbers.get(term.id, 0) + 1
        self._lesson_numbers[term.id] = number
        async with self._factory() as session:
            lesson = Lesson(
                term_id=term.id,
                lesson_number=number,
                title=title or f"Lesson {number}",
                status=status,
                publish_at=publish_at,
                published_at=published_at,
            )
            session.add(lesson)
            await session.commit()
            return lesson

    async def get_lesson(self, lesson_id: uuid.UUID) -> Lesson:
        async with self._factory() as session:
            return await session.get_one(Lesson, lesson_id)

    async def get_program(self, program_id: uuid.UUID) -> Program:
        async with self._factory() as session:
            return await session.get_one(Program, program_id)


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cms.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def past(now) -> datetime:
    return now - timedelta(seconds=10)


@pytest.fixture
def future(now) -> datetime:
    return now + timedelta(seconds=60)
