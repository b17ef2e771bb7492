import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base

from .enums import ContentType, LessonStatus, content_type_enum, lesson_status_enum


class Lesson(Base):
    __tablename__ = "lessons"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    term_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("terms.id", ondelete="CASCADE"),
        nullable=False,
    )
    lesson_number: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content_type: Mapped[ContentType] = mapped_column(
        content_type_enum, nullable=False, default=ContentType.VIDEO
    )
    # Required when content_type is video
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[LessonStatus] = mapped_column(
        lesson_status_enum, nullable=False, default=LessonStatus.DRAFT
    )
    # Meaningful only while status is scheduled
    publish_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Actual publication time
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # {language: url}
    content_urls_by_language: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict
    )
    subtitle_urls_by_language: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    term = relationship("Term", back_populates="lessons", lazy="select")

    __table_args__ = (
        UniqueConstraint("term_id", "lesson_number", name="uq_lessons_term_lesson_number"),
        # Serves the publisher's "scheduled and due" predicate
        Index("ix_lessons_status_publish_at", "status", "publish_at"),
        Index("ix_lessons_term_id", "term_id"),
    )
