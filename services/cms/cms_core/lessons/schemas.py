"""Lessons Pydantic V2 schemas (editing API)."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cms_core.models.enums import ContentType, LessonStatus


class UpdateLessonStatusRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: LessonStatus
    publish_at: datetime | None = Field(
        default=None,
        description="Required when status is scheduled. Naive values are read as UTC.",
    )


class LessonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    term_id: UUID
    lesson_number: int
    title: str
    content_type: ContentType
    duration_ms: int | None
    is_paid: bool
    status: LessonStatus
    publish_at: datetime | None
    published_at: datetime | None
    content_urls_by_language: dict[str, str]
    subtitle_urls_by_language: dict[str, str]
    created_at: datetime
    updated_at: datetime
