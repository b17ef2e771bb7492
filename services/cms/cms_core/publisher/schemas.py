"""Publisher Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field


class SweepResult(BaseModel):
    """Outcome of one committed publication sweep."""

    model_config = ConfigDict(frozen=True)

    lesson_ids: list[UUID] = Field(default_factory=list)
    program_ids: list[UUID] = Field(default_factory=list, description="Programs promoted to published.")
    started_at: datetime
    finished_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def lessons_published(self) -> int:
        return len(self.lesson_ids)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def programs_promoted(self) -> int:
        return len(self.program_ids)


class PublisherHealth(BaseModel):
    running: bool
    interval_secs: float
    tick_count: int
    error_count: int
    last_tick: datetime | None = None
    last_error: str | None = None
    last_result: SweepResult | None = None
