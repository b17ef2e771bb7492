"""CMS lessons router — HTTP layer only."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cms_core.database import get_db
from cms_core.lessons import controller
from cms_core.lessons.schemas import LessonResponse, UpdateLessonStatusRequest
from shared.auth.dependencies import require_roles
from shared.constants.roles import EDITING_ROLES, READING_ROLES
from shared.models.user import CurrentUser

router = APIRouter(prefix="/cms/lessons", tags=["CMS"])


@router.get(
    "/{lesson_id}",
    response_model=LessonResponse,
    summary="Get a lesson (CMS view)",
)
async def get_lesson(
    lesson_id: UUID,
    db: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_roles(READING_ROLES)),
) -> LessonResponse:
    return await controller.get_lesson(db, lesson_id)


@router.patch(
    "/{lesson_id}/status",
    response_model=LessonResponse,
    summary="Change lesson status",
    description=(
        "Move a lesson to draft, scheduled (requires publish_at) or published. "
        "Scheduled lessons are published by the background publisher once due; "
        "publishing now also publishes the owning program if it is not yet published. "
        "A published lesson cannot be rescheduled directly (400): move it back to "
        "draft first, then schedule it."
    ),
)
async def update_lesson_status(
    lesson_id: UUID,
    body: UpdateLessonStatusRequest,
    db: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_roles(EDITING_ROLES)),
) -> LessonResponse:
    return await controller.update_lesson_status(db, lesson_id, body)
