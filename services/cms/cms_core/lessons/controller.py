"""Lessons controller — maps HTTP calls to service calls and domain errors to HTTPException."""

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from cms_core.exceptions import (
    InvalidStatusTransitionError,
    LessonNotFoundError,
    OrphanLessonError,
    PublishAtRequiredError,
)
from cms_core.lessons import service
from cms_core.lessons.schemas import LessonResponse, UpdateLessonStatusRequest


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, LessonNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (PublishAtRequiredError, InvalidStatusTransitionError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, OrphanLessonError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def get_lesson(db: AsyncSession, lesson_id: UUID) -> LessonResponse:
    try:
        lesson = await service.get_lesson_by_id(db, lesson_id)
    except LessonNotFoundError as exc:
        raise _handle_domain_error(exc) from exc
    return LessonResponse.model_validate(lesson)


async def update_lesson_status(
    db: AsyncSession, lesson_id: UUID, body: UpdateLessonStatusRequest
) -> LessonResponse:
    try:
        lesson = await service.update_lesson_status(
            db, lesson_id, body.status, publish_at=body.publish_at
        )
    except (
        LessonNotFoundError,
        PublishAtRequiredError,
        InvalidStatusTransitionError,
        OrphanLessonError,
    ) as exc:
        raise _handle_domain_error(exc) from exc
    return LessonResponse.model_validate(lesson)
