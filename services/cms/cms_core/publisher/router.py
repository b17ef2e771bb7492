"""Publisher admin router — inspect the sweep scheduler and trigger a sweep."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cms_core.dependencies import get_publisher
from cms_core.publisher.scheduler import SweepScheduler
from cms_core.publisher.schemas import PublisherHealth, SweepResult
from shared.auth.dependencies import require_roles
from shared.constants.roles import READING_ROLES, Role
from shared.models.user import CurrentUser

router = APIRouter(prefix="/cms/publisher", tags=["Publisher"])


@router.get(
    "",
    response_model=PublisherHealth,
    summary="Publisher status",
)
async def publisher_status(
    publisher: SweepScheduler = Depends(get_publisher),
    _: CurrentUser = Depends(require_roles(READING_ROLES)),
) -> PublisherHealth:
    return publisher.health()


@router.post(
    "/sweeps",
    response_model=SweepResult,
    summary="Run one publication sweep now",
    description=(
        "Publishes every scheduled lesson whose publish_at has passed. "
        "Returns 409 if a sweep of this process is already running."
    ),
)
async def trigger_sweep(
    publisher: SweepScheduler = Depends(get_publisher),
    _: CurrentUser = Depends(require_roles({Role.ADMIN})),
) -> SweepResult:
    if publisher.is_sweeping:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Sweep already in progress")
    result = await publisher.run_once()
    if result is None:
        detail = publisher.health().last_error or "Sweep did not run"
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
    return result
