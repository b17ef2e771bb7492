from fastapi import HTTPException, Request, status

from cms_core.config import Settings
from cms_core.publisher.scheduler import SweepScheduler


def get_settings() -> Settings:
    return Settings()


def get_publisher(request: Request) -> SweepScheduler:
    publisher: SweepScheduler | None = getattr(request.app.state, "publisher", None)
    if publisher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Publisher not configured",
        )
    return publisher
