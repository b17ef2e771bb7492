import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cms_core.database import dispose_db, get_db, init_db
from cms_core.dependencies import get_settings
from cms_core.lessons.router import router as lessons_router
from cms_core.publisher.router import router as publisher_router
from cms_core.publisher.scheduler import build_publisher
from shared.middleware.error_handler import error_envelope_middleware
from shared.middleware.request_id import request_id_middleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    session_factory = init_db(settings.cms_database_url)

    # The scheduler always exists so admins can trigger a sweep; it only ticks when embedded
    app.state.publisher = build_publisher(session_factory, settings)
    if settings.publisher_embedded:
        app.state.publisher.start()

    yield

    # Shutdown
    await app.state.publisher.stop()
    await dispose_db()


SWAGGER_DESCRIPTION = """\
## Lesson CMS

Multi-language educational programs: programs → terms → lessons.

### Publication

Lessons move `draft → scheduled → published`. Scheduled lessons are published
by the background publisher (`python -m cms_core.worker`) once `publish_at`
has passed; the owning program is published together with its first lesson.

```
Lesson:  draft → scheduled → published
Program: draft | archived → published
```

### Authentication

CMS endpoints require a JWT Bearer token with `roles` containing
`admin`, `editor` or `viewer`.
"""


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Lesson CMS",
        version="0.1.0",
        description=SWAGGER_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)

    app.include_router(lessons_router, prefix="/api/v1")
    app.include_router(publisher_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health(request: Request, db: AsyncSession = Depends(get_db)) -> JSONResponse:
        publisher = getattr(request.app.state, "publisher", None)
        body: dict = {
            "status": "ok",
            "service": "cms",
            "db": "connected",
            "publisher": publisher.health().model_dump(mode="json") if publisher else None,
        }
        try:
            await db.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError):
            logger.warning("Health check: database unreachable", exc_info=True)
            body.update(status="error", db="disconnected")
            return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
        return JSONResponse(content=body)

    return app


app = create_app()

