import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, IntegrityError

from nightshift.api.v1.router import api_v1_router
from nightshift.core.config import get_settings
from nightshift.core.database import engine
from nightshift.core.exceptions import ConflictError, DependencyError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Startup
    yield
    # Shutdown
    await engine.dispose()


async def database_error_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    if isinstance(exc, IntegrityError):
        error: ConflictError | DependencyError = ConflictError(
            "The request conflicts with the current state of the resource"
        )
    else:
        logger.error("Database failure on %s %s: %s", request.method, request.url.path, exc)
        error = DependencyError("Database")
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.add_exception_handler(DBAPIError, database_error_handler)
    app.include_router(api_v1_router, prefix="/api/v1")
    return app
