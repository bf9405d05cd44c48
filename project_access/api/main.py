import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from project_access.api.deps import get_context
from project_access.api.schemas import ErrorResponse
from project_access.config import configure_logging, get_settings, validate_environment
from project_access.domain.errors import (
    AccessError,
    Conflict,
    DependencyUnavailable,
    NotFound,
    PolicyDenied,
    PolicyMissing,
    ValidationError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[AccessError], int] = {
    ValidationError: 400,
    PolicyDenied: 403,
    NotFound: 404,
    Conflict: 409,
    DependencyUnavailable: 503,
    PolicyMissing: 500,
}


def status_for(error: AccessError) -> int:
    for error_type in type(error).__mro__:
        if error_type in ERROR_STATUS:
            return ERROR_STATUS[error_type]  # type: ignore[index]
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()
    configure_logging(settings.log_level)

    # Fail fast on missing configuration or broken rules
    validate_environment(settings)
    get_context(settings)
    logger.info("Project access API started (db=%s)", settings.db_path)

    yield


app = FastAPI(
    title="Project Access API",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(AccessError)
async def access_error_handler(request: Request, exc: AccessError) -> JSONResponse:
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
    body = ErrorResponse(**exc.to_dict()).model_dump(exclude_none=True)
    return JSONResponse(status_code=code, content=body)


# --- Routers ---
from project_access.api.routes import invites  # noqa: E402

app.include_router(invites.router, prefix="/api/projects", tags=["Invites"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "project-access"}
