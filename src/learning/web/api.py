"""FastAPI application factory.

Browser-facing front end over the learning backend.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from learning.api.client import ApiConnectionError, ApiError, SessionExpiredError
from learning.config.app_config import load_app_config
from learning.core.errors import (
    AccessDeniedError,
    FormValidationError,
    NotAuthenticatedError,
    QuizNotStartableError,
    QuizStateError,
)
from learning.web.routes import (
    catalog_router,
    health_router,
    quiz_router,
    session_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config = load_app_config()
    logger.info("api_startup", backend=config.api.base_url, timeout=config.api.timeout)
    yield


def _error(status_code: int, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message, **extra})


def _register_error_handlers(app: FastAPI) -> None:
    """Map client and backend errors onto HTTP responses."""

    @app.exception_handler(ApiError)
    async def api_error(request: Request, exc: ApiError) -> JSONResponse:
        if isinstance(exc, ApiConnectionError):
            return _error(status.HTTP_503_SERVICE_UNAVAILABLE, exc.message)
        if isinstance(exc, SessionExpiredError):
            return _error(status.HTTP_401_UNAUTHORIZED, exc.message)
        logger.info("upstream_error", path=request.url.path, status=exc.status_code)
        return _error(exc.status_code or status.HTTP_502_BAD_GATEWAY, exc.message)

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated(request: Request, exc: NotAuthenticatedError) -> JSONResponse:
        return _error(status.HTTP_401_UNAUTHORIZED, exc.message)

    @app.exception_handler(AccessDeniedError)
    async def access_denied(request: Request, exc: AccessDeniedError) -> JSONResponse:
        return _error(status.HTTP_403_FORBIDDEN, exc.message)

    @app.exception_handler(FormValidationError)
    async def invalid_form(request: Request, exc: FormValidationError) -> JSONResponse:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.message, field=exc.field)

    @app.exception_handler(QuizNotStartableError)
    async def not_startable(request: Request, exc: QuizNotStartableError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, exc.message)

    @app.exception_handler(QuizStateError)
    async def wrong_state(request: Request, exc: QuizStateError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, exc.message)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="Learning Client API",
        description="Web front end for the learning platform",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(session_router)
    app.include_router(catalog_router)
    app.include_router(quiz_router)

    return app


# Default app instance for uvicorn
app = create_app()
