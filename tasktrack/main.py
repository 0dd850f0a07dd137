"""
Application entry point.
Run with:  uvicorn tasktrack.main:app --reload

⚠️  DEVELOPMENT NOTE:
    Set SEED_DEFAULT_ADMIN=true to seed a default admin user on startup
    (see tasktrack/db/seeder.py). Leave it off in production.
"""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktrack.core.logging_config import configure_logging
from tasktrack.core.config import settings
from tasktrack.core.exceptions import AppError, ValidationFailedError
from tasktrack.core.request_log import RequestLogMiddleware
from tasktrack.api.v1.router import api_router
from tasktrack.db.database import init_db
from tasktrack.db.seeder import seed_admin
from tasktrack.schemas.user import ErrorResponse

configure_logging()

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def error_body(
    status_code: int,
    message: str,
    path: str,
    field_errors: Optional[dict[str, str]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Render the standard error payload {status, error, message, path, fieldErrors?}."""
    status_code = int(status_code)
    payload = ErrorResponse(
        status=status_code,
        error=HTTPStatus(status_code).phrase,
        message=message,
        path=path,
        field_errors=field_errors or None,
    )
    return JSONResponse(
        status_code=status_code,
        content=payload.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


# ── Exception handlers ─────────────────────────────────────────────────────

async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    field_errors = exc.field_errors if isinstance(exc, ValidationFailedError) else None
    return error_body(exc.http_status, exc.message, request.url.path, field_errors)


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    # unknown routes, wrong methods and any HTTPException raised by the framework
    message = exc.detail if isinstance(exc.detail, str) else HTTPStatus(exc.status_code).phrase
    return error_body(exc.status_code, message, request.url.path, headers=exc.headers)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    field_errors: dict[str, str] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        key = ".".join(loc[1:]) if len(loc) > 1 else ".".join(loc)
        field_errors.setdefault(key or "request", error.get("msg", "Invalid value"))
    logger.warning("Validation failed on %s: %s", request.url.path, field_errors)
    return error_body(
        HTTPStatus.BAD_REQUEST,
        "Validation failed for one or more fields",
        request.url.path,
        field_errors,
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unexpected error on %s", request.url.path, exc_info=exc)
    return error_body(
        HTTPStatus.INTERNAL_SERVER_ERROR, UNEXPECTED_ERROR_MESSAGE, request.url.path
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize the database and, in development, the seed admin."""
    logger.info("Initializing database and seed data")
    init_db()
    if settings.SEED_DEFAULT_ADMIN:
        seed_admin()
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    logger.info("Starting FastAPI application setup")
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        description="REST API for managing TaskTrack users.",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # ── Middleware ──────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLogMiddleware)

    # ── Error mapping ───────────────────────────────────────────────────────
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    # ── Routers ─────────────────────────────────────────────────────────────
    app.include_router(api_router)

    @app.get("/health", tags=["Health"])
    def health() -> dict[str, str]:
        return {"status": "ok", "version": settings.APP_VERSION}

    return app


app = create_app()
