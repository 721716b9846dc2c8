"""Persona Hub backend: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# configure_structlog must run before the other personahub imports:
# structlog caches the processor chain on first use.
from personahub.core.logging import configure_structlog
from personahub.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else "INFO",
    json_logs=not _early_settings.debug,
)

import structlog

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from personahub.api.routes import api_router
from personahub.core.config import get_settings
from personahub.core.exceptions import PersonaHubError
from personahub.core.messages import render
from personahub.db import close_db, close_redis, init_db, init_redis
from personahub.db.seed import seed_all
from personahub.middleware.correlation import get_correlation_id, setup_correlation_middleware

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Flipped by SIGTERM so /api/health returns 503 while connections drain
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        app.state.shutting_down = True
        logger.info("sigterm_received", action="health_check_503_draining_connections")

    signal.signal(signal.SIGTERM, handle_sigterm)

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug)

    await init_db()
    logger.info("db_initialized")

    await init_redis()
    logger.info("redis_initialized")

    await seed_all()
    logger.info("seed_completed")

    yield

    logger.info("shutdown_begin")
    await close_redis()
    await close_db()
    logger.info("shutdown_complete")


def _request_context(request: Request) -> dict:
    return {
        "correlation_id": get_correlation_id(),
        "path": request.url.path,
        "method": request.method,
        "user_id": getattr(request.state, "user_id", None),
    }


def _error_response(status_code: int, code: str, debug_id: str, detail: str | None = None, **extra) -> JSONResponse:
    """JSON error envelope: localized ``detail``, stable ``code`` and a ``debug_id`` to quote in bug reports."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail if detail is not None else render(code), "code": code, **extra, "debug_id": debug_id},
    )


async def persona_hub_exception_handler(request: Request, exc: PersonaHubError) -> JSONResponse:
    debug_id = str(uuid.uuid4())
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "domain_error",
        status_code=exc.status_code,
        code=exc.message_key,
        debug_id=debug_id,
        **_request_context(request),
    )
    return _error_response(
        exc.status_code,
        exc.message_key,
        debug_id,
        detail=render(exc.message_key, **exc.params),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    debug_id = str(uuid.uuid4())
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        debug_id=debug_id,
        **_request_context(request),
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "debug_id": debug_id})


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters are a 400, with per-field errors."""
    debug_id = str(uuid.uuid4())
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    logger.warning("request_validation_failed", errors=errors, debug_id=debug_id, **_request_context(request))
    return _error_response(400, "error.validation", debug_id, errors=errors)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback; the client only sees the generic message and debug_id."""
    debug_id = str(uuid.uuid4())
    logger.error(
        "unhandled_exception",
        error_type=type(exc).__name__,
        debug_id=debug_id,
        exc_info=True,
        **_request_context(request),
    )
    return _error_response(500, "error.internal", debug_id)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="AI personas with coin and subscription billing",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list({settings.frontend_url, *settings.cors_allowed_origins}),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Added last so it runs first on incoming requests
    setup_correlation_middleware(app)

    app.exception_handler(PersonaHubError)(persona_hub_exception_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "personahub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
