"""
statesync REST API - Main Application.

FastAPI-based REST API for session credentials and user state sync.

Usage:
    # Development
    uvicorn statesync.api.main:app --reload --port 5000

    # Production
    uvicorn statesync.api.main:app --host 0.0.0.0 --port 5000 --workers 4
"""
import time
import uuid
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from .routes import auth_router, totp_router, state_router, health_router
from ..auth.mfa import TotpEnroller
from ..auth.tokens import TokenService
from ..config import Settings
from ..database.connection import Database
from ..errors import ServiceError, ValidationError
from ..utils.secrets import mask_secret

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Add the current request_id to log records."""
    def filter(self, record):
        if not hasattr(record, 'request_id'):
            record.request_id = request_id_var.get()
        return True


def configure_logging(level: str = "INFO") -> None:
    """Set up root logging with request id support."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # Handler-level so records propagated from child loggers get the field too
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())


logger = logging.getLogger(__name__)

# API metadata
API_TITLE = "statesync API"
API_DESCRIPTION = """
**Session credentials and per-user state synchronisation**

## Authentication

1. Sign up: `POST /auth/signup`
2. Log in: `POST /auth/login` (password, or TOTP code once enabled)
3. Use token: `Authorization: Bearer <token>`

## TOTP

1. Get a secret: `GET /api/generate-totp`
2. Activate with one code: `POST /auth/enable-totp`

## State

- `GET /api/load-state`
- `POST /api/sync-state` (replaces the stored state)
"""


def _error_body(exc: ServiceError) -> dict:
    return {
        "success": False,
        "error": exc.reason,
        "message": exc.message,
        "code": exc.error_code,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Opens the database handle and builds the shared services on startup;
    closes the database on shutdown.
    """
    settings: Settings = app.state.settings
    settings.validate()

    logger.info(f"Starting {API_TITLE} v{settings.app_version}")

    database = Database(settings.database_url)
    database.init_schema()

    app.state.database = database
    app.state.tokens = TokenService(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_in=settings.jwt_expires_in,
    )
    app.state.enroller = TotpEnroller(
        issuer=settings.totp_issuer,
        valid_window=settings.totp_valid_window,
    )
    logger.info(
        f"Token signing configured ({settings.jwt_algorithm}, key {mask_secret(settings.jwt_secret)}, "
        f"expires in {settings.jwt_expire_hours}h)"
    )

    try:
        yield
    finally:
        logger.info(f"Shutting down {API_TITLE}")
        database.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Explicit settings; read from the environment when omitted.

    Returns:
        Configured FastAPI instance.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request tracking and security headers middleware
    @app.middleware("http")
    async def add_request_tracking_and_security(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"Request failed: {e}", exc_info=True)
            raise
        finally:
            request_id_var.reset(token)

        process_time = (time.time() - start_time) * 1000

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time-Ms"] = f"{process_time:.2f}"

        if not request.url.path.startswith("/health"):
            logger.info(
                f"[{request_id}] {request.method} {request.url.path} "
                f"-> {response.status_code} ({process_time:.1f}ms)"
            )

        # Security headers
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    # Exception handlers
    @app.exception_handler(ServiceError)
    async def service_exception_handler(request: Request, exc: ServiceError):
        log_fn = logger.error if exc.status_code >= 500 else logger.warning
        log_fn(f"{request.method} {request.url.path} failed: {exc.error_code} {exc.message}")
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(l) for l in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(ValidationError("; ".join(errors))),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(f"[{request_id}] Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "Internal Server Error",
                "message": str(exc),
                "code": "INTERNAL_ERROR",
                "request_id": request_id,
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(totp_router)
    app.include_router(state_router)

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "name": API_TITLE,
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "statesync.api.main:app",
        host="0.0.0.0",
        port=5000,
        reload=True,
        log_level="info",
    )
