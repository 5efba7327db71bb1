"""School Grade Book API: FastAPI application entry point.

Features:
- Lifespan context manager: probes the DB on startup (optionally creates
  tables), disposes the engine on shutdown
- Structured exception handlers for all domain exceptions
- Request/response logging middleware with request-ID tracing
- /health endpoint reporting database connectivity
"""

from __future__ import annotations

import datetime
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gradebook.config import get_settings
from gradebook.exceptions import (
    AccountDisabledError,
    BackupRestoreError,
    ClassNotFoundError,
    ConfirmationRequiredError,
    CSVImportError,
    DatabaseConnectionError,
    InvalidCredentialsError,
    InvalidInputError,
    PermissionDeniedError,
    StudentNotFoundError,
    SubjectNotFoundError,
    SubscriptionExpiredError,
    SubscriptionLimitError,
    UserExistsError,
    UserNotFoundError,
)

# ---------------------------------------------------------------------------
# Logging setup  (must happen before routers are imported)
# ---------------------------------------------------------------------------

_settings = get_settings()
logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Router and service imports
# ---------------------------------------------------------------------------

from gradebook.api import admin as _admin_module  # noqa: E402
from gradebook.api import auth as _auth_module  # noqa: E402
from gradebook.api import classes as _classes_module  # noqa: E402
from gradebook.api import dashboard as _dashboard_module  # noqa: E402
from gradebook.api import results as _results_module  # noqa: E402
from gradebook.api import school as _school_module  # noqa: E402
from gradebook.api import students as _students_module  # noqa: E402
from gradebook.database import check_db_connection, dispose_engine, init_db  # noqa: E402

# Register all ORM models with the declarative base (required for metadata)
import gradebook.models  # noqa: F401, E402

# ---------------------------------------------------------------------------
# Lifespan context manager
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle.

    Startup: create tables when ``AUTO_CREATE_TABLES`` is set, then probe
    DB connectivity and log the result (non-fatal).

    Shutdown: dispose the SQLAlchemy connection pool.
    """
    logger.info("School Grade Book API starting up (v%s)", _settings.app_version)

    if not _settings.admin_password:
        logger.warning("ADMIN_PASSWORD is empty; administrator login is disabled")

    if _settings.auto_create_tables:
        try:
            await init_db()
            logger.info("Database tables ensured")
        except Exception as exc:
            logger.error("Could not create tables: %s", exc)

    db_health = await check_db_connection()
    if db_health["status"] == "ok":
        logger.info("Database: OK")
    else:
        logger.warning("Database: DEGRADED (%s)", db_health.get("detail", "unknown"))

    logger.info("Startup complete, serving requests")
    yield

    logger.info("School Grade Book API shutting down")
    try:
        await dispose_engine()
    except Exception as exc:
        logger.warning("Error during engine disposal: %s", exc)
    logger.info("Shutdown complete")


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="School Grade Book API",
    description=(
        "Multi-tenant grade book for schools: classes and subjects, score "
        "entry, competition ranking, spreadsheet/CSV exports, certificates, "
        "dashboards and subscriber administration."
    ),
    version=_settings.app_version,
    debug=_settings.debug,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "health", "description": "System health and readiness checks."},
        {"name": "auth", "description": "Login and current-user information."},
        {"name": "classes", "description": "Classes and their ordered subjects."},
        {"name": "students", "description": "Student entry with computed totals."},
        {
            "name": "results",
            "description": "Ranked results, spreadsheet/CSV export, CSV import and certificates.",
        },
        {"name": "dashboard", "description": "Class and school statistics."},
        {"name": "school", "description": "School settings, backup, restore and reset."},
        {"name": "admin", "description": "Subscriber account administration."},
    ],
)

# ---------------------------------------------------------------------------
# CORS middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # restrict in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next: Any) -> Response:
    """Log every HTTP request with method, path, status, and duration.

    A short UUID-derived ``request_id`` is attached to each log line and
    returned as the ``X-Request-ID`` response header.
    """
    request_id = str(uuid.uuid4())[:8]
    t0 = time.monotonic()
    logger.info("[%s] → %s %s", request_id, request.method, request.url.path)

    try:
        response: Response = await call_next(request)
    except Exception as exc:
        elapsed = (time.monotonic() - t0) * 1000
        logger.error(
            "[%s] ✗ %s %s unhandled after %.1f ms: %s",
            request_id,
            request.method,
            request.url.path,
            elapsed,
            exc,
        )
        raise

    elapsed = (time.monotonic() - t0) * 1000
    logger.info(
        "[%s] ← %s %s %d (%.1f ms)",
        request_id,
        request.method,
        request.url.path,
        response.status_code,
        elapsed,
    )
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Structured exception handlers
# ---------------------------------------------------------------------------


def _error(status_code: int, error: str, exc: Exception, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": str(exc), **extra},
    )


@app.exception_handler(ClassNotFoundError)
async def class_not_found_handler(request: Request, exc: ClassNotFoundError) -> JSONResponse:
    """404 for unknown classes."""
    return _error(status.HTTP_404_NOT_FOUND, "class_not_found", exc, class_id=exc.class_id)


@app.exception_handler(SubjectNotFoundError)
async def subject_not_found_handler(request: Request, exc: SubjectNotFoundError) -> JSONResponse:
    return _error(
        status.HTTP_404_NOT_FOUND,
        "subject_not_found",
        exc,
        class_id=exc.class_id,
        subject_id=exc.subject_id,
    )


@app.exception_handler(StudentNotFoundError)
async def student_not_found_handler(request: Request, exc: StudentNotFoundError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, "student_not_found", exc, student_id=exc.student_id)


@app.exception_handler(UserNotFoundError)
async def user_not_found_handler(request: Request, exc: UserNotFoundError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, "user_not_found", exc, username=exc.username)


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    """422 for roster input that passed schema validation but is unusable."""
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_input", exc, field=exc.field)


@app.exception_handler(CSVImportError)
async def csv_import_error_handler(request: Request, exc: CSVImportError) -> JSONResponse:
    """422 for strict CSV imports that do not fit the class."""
    logger.warning("CSVImportError: %s (%d problems)", exc, len(exc.problems))
    return _error(
        status.HTTP_422_UNPROCESSABLE_ENTITY, "csv_import_failed", exc, problems=exc.problems
    )


@app.exception_handler(BackupRestoreError)
async def backup_restore_error_handler(request: Request, exc: BackupRestoreError) -> JSONResponse:
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "backup_invalid", exc)


@app.exception_handler(ConfirmationRequiredError)
async def confirmation_required_handler(
    request: Request, exc: ConfirmationRequiredError
) -> JSONResponse:
    """409 for destructive calls made without ``confirm=true``."""
    return _error(status.HTTP_409_CONFLICT, "confirmation_required", exc, action=exc.action)


@app.exception_handler(UserExistsError)
async def user_exists_handler(request: Request, exc: UserExistsError) -> JSONResponse:
    return _error(status.HTTP_409_CONFLICT, "user_exists", exc, username=exc.username)


@app.exception_handler(InvalidCredentialsError)
async def invalid_credentials_handler(
    request: Request, exc: InvalidCredentialsError
) -> JSONResponse:
    """401 for bad logins and rejected tokens."""
    response = _error(status.HTTP_401_UNAUTHORIZED, "invalid_credentials", exc)
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(AccountDisabledError)
async def account_disabled_handler(request: Request, exc: AccountDisabledError) -> JSONResponse:
    return _error(status.HTTP_403_FORBIDDEN, "account_disabled", exc, username=exc.username)


@app.exception_handler(SubscriptionExpiredError)
async def subscription_expired_handler(
    request: Request, exc: SubscriptionExpiredError
) -> JSONResponse:
    return _error(
        status.HTTP_403_FORBIDDEN,
        "subscription_expired",
        exc,
        username=exc.username,
        expiry_date=exc.expiry_date,
    )


@app.exception_handler(SubscriptionLimitError)
async def subscription_limit_handler(
    request: Request, exc: SubscriptionLimitError
) -> JSONResponse:
    """403 when a quota would be exceeded."""
    return _error(
        status.HTTP_403_FORBIDDEN,
        "subscription_limit_reached",
        exc,
        limit_name=exc.limit_name,
        limit=exc.limit,
    )


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError) -> JSONResponse:
    return _error(status.HTTP_403_FORBIDDEN, "permission_denied", exc)


@app.exception_handler(DatabaseConnectionError)
async def database_connection_error_handler(
    request: Request, exc: DatabaseConnectionError
) -> JSONResponse:
    """503 for database connectivity failures."""
    logger.error("DatabaseConnectionError: %s", exc)
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "database_unavailable", exc)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render FastAPI HTTPExceptions as structured JSON."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "http_error",
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )


# ---------------------------------------------------------------------------
# Core routes
# ---------------------------------------------------------------------------


@app.get("/", tags=["health"], summary="API root / service info")
async def root() -> dict[str, str]:
    """Return basic service metadata and navigation links."""
    return {
        "service": "School Grade Book API",
        "version": _settings.app_version,
        "documentation": "/docs",
        "health": "/health",
        "openapi": "/openapi.json",
    }


@app.get(
    "/health",
    tags=["health"],
    summary="System health check",
    description=(
        "Probes database connectivity. ``status: ok`` means the database is"
        " reachable; ``status: degraded`` means the API is responding but the"
        " database is not."
    ),
)
async def health_check() -> dict[str, Any]:
    """Return current system health including DB status."""
    db_health = await check_db_connection()
    return {
        "status": "ok" if db_health["status"] == "ok" else "degraded",
        "timestamp": datetime.datetime.utcnow().isoformat() + "Z",
        "version": _settings.app_version,
        "database": db_health,
    }


# ---------------------------------------------------------------------------
# Include routers
# ---------------------------------------------------------------------------

app.include_router(_auth_module.router)
app.include_router(_classes_module.router)
app.include_router(_students_module.router)
app.include_router(_results_module.router)
app.include_router(_dashboard_module.router)
app.include_router(_school_module.router)
app.include_router(_admin_module.router)


# ---------------------------------------------------------------------------
# Development entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "gradebook.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=_settings.log_level.lower(),
    )
