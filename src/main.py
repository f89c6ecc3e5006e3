"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.core import db_client
from src.core.db_client import init_db
from src.core.errors import ErrorSeverity, TaskTrackerError, classify_error_with_response
from src.core.logging import configure_logfire, instrument_fastapi
from src.core.module_registry import get_all_routers, get_modules
from src.modules import register_default_modules


logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.ERROR,
}


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    configure_logfire()

    await init_db()
    logger.info("Database initialized")

    for module in get_modules().values():
        logger.info(
            "Module loaded",
            extra={"module": module.name, "config_fields": [field.name for field in module.get_config_fields()]},
        )

    yield
    # Shutdown
    await db_client.close_connection()


app = FastAPI(
    title="task-tracker",
    description="Project task tracking with numbering, status derivation, archiving and recurrence",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
register_default_modules()
for router in get_all_routers():
    app.include_router(router)


@app.exception_handler(TaskTrackerError)
async def task_tracker_error_handler(request: Request, exc: TaskTrackerError) -> JSONResponse:
    """Render domain errors as {"error", "code"} with the mapped HTTP status."""
    response = classify_error_with_response(exc)
    logger.log(
        _LOG_LEVELS[response.severity],
        "request_failed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "code": response.code,
            "severity": response.severity.value,
            "status_code": response.status_code,
            "error": response.message,
        },
    )
    return JSONResponse(
        content={"error": response.message, "code": response.code, "suggestion": response.suggestion},
        status_code=response.status_code,
    )


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)
