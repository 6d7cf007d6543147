# app/main.py
"""
Press kit analytics service.

Owns the database pool and the view notification dispatcher lifecycle,
and mounts the tracking, analytics, and health routers.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.config import settings
from app.db.pool import db_pool
from app.features.presskit_analytics import analytics_router, notification_dispatcher
from app.infrastructure.observability.logging import get_logger, log_request, setup_logging
from app.middleware import RequestContextMiddleware
from app.routes import health

# Setup logging before creating the app
setup_logging(log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the database pool, then the notification worker; stop them in reverse."""

    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    startup_tasks = []

    try:
        logger.info("Initializing database pool")
        await db_pool.initialize()
        startup_tasks.append("database_pool")

        logger.info("Starting notification dispatcher")
        await notification_dispatcher.start()
        startup_tasks.append("notification_dispatcher")

        logger.info("All services initialized successfully", services=startup_tasks)

    except Exception as e:
        logger.error("Failed to initialize services", error=str(e), completed_tasks=startup_tasks)

        if "notification_dispatcher" in startup_tasks:
            try:
                await notification_dispatcher.stop()
            except Exception as cleanup_error:
                logger.error("Error stopping notification dispatcher", error=str(cleanup_error))

        if "database_pool" in startup_tasks:
            try:
                await db_pool.close()
            except Exception as cleanup_error:
                logger.error("Error cleaning up database pool", error=str(cleanup_error))

        raise

    yield

    logger.info("Application shutting down")

    shutdown_errors = []

    # Drain notifications first; the worker still needs the pool
    try:
        logger.info("Stopping notification dispatcher")
        await notification_dispatcher.stop()
    except Exception as e:
        logger.error("Error stopping notification dispatcher", error=str(e))
        shutdown_errors.append(f"Notifications: {e}")

    try:
        logger.info("Closing database pool")
        await db_pool.close()
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))
        shutdown_errors.append(f"Database: {e}")

    if shutdown_errors:
        logger.warning("Some services had shutdown errors", errors=shutdown_errors)
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="Press Kit Analytics",
    description="View and click tracking, owner notifications, and dashboard statistics for press kits",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(analytics_router)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed tracking payloads are plain 400s, like the service's own validation errors."""
    logger.info("Request validation failed", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"detail": "Invalid request"})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
