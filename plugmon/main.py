"""
FastAPI application entry point for the plug monitor.

The application lifespan wires the whole process together:
1. Opens the ``PlugStore`` (storage gateway + request queue).
2. Starts the ``PlugMonitor`` poll tasks.
3. Starts the ``AggregationScheduler``.

On shutdown they are stopped in reverse order, and the store finishes
its queued operations before the engine is disposed.

Store errors reaching a handler are mapped to a JSON error envelope:
``QueueFullError`` -> 503, any other ``PlugStoreError`` -> 500.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-010)
- 2026-10-15: Register health router (STORY-011)
- 2026-10-16: Start monitor and scheduler from the lifespan (STORY-012)

TODO:
- None
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from plugmon import __version__
from plugmon.api.health import router as health_router
from plugmon.api.plugs import router as plugs_router
from plugmon.config import get_settings
from plugmon.errors import PlugStoreError, QueueFullError
from plugmon.logging_config import setup_logging
from plugmon.monitor.monitor import PlugMonitor
from plugmon.monitor.scheduler import AggregationScheduler
from plugmon.store import PlugStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: open the store, start polling and aggregation."""
    settings = get_settings()
    setup_logging(settings.log_level)

    store = PlugStore.open(settings.database_path, settings.queue_max_size)
    monitor = PlugMonitor(
        store,
        settings.plugs,
        interval_ms=settings.poll_interval_ms,
        timeout_s=settings.poll_timeout_s,
    )
    scheduler = AggregationScheduler(store, settings.average_duration_ms)

    app.state.store = store
    monitor.start()
    scheduler.start()
    logger.info("Plug monitor started with database %s", settings.database_path)

    try:
        yield
    finally:
        await scheduler.stop()
        await monitor.stop()
        await store.close()
        app.state.store = None
        logger.info("Plug monitor shut down cleanly")


def _error_body(status: int, message: str, details: str) -> dict:
    return {"error": {"status": status, "message": message, "details": details}}


app = FastAPI(
    title="plugmon API",
    description="Power telemetry API for Tasmota smart plugs.",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(plugs_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with its client address and response status."""
    response = await call_next(request)
    client = request.client.host if request.client else "-"
    logger.info(
        "%s | %s %s -> %d",
        client,
        request.method,
        request.url.path,
        response.status_code,
    )
    return response


@app.exception_handler(QueueFullError)
async def queue_full_handler(request: Request, exc: QueueFullError) -> JSONResponse:
    """Map a rejected storage request to 503 Service Unavailable."""
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content=_error_body(503, "Storage busy", str(exc)),
    )


@app.exception_handler(PlugStoreError)
async def store_error_handler(request: Request, exc: PlugStoreError) -> JSONResponse:
    """Map any other store failure to 500 Internal Server Error."""
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content=_error_body(500, "Storage failure", str(exc)),
    )


def main() -> None:
    """Run the API, monitor and scheduler under uvicorn."""
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_config=None)


if __name__ == "__main__":
    main()
