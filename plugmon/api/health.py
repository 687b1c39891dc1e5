"""
Health check endpoint that probes the plug store.

Runs ``SELECT 1`` through the request queue, so a healthy answer means
the database opens and the queue is draining. Returns HTTP 200 when the
probe succeeds, or HTTP 503 otherwise.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-011)

TODO:
- None
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from plugmon.api.deps import Store
from plugmon.store import PlugStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_db(store: PlugStore) -> str:
    """Probe the store with a queued SELECT 1.

    Returns:
        "ok" if the probe succeeds, "error" otherwise.
    """
    try:
        await store.ping()
        return "ok"
    except Exception:
        logger.warning("Health check: DB probe failed", exc_info=True)
        return "error"


@router.get("/health")
async def health_check(store: Store) -> JSONResponse:
    """Health check endpoint.

    Returns:
        JSONResponse: JSON with status, db and queue_pending fields.
            HTTP 200 when the store is ok, HTTP 503 when degraded.
    """
    db_status = await _check_db(store)
    ok = db_status == "ok"

    return JSONResponse(
        status_code=200 if ok else 503,
        content={
            "status": "ok" if ok else "degraded",
            "db": db_status,
            "queue_pending": store.queue.pending,
        },
    )
