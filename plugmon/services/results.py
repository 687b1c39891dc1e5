"""
Result ingestion and the read path.

Each public coroutine here is one request queue operation: it receives
the storage gateway as its first argument and may issue several
statements, which run back to back because nothing else touches the
gateway until the operation returns.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-004)
- 2026-10-14: Add get_plug_averages (STORY-006)

TODO:
- None
"""

import logging
from typing import Any

from plugmon.db.gateway import StorageGateway
from plugmon.db.models import METRIC_COLUMNS
from plugmon.schemas import PowerMetrics
from plugmon.services.registry import resolve_plug

logger = logging.getLogger(__name__)

# Bounds of a signed 64-bit SQLite integer; used when a range end is omitted.
MIN_TIMESTAMP_MS: int = -(2**63)
MAX_TIMESTAMP_MS: int = 2**63 - 1

_METRICS_SQL = ", ".join(METRIC_COLUMNS)

_INSERT_RESULT_SQL = (
    f"INSERT INTO result (plug_id, timestamp_ms, {_METRICS_SQL}) "
    "VALUES (:plug_id, :timestamp_ms, "
    + ", ".join(f":{col}" for col in METRIC_COLUMNS)
    + ") RETURNING result_id;"
)

_SELECT_PLUGS_SQL = "SELECT plug_id, plug_name FROM plug ORDER BY plug_id;"

_SELECT_RESULTS_SQL = (
    f"SELECT result_id, plug_id, timestamp_ms, {_METRICS_SQL} "
    "FROM result "
    "WHERE plug_id = :plug_id "
    "AND timestamp_ms >= :start AND timestamp_ms <= :end "
    "ORDER BY timestamp_ms, result_id;"
)

_SELECT_AVERAGES_SQL = (
    f"SELECT average_id, plug_id, bucket_start_ms, duration_ms, {_METRICS_SQL} "
    "FROM average "
    "WHERE plug_id = :plug_id "
    "AND bucket_start_ms >= :start AND bucket_start_ms <= :end"
)


async def add_result(
    gateway: StorageGateway,
    plug_name: str,
    metrics: PowerMetrics,
    timestamp_ms: int,
) -> dict[str, int]:
    """Store one reading for the plug named *plug_name*.

    The plug is registered on first use.

    Args:
        gateway: Storage gateway.
        plug_name: Name of the plug the reading came from.
        metrics: The six measured values.
        timestamp_ms: Reading time in epoch milliseconds.

    Returns:
        dict: ``{"plug_id": ..., "result_id": ...}``.
    """
    plug_id = await resolve_plug(gateway, plug_name)

    params: dict[str, Any] = {"plug_id": plug_id, "timestamp_ms": timestamp_ms}
    params.update(metrics.model_dump(include=set(METRIC_COLUMNS)))
    inserted = await gateway.execute(_INSERT_RESULT_SQL, params)

    result_id = inserted[0]["result_id"]
    logger.debug(
        "Inserted result %d for plug %r (id %d) at %d",
        result_id,
        plug_name,
        plug_id,
        timestamp_ms,
    )
    return {"plug_id": plug_id, "result_id": result_id}


async def get_plugs(gateway: StorageGateway) -> list[dict[str, Any]]:
    """Return every known plug, ordered by id."""
    return await gateway.execute(_SELECT_PLUGS_SQL)


async def get_plug_results(
    gateway: StorageGateway,
    plug_id: int,
    start: int | None = None,
    end: int | None = None,
) -> list[dict[str, Any]]:
    """Return a plug's readings with ``start <= timestamp_ms <= end``.

    Omitted bounds cover the full history. An unknown plug or an empty
    range yields an empty list.
    """
    params = {
        "plug_id": plug_id,
        "start": MIN_TIMESTAMP_MS if start is None else start,
        "end": MAX_TIMESTAMP_MS if end is None else end,
    }
    return await gateway.execute(_SELECT_RESULTS_SQL, params)


async def get_plug_averages(
    gateway: StorageGateway,
    plug_id: int,
    start: int | None = None,
    end: int | None = None,
    duration_ms: int | None = None,
) -> list[dict[str, Any]]:
    """Return a plug's averages with ``start <= bucket_start_ms <= end``.

    Args:
        gateway: Storage gateway.
        plug_id: Plug to read.
        start: Earliest bucket start (inclusive), full history if omitted.
        end: Latest bucket start (inclusive), full history if omitted.
        duration_ms: Only return buckets of this width when given.

    Returns:
        List of average row dicts ordered by bucket start.
    """
    sql = _SELECT_AVERAGES_SQL
    params: dict[str, Any] = {
        "plug_id": plug_id,
        "start": MIN_TIMESTAMP_MS if start is None else start,
        "end": MAX_TIMESTAMP_MS if end is None else end,
    }
    if duration_ms is not None:
        sql += " AND duration_ms = :duration_ms"
        params["duration_ms"] = duration_ms
    sql += " ORDER BY bucket_start_ms, duration_ms;"
    return await gateway.execute(sql, params)
