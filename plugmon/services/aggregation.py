"""
Aggregation service: roll raw plug results into fixed-width bucket averages.

Buckets are left-aligned on the epoch: a bucket of width ``duration_ms``
covers ``[start, start + duration_ms)`` where ``start`` is a multiple of
``duration_ms``. Aggregating a bucket computes, per plug, the arithmetic
mean of each metric over the results inside it and upserts one row in
the ``average`` table keyed by (plug_id, bucket_start_ms, duration_ms).
Re-aggregating an open bucket overwrites that row in place.

The coroutines taking a gateway are request queue operations. The
orchestration (one select, then one upsert per plug) lives in
``PlugStore.average_plug_results``.

CHANGELOG:
- 2026-10-13: Initial creation (STORY-005)
- 2026-10-14: Treat duplicate bucket rows as a consistency violation (STORY-006)

TODO:
- None
"""

import logging
import time
from typing import Any

from plugmon.db.gateway import StorageGateway
from plugmon.db.models import METRIC_COLUMNS
from plugmon.errors import ConsistencyViolationError

logger = logging.getLogger(__name__)

_BUCKET_AVERAGES_SQL = (
    "SELECT plug_id, "
    + ", ".join(f"AVG({col}) AS {col}" for col in METRIC_COLUMNS)
    + " FROM result "
    "WHERE timestamp_ms >= :bucket_start AND timestamp_ms < :bucket_end "
    "GROUP BY plug_id "
    "ORDER BY plug_id;"
)

_SELECT_AVERAGE_SQL = (
    "SELECT average_id FROM average "
    "WHERE plug_id = :plug_id "
    "AND bucket_start_ms = :bucket_start_ms "
    "AND duration_ms = :duration_ms;"
)

_UPDATE_AVERAGE_SQL = (
    "UPDATE average SET "
    + ", ".join(f"{col} = :{col}" for col in METRIC_COLUMNS)
    + " WHERE average_id = :average_id;"
)

_INSERT_AVERAGE_SQL = (
    "INSERT INTO average (plug_id, bucket_start_ms, duration_ms, "
    + ", ".join(METRIC_COLUMNS)
    + ") VALUES (:plug_id, :bucket_start_ms, :duration_ms, "
    + ", ".join(f":{col}" for col in METRIC_COLUMNS)
    + ") RETURNING average_id;"
)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def compute_bucket(timestamp_ms: int, duration_ms: int) -> tuple[int, int]:
    """Return the ``(start, end)`` of the bucket containing *timestamp_ms*.

    Args:
        timestamp_ms: Any instant in epoch milliseconds.
        duration_ms: Bucket width in milliseconds.

    Returns:
        Tuple ``(start, end)``; *start* is inclusive, *end* exclusive.

    Raises:
        ValueError: If *duration_ms* is not positive.
    """
    if duration_ms <= 0:
        raise ValueError(f"duration_ms must be positive (got {duration_ms})")
    start = timestamp_ms - (timestamp_ms % duration_ms)
    return start, start + duration_ms


async def select_bucket_averages(
    gateway: StorageGateway,
    bucket_start: int,
    bucket_end: int,
) -> list[dict[str, Any]]:
    """Average every metric per plug over ``[bucket_start, bucket_end)``.

    Plugs without results in the bucket do not appear.
    """
    return await gateway.execute(
        _BUCKET_AVERAGES_SQL,
        {"bucket_start": bucket_start, "bucket_end": bucket_end},
    )


async def upsert_average(
    gateway: StorageGateway,
    plug_id: int,
    bucket_start_ms: int,
    duration_ms: int,
    metrics: dict[str, float],
) -> int:
    """Insert or update the average row for one plug and bucket.

    Args:
        gateway: Storage gateway.
        plug_id: Plug the average belongs to.
        bucket_start_ms: Inclusive bucket start.
        duration_ms: Bucket width.
        metrics: Mean of each metric column.

    Returns:
        int: The id of the inserted or updated average row.

    Raises:
        ConsistencyViolationError: If more than one row already exists
            for the bucket key. Nothing is written in that case.
    """
    key = {
        "plug_id": plug_id,
        "bucket_start_ms": bucket_start_ms,
        "duration_ms": duration_ms,
    }
    matches = await gateway.execute(_SELECT_AVERAGE_SQL, key)
    values = {col: metrics[col] for col in METRIC_COLUMNS}

    if len(matches) > 1:
        raise ConsistencyViolationError(
            plug_id, bucket_start_ms, duration_ms, len(matches)
        )

    if matches:
        average_id = matches[0]["average_id"]
        await gateway.execute(
            _UPDATE_AVERAGE_SQL, {"average_id": average_id, **values}
        )
        logger.debug("Updated average %d for plug %d", average_id, plug_id)
        return average_id

    inserted = await gateway.execute(_INSERT_AVERAGE_SQL, {**key, **values})
    average_id = inserted[0]["average_id"]
    logger.debug("Inserted average %d for plug %d", average_id, plug_id)
    return average_id
