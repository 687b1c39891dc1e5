"""
Plug store: the interface collaborators use to reach the database.

``PlugStore`` owns one ``StorageGateway`` and one ``RequestQueue``. Every
method funnels its work through the queue, so reads and writes from the
poll tasks, the API and the aggregation scheduler execute strictly one
at a time, in the order they were submitted.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-004)
- 2026-10-13: Add average_plug_results (STORY-005)
- 2026-10-14: Add get_plug_averages (STORY-006)

TODO:
- None
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

from plugmon.config import DEFAULT_QUEUE_MAX_SIZE
from plugmon.db.gateway import StorageGateway
from plugmon.db.queue import RequestQueue
from plugmon.errors import QueueFullError
from plugmon.schemas import PowerMetrics
from plugmon.services import aggregation, results

logger = logging.getLogger(__name__)


class PlugStore:
    """Serialized access to plugs, results and averages.

    Args:
        gateway: Storage gateway to execute statements with.
        queue: Request queue serializing the gateway. A new queue of
            ``DEFAULT_QUEUE_MAX_SIZE`` is created if omitted.
    """

    def __init__(
        self,
        gateway: StorageGateway,
        queue: RequestQueue | None = None,
    ) -> None:
        self._gateway = gateway
        self._queue = queue if queue is not None else RequestQueue()

    @classmethod
    def open(
        cls,
        path: str | Path,
        max_size: int = DEFAULT_QUEUE_MAX_SIZE,
    ) -> "PlugStore":
        """Build a store for the SQLite file at *path*."""
        return cls(StorageGateway(path), RequestQueue(max_size))

    @property
    def gateway(self) -> StorageGateway:
        """The underlying storage gateway."""
        return self._gateway

    @property
    def queue(self) -> RequestQueue:
        """The request queue serializing the gateway."""
        return self._queue

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add_result(
        self,
        plug_name: str,
        metrics: PowerMetrics,
        timestamp_ms: int | None = None,
    ) -> dict[str, int]:
        """Store a reading, registering the plug on first use.

        Args:
            plug_name: Name of the plug the reading came from.
            metrics: The six measured values.
            timestamp_ms: Reading time; defaults to the time of this call.

        Returns:
            dict: ``{"plug_id": ..., "result_id": ...}``.
        """
        if timestamp_ms is None:
            timestamp_ms = aggregation.now_ms()
        return await self._queue.run(
            results.add_result, self._gateway, plug_name, metrics, timestamp_ms
        )

    async def average_plug_results(
        self,
        duration_ms: int,
        now_ms: int | None = None,
    ) -> list[dict[str, int]]:
        """Aggregate the bucket of width *duration_ms* containing now.

        One queued operation computes the per-plug means; then one upsert
        per plug is queued. The upserts are awaited together; every
        failure is logged and the first one is re-raised once all of them
        have settled.

        Args:
            duration_ms: Bucket width in milliseconds.
            now_ms: Instant selecting the bucket; defaults to the current time.

        Returns:
            List of ``{"plug_id": ..., "average_id": ...}`` for each plug
            with results in the bucket.

        Raises:
            ValueError: If *duration_ms* is not positive.
            ConsistencyViolationError: If a bucket key matched several rows.
        """
        if now_ms is None:
            now_ms = aggregation.now_ms()
        bucket_start, bucket_end = aggregation.compute_bucket(now_ms, duration_ms)

        averages = await self._queue.run(
            aggregation.select_bucket_averages,
            self._gateway,
            bucket_start,
            bucket_end,
        )

        plug_ids: list[int] = []
        futures: list[asyncio.Future] = []
        errors: list[Exception] = []
        for row in averages:
            try:
                futures.append(
                    self._queue.submit(
                        aggregation.upsert_average,
                        self._gateway,
                        row["plug_id"],
                        bucket_start,
                        duration_ms,
                        row,
                    )
                )
                plug_ids.append(row["plug_id"])
            except QueueFullError as exc:
                errors.append(exc)

        outcomes = await asyncio.gather(*futures, return_exceptions=True)

        upserted: list[dict[str, int]] = []
        for plug_id, outcome in zip(plug_ids, outcomes):
            if isinstance(outcome, Exception):
                errors.append(outcome)
            else:
                upserted.append({"plug_id": plug_id, "average_id": outcome})

        for exc in errors:
            logger.error(
                "Failed to upsert average for bucket %d (+%d ms): %s",
                bucket_start,
                duration_ms,
                exc,
            )
        if errors:
            raise errors[0]

        logger.info(
            "Averaged %d plug(s) for bucket %d (+%d ms)",
            len(upserted),
            bucket_start,
            duration_ms,
        )
        return upserted

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_plugs(self) -> list[dict[str, Any]]:
        """Return every known plug."""
        return await self._queue.run(results.get_plugs, self._gateway)

    async def get_plug_results(
        self,
        plug_id: int,
        start: int | None = None,
        end: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return a plug's readings in the inclusive range ``[start, end]``."""
        return await self._queue.run(
            results.get_plug_results, self._gateway, plug_id, start, end
        )

    async def get_plug_averages(
        self,
        plug_id: int,
        start: int | None = None,
        end: int | None = None,
        duration_ms: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return a plug's averages with bucket start in ``[start, end]``."""
        return await self._queue.run(
            results.get_plug_averages,
            self._gateway,
            plug_id,
            start,
            end,
            duration_ms,
        )

    async def ping(self) -> None:
        """Run a trivial statement through the queue (health probe)."""
        await self._queue.run(self._gateway.execute, "SELECT 1;")

    async def close(self) -> None:
        """Let queued operations finish, then release the engine."""
        await self._queue.join()
        await self._gateway.close()
