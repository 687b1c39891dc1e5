"""
Aggregation scheduler: roll up each bucket shortly after it closes.

Sleeps until the current bucket's end plus a small settle delay, then
asks the store to aggregate the bucket that just closed. Waking after
the close (rather than on a free-running timer) means every reading
stamped inside the bucket is included in its final average.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-008)

TODO:
- None
"""

import asyncio
import logging
from collections.abc import Callable

from plugmon.services.aggregation import compute_bucket, now_ms
from plugmon.store import PlugStore

logger = logging.getLogger(__name__)

# Grace period after a bucket closes, for readings still in the queue.
_DEFAULT_SETTLE_MS: int = 500


class AggregationScheduler:
    """Periodically calls ``PlugStore.average_plug_results``.

    Args:
        store: Store to aggregate.
        duration_ms: Bucket width, also the aggregation period.
        settle_ms: Delay after a bucket's end before aggregating it.
        clock: Returns the current time in epoch milliseconds.
    """

    def __init__(
        self,
        store: PlugStore,
        duration_ms: int,
        settle_ms: int = _DEFAULT_SETTLE_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        if duration_ms <= 0:
            raise ValueError("duration_ms must be positive")
        self._store = store
        self._duration_ms = duration_ms
        self._settle_ms = settle_ms
        self._clock = clock
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        """Whether the scheduler task is active."""
        return self._task is not None

    def start(self) -> None:
        """Start the scheduler task.

        Raises:
            RuntimeError: If the scheduler is already running.
        """
        if self._task is not None:
            raise RuntimeError("Scheduler already running")
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name="aggregation-scheduler")
        logger.info("Aggregating %d ms buckets", self._duration_ms)

    async def stop(self) -> None:
        """Signal the scheduler to exit and wait for it."""
        self._stop_event.set()
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

    async def aggregate_bucket_ending(self, bucket_end_ms: int) -> list[dict[str, int]]:
        """Aggregate the bucket whose exclusive end is *bucket_end_ms*."""
        return await self._store.average_plug_results(
            self._duration_ms, now_ms=bucket_end_ms - 1
        )

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            now = self._clock()
            _, bucket_end = compute_bucket(now, self._duration_ms)
            delay_s = max(bucket_end + self._settle_ms - now, 0) / 1000

            try:
                await asyncio.wait_for(self._stop_event.wait(), delay_s)
                break
            except TimeoutError:
                pass

            try:
                await self.aggregate_bucket_ending(bucket_end)
            except Exception:
                logger.exception(
                    "Aggregation failed for bucket ending at %d", bucket_end
                )
