"""
Plug monitor: poll every configured plug on a fixed interval.

One asyncio task per plug. On each tick the task:
1. Records the tick time.
2. Polls the plug over HTTP.
3. Parses and normalizes the sensor fragment.
4. Stores the reading via ``PlugStore.add_result`` with the tick time.

Any single-tick failure is logged and skipped (the loop continues).
Polling finishes before anything is submitted to the store queue, so a
slow plug never holds up storage for the others.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-007)

TODO:
- None
"""

import asyncio
import logging

import httpx

from plugmon.errors import PlugStoreError
from plugmon.monitor.parser import normalize, parse_sensor_html
from plugmon.monitor.poller import poll_plug
from plugmon.services.aggregation import now_ms
from plugmon.store import PlugStore

logger = logging.getLogger(__name__)


class PlugMonitor:
    """Polls plugs and feeds their readings into the store.

    Args:
        store: Store receiving the readings.
        plugs: Mapping of plug name to host.
        interval_ms: Milliseconds between polls of each plug.
        timeout_s: HTTP timeout for a single poll.
        client: Optional HTTP client; one is created (and closed on
            ``stop()``) when omitted.
    """

    def __init__(
        self,
        store: PlugStore,
        plugs: dict[str, str],
        interval_ms: int,
        timeout_s: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._store = store
        self._plugs = dict(plugs)
        self._interval_s = interval_ms / 1000
        self._timeout_s = timeout_s
        self._client = client
        self._owns_client = client is None
        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task] = []

    @property
    def is_running(self) -> bool:
        """Whether poll tasks are active."""
        return bool(self._tasks)

    def start(self) -> None:
        """Spawn one poll task per plug.

        Raises:
            RuntimeError: If the monitor is already running.
        """
        if self._tasks:
            raise RuntimeError("Monitor already running")

        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_s)

        self._stop_event.clear()
        for name, host in self._plugs.items():
            self._tasks.append(
                asyncio.create_task(self._poll_loop(name, host), name=f"poll-{name}")
            )
        logger.info(
            "Monitoring %d plug(s) every %.1fs", len(self._plugs), self._interval_s
        )

    async def stop(self) -> None:
        """Signal every poll task to exit and wait for them."""
        self._stop_event.set()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("Monitoring stopped")

    async def poll_once(self, name: str, host: str) -> dict[str, int] | None:
        """Poll one plug and store its reading.

        Args:
            name: Plug name.
            host: Plug host.

        Returns:
            The ``{"plug_id", "result_id"}`` of the stored reading, or
            ``None`` if the plug could not be reached.

        Raises:
            ValueError: If the response lacks a required sensor row.
            PlugStoreError: If the reading could not be stored.
        """
        if self._client is None:
            raise RuntimeError("Monitor has no HTTP client; call start() first")

        timestamp_ms = now_ms()
        html = await poll_plug(self._client, host)
        if html is None:
            return None

        metrics = normalize(parse_sensor_html(html))
        ids = await self._store.add_result(name, metrics, timestamp_ms)
        logger.debug("Inserted reading for plug %s: %s", name, ids)
        return ids

    async def _poll_loop(self, name: str, host: str) -> None:
        while not self._stop_event.is_set():
            try:
                await self.poll_once(name, host)
            except (ValueError, PlugStoreError) as exc:
                logger.warning("Failed to monitor plug %s: %s", name, exc)
            except Exception:
                logger.exception("Unexpected error monitoring plug %s", name)

            try:
                await asyncio.wait_for(self._stop_event.wait(), self._interval_s)
            except TimeoutError:
                pass
