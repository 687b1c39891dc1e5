"""
Tests for the plug monitor and the aggregation scheduler.

Tests verify:
- poll_once stores a parsed reading stamped with the tick time.
- Unreachable plugs are skipped without touching the store.
- Malformed responses raise ValueError (logged by the loop).
- The poll loop keeps running through failures and stops on stop().
- The scheduler aggregates the bucket that just closed.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-007)
- 2026-10-15: Add scheduler tests (STORY-008)

TODO:
- None
"""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest

from plugmon.errors import ConsistencyViolationError, QueueFullError
from plugmon.monitor.monitor import PlugMonitor
from plugmon.monitor.scheduler import AggregationScheduler
from plugmon.schemas import PowerMetrics

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture()
def energy_html() -> str:
    return (FIXTURES_DIR / "tasmota_energy.html").read_text(encoding="utf-8")


@pytest.fixture()
def mock_store() -> AsyncMock:
    store = AsyncMock()
    store.add_result.return_value = {"plug_id": 1, "result_id": 7}
    store.average_plug_results.return_value = []
    return store


def _client(status_code: int = 200, text: str = "") -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.MockTransport(lambda r: httpx.Response(status_code, text=text))
    )


class TestPollOnce:
    """A single poll tick."""

    @pytest.mark.asyncio()
    async def test_stores_parsed_reading(
        self,
        mock_store: AsyncMock,
        energy_html: str,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr("plugmon.monitor.monitor.now_ms", lambda: 1_234)
        async with _client(text=energy_html) as client:
            monitor = PlugMonitor(mock_store, {"fridge": "10.0.0.2"}, 1000, client=client)
            ids = await monitor.poll_once("fridge", "10.0.0.2")

        assert ids == {"plug_id": 1, "result_id": 7}
        name, metrics, timestamp_ms = mock_store.add_result.await_args.args
        assert name == "fridge"
        assert isinstance(metrics, PowerMetrics)
        assert metrics.active_power == 78.0
        assert timestamp_ms == 1_234

    @pytest.mark.asyncio()
    async def test_unreachable_plug_skipped(self, mock_store: AsyncMock) -> None:
        async with _client(status_code=500) as client:
            monitor = PlugMonitor(mock_store, {}, 1000, client=client)
            assert await monitor.poll_once("fridge", "10.0.0.2") is None

        mock_store.add_result.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_malformed_response_raises(self, mock_store: AsyncMock) -> None:
        async with _client(text="{s}Voltage{m}230{e}") as client:
            monitor = PlugMonitor(mock_store, {}, 1000, client=client)
            with pytest.raises(ValueError):
                await monitor.poll_once("fridge", "10.0.0.2")

        mock_store.add_result.assert_not_awaited()


class TestPollLoop:
    """Background polling lifecycle."""

    @pytest.mark.asyncio()
    async def test_polls_every_plug_until_stopped(
        self, mock_store: AsyncMock, energy_html: str
    ) -> None:
        plugs = {"fridge": "10.0.0.2", "tv": "10.0.0.3"}
        async with _client(text=energy_html) as client:
            monitor = PlugMonitor(mock_store, plugs, 100, client=client)
            monitor.start()
            assert monitor.is_running
            await asyncio.sleep(0.05)
            await monitor.stop()

        assert not monitor.is_running
        names = {call.args[0] for call in mock_store.add_result.await_args_list}
        assert names == {"fridge", "tv"}

    @pytest.mark.asyncio()
    async def test_store_errors_do_not_stop_loop(
        self, mock_store: AsyncMock, energy_html: str
    ) -> None:
        mock_store.add_result.side_effect = QueueFullError(32)
        async with _client(text=energy_html) as client:
            monitor = PlugMonitor(mock_store, {"fridge": "10.0.0.2"}, 100, client=client)
            monitor.start()
            await asyncio.sleep(0.25)
            await monitor.stop()

        assert mock_store.add_result.await_count >= 2

    @pytest.mark.asyncio()
    async def test_start_twice_raises(self, mock_store: AsyncMock) -> None:
        async with _client() as client:
            monitor = PlugMonitor(mock_store, {"fridge": "10.0.0.2"}, 1000, client=client)
            monitor.start()
            try:
                with pytest.raises(RuntimeError):
                    monitor.start()
            finally:
                await monitor.stop()

    @pytest.mark.asyncio()
    async def test_injected_client_left_open(self, mock_store: AsyncMock) -> None:
        client = _client()
        monitor = PlugMonitor(mock_store, {}, 1000, client=client)
        monitor.start()
        await monitor.stop()

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio()
    async def test_owned_client_created_and_closed(self, mock_store: AsyncMock) -> None:
        monitor = PlugMonitor(mock_store, {}, 1000)
        with pytest.raises(RuntimeError):
            await monitor.poll_once("fridge", "10.0.0.2")

        monitor.start()
        await monitor.stop()
        with pytest.raises(RuntimeError):
            await monitor.poll_once("fridge", "10.0.0.2")


class TestAggregationScheduler:
    """Bucket roll-up after each close."""

    @pytest.mark.asyncio()
    async def test_aggregates_bucket_that_just_closed(
        self, mock_store: AsyncMock
    ) -> None:
        scheduler = AggregationScheduler(mock_store, 60_000)

        await scheduler.aggregate_bucket_ending(120_000)

        mock_store.average_plug_results.assert_awaited_once_with(
            60_000, now_ms=119_999
        )

    @pytest.mark.asyncio()
    async def test_runs_periodically_until_stopped(
        self, mock_store: AsyncMock
    ) -> None:
        scheduler = AggregationScheduler(mock_store, 20, settle_ms=0)
        scheduler.start()
        assert scheduler.is_running
        await asyncio.sleep(0.15)
        await scheduler.stop()

        assert not scheduler.is_running
        assert mock_store.average_plug_results.await_count >= 2
        for call in mock_store.average_plug_results.await_args_list:
            assert call.args == (20,)
            assert (call.kwargs["now_ms"] + 1) % 20 == 0

    @pytest.mark.asyncio()
    async def test_failures_do_not_stop_scheduler(
        self, mock_store: AsyncMock
    ) -> None:
        mock_store.average_plug_results.side_effect = ConsistencyViolationError(
            1, 0, 20, 2
        )
        scheduler = AggregationScheduler(mock_store, 20, settle_ms=0)
        scheduler.start()
        await asyncio.sleep(0.15)
        await scheduler.stop()

        assert mock_store.average_plug_results.await_count >= 2

    @pytest.mark.asyncio()
    async def test_start_twice_raises(self, mock_store: AsyncMock) -> None:
        scheduler = AggregationScheduler(mock_store, 60_000)
        scheduler.start()
        try:
            with pytest.raises(RuntimeError):
                scheduler.start()
        finally:
            await scheduler.stop()

    def test_rejects_non_positive_duration(self, mock_store: AsyncMock) -> None:
        with pytest.raises(ValueError):
            AggregationScheduler(mock_store, 0)
