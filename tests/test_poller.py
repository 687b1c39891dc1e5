"""
Unit tests for the Tasmota plug poller.

Tests verify:
- A 2xx response returns the body text.
- GET /?m=1 is requested on the plug host.
- HTTP errors, timeouts and connection errors return None without raising.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-007)

TODO:
- None
"""

import logging

import httpx
import pytest

from plugmon.monitor.poller import poll_plug

_HOST = "192.168.1.40"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestPollPlugSuccess:
    """Successful responses are returned as text."""

    @pytest.mark.asyncio()
    async def test_returns_body_on_200(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, text="{s}Voltage{m}230{e}")

        async with _client(handler) as client:
            body = await poll_plug(client, _HOST)

        assert body == "{s}Voltage{m}230{e}"
        assert requests[0].method == "GET"
        assert requests[0].url.host == _HOST
        assert requests[0].url.params["m"] == "1"


class TestPollPlugErrors:
    """Failures are logged and swallowed."""

    @pytest.mark.asyncio()
    @pytest.mark.parametrize("status_code", [401, 404, 500, 503])
    async def test_http_error_returns_none(
        self, status_code: int, caplog: pytest.LogCaptureFixture
    ) -> None:
        async with _client(lambda r: httpx.Response(status_code)) as client:
            with caplog.at_level(logging.WARNING):
                body = await poll_plug(client, _HOST)

        assert body is None
        assert str(status_code) in caplog.text

    @pytest.mark.asyncio()
    async def test_timeout_returns_none(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as client:
            assert await poll_plug(client, _HOST) is None

    @pytest.mark.asyncio()
    async def test_connection_error_returns_none(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler) as client:
            assert await poll_plug(client, _HOST) is None
