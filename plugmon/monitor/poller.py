"""
Tasmota plug poller: fetch the sensor fragment over HTTP.

Sends ``GET http://{host}/?m=1`` (the minimal page TasmoAdmin and Home
Assistant read) and returns the body text. All network and HTTP errors
are caught and logged at WARNING level so the poll loop never crashes.
Retrying is left to the next tick.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-007)

TODO:
- None
"""

import logging

import httpx

logger = logging.getLogger(__name__)


async def poll_plug(client: httpx.AsyncClient, host: str) -> str | None:
    """Fetch the sensor fragment from the plug at *host*.

    Args:
        client: Shared async HTTP client (timeouts are configured on it).
        host: IP address or hostname of the plug.

    Returns:
        Response body on a 2xx status, or ``None`` on any error.
    """
    url = f"http://{host}/?m=1"

    try:
        response = await client.get(url)
        response.raise_for_status()
        return response.text

    except httpx.HTTPStatusError as exc:
        logger.warning(
            "Plug poll HTTP error %s for %s: %s",
            exc.response.status_code,
            url,
            exc,
        )
        return None

    except httpx.TimeoutException as exc:
        logger.warning("Plug poll timeout for %s: %s", url, exc)
        return None

    except httpx.TransportError as exc:
        logger.warning("Plug poll connection error for %s: %s", url, exc)
        return None
