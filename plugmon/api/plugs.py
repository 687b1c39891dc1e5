"""
Plug API endpoints: plug listing and time-ranged results and averages.

All ranges are inclusive epoch milliseconds; omitted bounds mean the
full history.

CHANGELOG:
- 2026-10-15: Initial creation (STORY-010)

TODO:
- None
"""

import logging

from fastapi import APIRouter, HTTPException

from plugmon.api.deps import Store
from plugmon.schemas import AveragesResponse, PlugsResponse, ResultsResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["plugs"])


def _check_range(start: int | None, end: int | None) -> None:
    """Reject ranges whose start is after their end."""
    if start is not None and end is not None and start > end:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid range: start ({start}) is after end ({end})",
        )


@router.get("/plugs", response_model=PlugsResponse)
async def list_plugs(store: Store) -> PlugsResponse:
    """List every known plug."""
    plugs = await store.get_plugs()
    return PlugsResponse(plugs=plugs)


@router.get("/plugs/{plug_id}/results", response_model=ResultsResponse)
async def list_plug_results(
    plug_id: int,
    store: Store,
    start: int | None = None,
    end: int | None = None,
) -> ResultsResponse:
    """Get raw readings of a plug.

    Args:
        plug_id: Plug to read.
        store: Plug store.
        start: Earliest timestamp (inclusive).
        end: Latest timestamp (inclusive).

    Returns:
        ResultsResponse: The plug id and its readings ordered by time.

    Raises:
        HTTPException: 400 if start is after end.
    """
    _check_range(start, end)
    results = await store.get_plug_results(plug_id, start, end)
    return ResultsResponse(plug_id=plug_id, results=results)


@router.get("/plugs/{plug_id}/averages", response_model=AveragesResponse)
async def list_plug_averages(
    plug_id: int,
    store: Store,
    start: int | None = None,
    end: int | None = None,
    duration_ms: int | None = None,
) -> AveragesResponse:
    """Get bucket averages of a plug.

    Args:
        plug_id: Plug to read.
        store: Plug store.
        start: Earliest bucket start (inclusive).
        end: Latest bucket start (inclusive).
        duration_ms: Restrict to buckets of this width.

    Returns:
        AveragesResponse: The plug id and its averages ordered by bucket.

    Raises:
        HTTPException: 400 if start is after end or duration is not positive.
    """
    _check_range(start, end)
    if duration_ms is not None and duration_ms <= 0:
        raise HTTPException(status_code=400, detail="duration_ms must be positive")
    averages = await store.get_plug_averages(plug_id, start, end, duration_ms)
    return AveragesResponse(plug_id=plug_id, averages=averages)
