"""
Pydantic schemas shared by the ingestion path and the web API.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-004)
- 2026-10-15: Add response schemas for the web API (STORY-010)

TODO:
- None
"""

from pydantic import BaseModel


class PowerMetrics(BaseModel):
    """The six metrics reported by a plug for one reading.

    Attributes:
        voltage: Volts.
        current: Amperes.
        active_power: Watts.
        apparent_power: Volt-amperes.
        reactive_power: Volt-amperes reactive.
        power_factor: Ratio between active and apparent power.
    """

    voltage: float
    current: float
    active_power: float
    apparent_power: float
    reactive_power: float
    power_factor: float


class PlugOut(BaseModel):
    """A known plug."""

    plug_id: int
    plug_name: str


class SampleOut(PowerMetrics):
    """A raw reading as stored."""

    result_id: int
    plug_id: int
    timestamp_ms: int


class AverageOut(PowerMetrics):
    """A bucket average as stored."""

    average_id: int
    plug_id: int
    bucket_start_ms: int
    duration_ms: int


class PlugsResponse(BaseModel):
    """Response body for GET /api/plugs."""

    plugs: list[PlugOut]


class ResultsResponse(BaseModel):
    """Response body for GET /api/plugs/{plug_id}/results."""

    plug_id: int
    results: list[SampleOut]


class AveragesResponse(BaseModel):
    """Response body for GET /api/plugs/{plug_id}/averages."""

    plug_id: int
    averages: list[AverageOut]
