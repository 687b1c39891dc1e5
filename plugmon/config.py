"""
Plug monitor configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
The plug list is a JSON object mapping plug names to their LAN host,
e.g. ``PLUGS='{"fridge": "192.168.1.40"}'``.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-001)
- 2026-10-14: Add AVERAGE_DURATION_MS and LOG_LEVEL (STORY-008)

TODO:
- None
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings

# Default capacity of the storage request queue.
DEFAULT_QUEUE_MAX_SIZE: int = 32


class Settings(BaseSettings):
    """Plug monitor configuration.

    Attributes:
        database_path: SQLite database file path.
        queue_max_size: Capacity of the storage request queue.
        plugs: Mapping of plug name to Tasmota host/IP.
        poll_interval_ms: Milliseconds between polls of each plug.
        poll_timeout_s: HTTP timeout for a single poll.
        average_duration_ms: Width of an average bucket, also the period
            at which buckets are aggregated.
        api_host: Interface the web API binds to.
        api_port: Port the web API listens on.
        log_level: Root logging level name.
    """

    database_path: str = "plugs.db"
    queue_max_size: int = DEFAULT_QUEUE_MAX_SIZE
    plugs: dict[str, str] = {}
    poll_interval_ms: int = 5000
    poll_timeout_s: float = 5.0
    average_duration_ms: int = 60_000
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    log_level: str = "INFO"

    @field_validator("queue_max_size")
    @classmethod
    def queue_max_size_must_be_positive(cls, v: int) -> int:
        """Validate the queue can hold at least one operation."""
        if v < 1:
            raise ValueError("QUEUE_MAX_SIZE must be >= 1")
        return v

    @field_validator("poll_interval_ms")
    @classmethod
    def poll_interval_must_be_reasonable(cls, v: int) -> int:
        """Validate poll interval is at least 100 ms."""
        if v < 100:
            raise ValueError("POLL_INTERVAL_MS must be >= 100")
        return v

    @field_validator("average_duration_ms")
    @classmethod
    def average_duration_must_be_reasonable(cls, v: int) -> int:
        """Validate average buckets are at least one second wide."""
        if v < 1000:
            raise ValueError("AVERAGE_DURATION_MS must be >= 1000")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Normalize and validate the log level name."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown LOG_LEVEL: {v!r}")
        return level

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def get_settings() -> Settings:
    """Create and return a Settings instance.

    Returns:
        Settings: Validated configuration from environment variables.
    """
    return Settings()
