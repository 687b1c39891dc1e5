"""
Shared test fixtures for the plug monitor tests.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-001)
- 2026-10-13: Add store fixtures backed by a temporary SQLite file (STORY-004)

TODO:
- None
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio

from plugmon.db.gateway import init_schema
from plugmon.schemas import PowerMetrics
from plugmon.store import PlugStore

# All Settings environment variable names, used for cleanup.
_ALL_ENV_VARS = (
    "DATABASE_PATH",
    "QUEUE_MAX_SIZE",
    "PLUGS",
    "POLL_INTERVAL_MS",
    "POLL_TIMEOUT_S",
    "AVERAGE_DURATION_MS",
    "API_HOST",
    "API_PORT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove all plugmon env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest_asyncio.fixture()
async def db_path(tmp_path: Path) -> Path:
    """Create an empty plug database and return its path."""
    path = tmp_path / "plugs.db"
    await init_schema(path)
    return path


@pytest_asyncio.fixture()
async def store(db_path: Path) -> AsyncGenerator[PlugStore, None]:
    """PlugStore over a fresh database, closed after the test."""
    plug_store = PlugStore.open(db_path)
    yield plug_store
    await plug_store.close()


def make_metrics(**overrides: float) -> PowerMetrics:
    """Return PowerMetrics with plausible values, overridable per field."""
    values = {
        "voltage": 230.0,
        "current": 0.5,
        "active_power": 100.0,
        "apparent_power": 115.0,
        "reactive_power": 57.0,
        "power_factor": 0.87,
    }
    values.update(overrides)
    return PowerMetrics(**values)
