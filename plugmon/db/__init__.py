"""
Database package: ORM schema, storage gateway and request queue.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-002)
- 2026-10-12: Export RequestQueue (STORY-003)

TODO:
- None
"""

from plugmon.db.gateway import StorageGateway, create_engine, init_schema
from plugmon.db.models import METRIC_COLUMNS, Base, Plug, PlugAverage, PlugResult
from plugmon.db.queue import RequestQueue

__all__ = [
    "METRIC_COLUMNS",
    "Base",
    "Plug",
    "PlugAverage",
    "PlugResult",
    "RequestQueue",
    "StorageGateway",
    "create_engine",
    "init_schema",
]
