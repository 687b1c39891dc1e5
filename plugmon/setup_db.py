"""
Create the plug database and its tables.

Run once before starting the monitor (``plugmon-setup``). The monitor
itself opens the database without create, so a missing or misplaced
file is reported instead of silently starting an empty store.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-002)

TODO:
- None
"""

import asyncio
import logging

from plugmon.config import get_settings
from plugmon.db.gateway import init_schema
from plugmon.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Create the schema at ``DATABASE_PATH``."""
    settings = get_settings()
    setup_logging(settings.log_level)
    asyncio.run(init_schema(settings.database_path))
    logger.info("Database setup complete")


if __name__ == "__main__":
    main()
