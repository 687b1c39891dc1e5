"""
Plug registry: resolve a plug name to its id, creating the plug on first use.

Runs inside a single request queue operation, so two resolutions of the
same new name in this process can never race. A second process writing
to the same file outside the queue could still insert a duplicate name;
the unique constraint on ``plug.plug_name`` turns that into a
``StoreStatementError`` rather than a silent duplicate.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-004)

TODO:
- None
"""

import logging

from plugmon.db.gateway import StorageGateway

logger = logging.getLogger(__name__)

_SELECT_PLUG_SQL = "SELECT plug_id FROM plug WHERE plug_name = :plug_name;"

_INSERT_PLUG_SQL = (
    "INSERT INTO plug (plug_name) VALUES (:plug_name) RETURNING plug_id;"
)


async def resolve_plug(gateway: StorageGateway, plug_name: str) -> int:
    """Return the id of the plug named *plug_name*, inserting it if new.

    Args:
        gateway: Storage gateway (must be called from the queue's drain task).
        plug_name: Unique plug name.

    Returns:
        int: The plug's id.
    """
    selected = await gateway.execute(_SELECT_PLUG_SQL, {"plug_name": plug_name})
    if selected:
        return selected[0]["plug_id"]

    inserted = await gateway.execute(_INSERT_PLUG_SQL, {"plug_name": plug_name})
    plug_id = inserted[0]["plug_id"]
    logger.info("Registered new plug %r with id %d", plug_name, plug_id)
    return plug_id
