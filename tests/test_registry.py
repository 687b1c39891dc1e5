"""
Unit tests for the plug registry (get-or-create by name).

CHANGELOG:
- 2026-10-12: Initial creation (STORY-004)

TODO:
- None
"""

from pathlib import Path

import pytest

from plugmon.db.gateway import StorageGateway
from plugmon.services.registry import resolve_plug


class TestResolvePlug:
    """resolve_plug returns a stable id per name."""

    @pytest.mark.asyncio()
    async def test_creates_plug_on_first_use(self, db_path: Path) -> None:
        gateway = StorageGateway(db_path)
        try:
            plug_id = await resolve_plug(gateway, "kettle")
            rows = await gateway.execute("SELECT plug_id, plug_name FROM plug;")
        finally:
            await gateway.close()

        assert rows == [{"plug_id": plug_id, "plug_name": "kettle"}]

    @pytest.mark.asyncio()
    async def test_same_name_resolves_to_same_id(self, db_path: Path) -> None:
        gateway = StorageGateway(db_path)
        try:
            first = await resolve_plug(gateway, "kettle")
            second = await resolve_plug(gateway, "kettle")
            rows = await gateway.execute("SELECT COUNT(*) AS n FROM plug;")
        finally:
            await gateway.close()

        assert first == second
        assert rows == [{"n": 1}]

    @pytest.mark.asyncio()
    async def test_distinct_names_get_distinct_ids(self, db_path: Path) -> None:
        gateway = StorageGateway(db_path)
        try:
            ids = [await resolve_plug(gateway, name) for name in ("a", "b", "a")]
        finally:
            await gateway.close()

        assert ids[0] == ids[2]
        assert ids[0] != ids[1]
