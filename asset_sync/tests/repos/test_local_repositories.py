"""
Tests for the local roster cache and snapshot files.
"""

import json
from typing import Any

import pytest

from asset_sync.domain import (
    EmployeeRecord,
    ExportedObject,
    InventorySnapshot,
    ObjectTypeExport,
)
from asset_sync.repos.local import (
    LocalRosterCacheRepository,
    LocalSnapshotRepository,
)
from asset_sync.repositories import TransportError
from asset_sync.tests.factories import EmployeeRecordFactory


class TestLocalRosterCacheRepository:
    @pytest.mark.asyncio
    async def test_missing_cache_is_empty(self, tmp_path: Any) -> None:
        repo = LocalRosterCacheRepository(str(tmp_path / "roster.json"))

        assert await repo.load_roster() == []
        assert await repo.find_employees("E077") == []

    @pytest.mark.asyncio
    async def test_store_then_resolve(self, tmp_path: Any) -> None:
        path = tmp_path / "cache" / "roster.json"
        repo = LocalRosterCacheRepository(str(path))
        records = [
            EmployeeRecord(employee_id="E077", object_key="EMP-9"),
            *EmployeeRecordFactory.build_batch(3),
        ]

        location = await repo.store_roster(records)

        assert location == str(path)
        assert await repo.load_roster() == records
        assert await repo.find_employees("E077") == records[:1]
        assert list(path.parent.iterdir()) == [path]

    @pytest.mark.asyncio
    async def test_store_replaces_previous_roster(
        self, tmp_path: Any
    ) -> None:
        repo = LocalRosterCacheRepository(str(tmp_path / "roster.json"))
        await repo.store_roster(EmployeeRecordFactory.build_batch(5))

        await repo.store_roster([])

        assert await repo.load_roster() == []

    @pytest.mark.asyncio
    async def test_corrupt_cache_raises(self, tmp_path: Any) -> None:
        path = tmp_path / "roster.json"
        path.write_text("{not json")
        repo = LocalRosterCacheRepository(str(path))

        with pytest.raises(TransportError, match="unreadable"):
            await repo.find_employees("E077")

    @pytest.mark.asyncio
    async def test_wrong_shape_raises(self, tmp_path: Any) -> None:
        path = tmp_path / "roster.json"
        path.write_text(json.dumps([{"employee_id": "E1"}]))
        repo = LocalRosterCacheRepository(str(path))

        with pytest.raises(TransportError):
            await repo.load_roster()


class TestLocalSnapshotRepository:
    @pytest.mark.asyncio
    async def test_writes_wire_format(self, tmp_path: Any) -> None:
        path = tmp_path / "out" / "response.json"
        snapshot = InventorySnapshot(
            groups=[
                ObjectTypeExport(
                    object_type="Monitor",
                    objects=[ExportedObject(id="5", name="Dell U27 ü")],
                )
            ]
        )

        location = await LocalSnapshotRepository(str(path)).write_snapshot(
            snapshot
        )

        assert location == str(path)
        assert json.loads(path.read_text(encoding="utf-8")) == [
            {
                "objectType": "Monitor",
                "objects": [
                    {"id": "5", "name": "Dell U27 ü", "attributes": {}}
                ],
            }
        ]
