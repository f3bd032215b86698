"""
Tests for the worker's activity wiring and logging setup.
"""

import logging
from typing import Any, List
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from temporalio.service import RPCError, RPCStatusCode

from asset_sync.config import AssetSyncSettings
from asset_sync.worker import (
    build_activities,
    get_temporal_client_with_retries,
    setup_logging,
)


def activity_names(activities: List[Any]) -> List[str]:
    return sorted(
        getattr(fn, "__temporal_activity_definition").name
        for fn in activities
    )


def settings_for(tmp_path: Any, **overrides: Any) -> AssetSyncSettings:
    data = {
        "roster_cache_path": str(tmp_path / "roster.json"),
        "snapshot_path": str(tmp_path / "response.json"),
    }
    data.update(overrides)
    return AssetSyncSettings.model_validate(data)


def test_registers_every_activity(tmp_path: Any) -> None:
    client = MagicMock(spec=httpx.AsyncClient)

    activities = build_activities(settings_for(tmp_path), client, client)

    assert activity_names(activities) == [
        "asset_sync.asset_directory_repo.create_object",
        "asset_sync.asset_directory_repo.delete_object",
        "asset_sync.asset_directory_repo.find_objects",
        "asset_sync.asset_directory_repo.get_attributes",
        "asset_sync.asset_directory_repo.list_object_types",
        "asset_sync.asset_directory_repo.list_type_attributes",
        "asset_sync.asset_directory_repo.set_attribute",
        "asset_sync.document_store_repo.create_page",
        "asset_sync.document_store_repo.find_page",
        "asset_sync.document_store_repo.update_page",
        "asset_sync.employee_resolver.find_employees",
        "asset_sync.roster_cache_repo.load_roster",
        "asset_sync.roster_cache_repo.store_roster",
        "asset_sync.snapshot_repo.write_snapshot",
    ]


def test_optional_backends_are_left_out(tmp_path: Any) -> None:
    client = MagicMock(spec=httpx.AsyncClient)

    activities = build_activities(
        settings_for(tmp_path, snapshot_path=None), client
    )

    names = activity_names(activities)
    assert not any(n.startswith("asset_sync.document_store") for n in names)
    assert "asset_sync.snapshot_repo.write_snapshot" not in names


def test_cache_resolver_is_selected(tmp_path: Any) -> None:
    client = MagicMock(spec=httpx.AsyncClient)

    activities = build_activities(
        settings_for(tmp_path, employee_resolver="cache"), client
    )

    [resolver] = [fn for fn in activities if fn.__name__ == "find_employees"]
    assert type(resolver.__self__).__name__ == (
        "TemporalCachedEmployeeResolver"
    )


def test_setup_logging_reads_environment() -> None:
    root = logging.getLogger()
    previous_level = root.level
    try:
        with patch.dict(
            "os.environ", {"LOG_LEVEL": "debug", "LOG_FORMAT": "%(message)s"}
        ):
            setup_logging()

        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.setLevel(previous_level)


@pytest.mark.asyncio
async def test_temporal_connection_is_retried() -> None:
    client = MagicMock()
    connect = AsyncMock(
        side_effect=[
            RPCError("unavailable", RPCStatusCode.UNAVAILABLE, b""),
            client,
        ]
    )

    with patch("asset_sync.worker.Client.connect", connect), patch(
        "asset_sync.worker.asyncio.sleep", AsyncMock()
    ) as sleep:
        result = await get_temporal_client_with_retries(
            "localhost:7233", attempts=3, delay=1
        )

    assert result is client
    assert connect.await_count == 2
    sleep.assert_awaited_once_with(1)
