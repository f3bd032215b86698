"""
Writes the exported inventory to a local JSON file.
"""

import json
import logging
from pathlib import Path

from asset_sync.domain import InventorySnapshot
from asset_sync.repositories import SnapshotRepository

logger = logging.getLogger(__name__)


class LocalSnapshotRepository(SnapshotRepository):
    def __init__(self, path: str):
        self._path = Path(path).expanduser()

    async def write_snapshot(self, snapshot: InventorySnapshot) -> str:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(snapshot.to_wire(), f, indent=2, ensure_ascii=False)
        logger.info(
            "JSON written to file",
            extra={
                "path": str(self._path),
                "object_count": snapshot.object_count,
            },
        )
        return str(self._path)
