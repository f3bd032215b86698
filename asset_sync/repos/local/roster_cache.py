"""
Local JSON file mirror of the employee roster.

The file is a list of ``{"employee_id", "object_key", "username"}``
entries written by the roster refresh. The same class doubles as the
cache-backed EmployeeResolver: lookups read the file on every call and
never consult the live directory, so a cache that has not been refreshed
can miss recently created employees.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List

from pydantic import TypeAdapter, ValidationError

from asset_sync.domain import EmployeeRecord
from asset_sync.repositories import (
    EmployeeResolver,
    RosterCacheRepository,
    TransportError,
)

logger = logging.getLogger(__name__)

_ROSTER_ADAPTER = TypeAdapter(List[EmployeeRecord])


class LocalRosterCacheRepository(RosterCacheRepository, EmployeeResolver):
    def __init__(self, path: str):
        self._path = Path(path).expanduser()

    async def load_roster(self) -> List[EmployeeRecord]:
        if not self._path.exists():
            logger.warning(
                "Roster cache file not found",
                extra={"path": str(self._path)},
            )
            return []

        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return _ROSTER_ADAPTER.validate_python(data)
        except (OSError, ValueError, ValidationError) as e:
            raise TransportError(
                f"Roster cache {self._path} is unreadable: {e}"
            ) from e

    async def store_roster(self, records: List[EmployeeRecord]) -> str:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.model_dump(mode="json") for r in records]

        # Write to a sibling temp file first so readers never see a
        # half-written roster.
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}."
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.info(
            "Stored roster cache",
            extra={"path": str(self._path), "employee_count": len(records)},
        )
        return str(self._path)

    async def find_employees(self, employee_id: str) -> List[EmployeeRecord]:
        roster = await self.load_roster()
        return [r for r in roster if r.employee_id == employee_id]
