"""
Live-query EmployeeResolver.

Looks employees up in the asset directory on every call, so a record
created a second ago is found immediately. Works on top of any
AssetDirectoryRepository.
"""

import logging
from typing import List

from asset_sync.config import AttributeMapping
from asset_sync.domain import EmployeeRecord
from asset_sync.repositories import AssetDirectoryRepository, EmployeeResolver

logger = logging.getLogger(__name__)


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def employee_query(attributes: AttributeMapping, employee_id: str) -> str:
    """AQL selecting employee objects by business key."""
    return (
        f"objectTypeId = {attributes.employee_object_type_id} AND "
        f"{_quote(attributes.employee_id_attribute_name)} = "
        f"{_quote(employee_id)}"
    )


class LiveEmployeeResolver(EmployeeResolver):
    def __init__(
        self,
        directory_repo: AssetDirectoryRepository,
        attributes: AttributeMapping,
    ):
        self._directory_repo = directory_repo
        self._attributes = attributes

    async def find_employees(self, employee_id: str) -> List[EmployeeRecord]:
        objects = await self._directory_repo.find_objects(
            employee_query(self._attributes, employee_id)
        )

        # AQL "=" is case-insensitive; keep exact business key matches only.
        records = []
        for obj in objects:
            record = self._attributes.employee_from_object(obj)
            if record is not None and record.employee_id == employee_id:
                records.append(record)

        logger.debug(
            "Resolved employee by live query",
            extra={"employee_id": employee_id, "match_count": len(records)},
        )
        return records
