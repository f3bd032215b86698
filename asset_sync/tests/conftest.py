"""
Shared fixtures for asset_sync tests.

The seeded directory mirrors the production schema ids: employees are
object type 166 (name 1552, employee id 1561) and assets are type 167 with
the ownership attribute 1567.
"""

from datetime import datetime, timezone

import pytest

from asset_sync.config import AttributeMapping, PublishOptions
from asset_sync.repos.jsm import LiveEmployeeResolver
from asset_sync.repos.memory import (
    MemoryAssetDirectoryRepository,
    MemoryDocumentStoreRepository,
)
from asset_sync.tests.factories import (
    ASSET_TYPE,
    EMPLOYEE_ID_ATTR,
    EMPLOYEE_TYPE,
    NAME_ATTR,
    OWNER_ATTR,
    SERIAL_ATTR,
)


@pytest.fixture
def attributes() -> AttributeMapping:
    return AttributeMapping()


@pytest.fixture
def directory() -> MemoryAssetDirectoryRepository:
    """Directory with employee E077 (EMP-9) and an unowned asset EM-1953."""
    repo = MemoryAssetDirectoryRepository()
    repo.add_object_type(
        EMPLOYEE_TYPE,
        "Employee",
        {NAME_ATTR: "Name", EMPLOYEE_ID_ATTR: "Employee ID"},
        key_prefix="EMP",
    )
    repo.add_object_type(
        ASSET_TYPE,
        "Laptop",
        {OWNER_ATTR: "Assigned to", SERIAL_ATTR: "Serial"},
        key_prefix="EM",
    )
    repo.add_object(
        EMPLOYEE_TYPE,
        {NAME_ATTR: "jdoe", EMPLOYEE_ID_ATTR: "E077"},
        object_key="EMP-9",
        label="jdoe",
    )
    repo.add_object(
        ASSET_TYPE,
        {SERIAL_ATTR: "SN-1953"},
        object_key="EM-1953",
        label="ThinkPad T14",
    )
    return repo


@pytest.fixture
def resolver(
    directory: MemoryAssetDirectoryRepository, attributes: AttributeMapping
) -> LiveEmployeeResolver:
    return LiveEmployeeResolver(directory, attributes)


@pytest.fixture
def document_store() -> MemoryDocumentStoreRepository:
    return MemoryDocumentStoreRepository()


@pytest.fixture
def publish_options() -> PublishOptions:
    return PublishOptions(object_schema_id="14", space_key="JSMROVO")


@pytest.fixture
def published_at() -> datetime:
    return datetime(2024, 5, 17, 9, 30, 0, tzinfo=timezone.utc)
