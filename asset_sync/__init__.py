"""
Asset directory synchronisation.

Keeps employee and asset records in a JSM Assets workspace consistent with
events from the host platform, and publishes the inventory to a wiki page.
"""

from .config import AssetSyncSettings, AttributeMapping, PublishOptions
from .domain import (
    AssetObject,
    AssignmentOutcome,
    AssignmentStatus,
    EmployeeOutcome,
    EmployeeRecord,
    EmployeeStatus,
    HandlerResult,
    InventorySnapshot,
    OwnershipState,
    OwnershipStatus,
    PublishOutcome,
    PublishStatus,
)
from .handlers import AssetEventHandlers
from .repositories import (
    AssetDirectoryRepository,
    DocumentStoreRepository,
    EmployeeResolver,
    RosterCacheRepository,
    SnapshotRepository,
    TransportError,
)
from .usecase import (
    AssignAssetUseCase,
    PublishInventoryUseCase,
    RefreshRosterCacheUseCase,
    RegisterEmployeeUseCase,
    RemoveEmployeeUseCase,
)

__all__ = [
    # Configuration
    "AssetSyncSettings",
    "AttributeMapping",
    "PublishOptions",
    # Domain models
    "AssetObject",
    "EmployeeRecord",
    "OwnershipState",
    "OwnershipStatus",
    "InventorySnapshot",
    # Outcomes
    "AssignmentOutcome",
    "AssignmentStatus",
    "EmployeeOutcome",
    "EmployeeStatus",
    "PublishOutcome",
    "PublishStatus",
    "HandlerResult",
    # Repository protocols
    "AssetDirectoryRepository",
    "EmployeeResolver",
    "RosterCacheRepository",
    "DocumentStoreRepository",
    "SnapshotRepository",
    "TransportError",
    # Use cases and handlers
    "AssignAssetUseCase",
    "RegisterEmployeeUseCase",
    "RemoveEmployeeUseCase",
    "PublishInventoryUseCase",
    "RefreshRosterCacheUseCase",
    "AssetEventHandlers",
]
