"""
Workflow-side proxies for the asset_sync repositories.

These classes are used *inside* Temporal workflows. Every method executes
the matching activity once (no retries) and hands back domain objects. A
failed activity is raised as ``TransportError``, so use cases handle it
exactly like a failed direct call.
"""

from asset_sync.repos.temporal.activity_names import (
    ASSET_DIRECTORY_ACTIVITY_BASE,
    DOCUMENT_STORE_ACTIVITY_BASE,
    EMPLOYEE_RESOLVER_ACTIVITY_BASE,
    ROSTER_CACHE_ACTIVITY_BASE,
    SNAPSHOT_ACTIVITY_BASE,
)
from asset_sync.repositories import (
    AssetDirectoryRepository,
    DocumentStoreRepository,
    EmployeeResolver,
    RosterCacheRepository,
    SnapshotRepository,
    TransportError,
)
from util.temporal import temporal_workflow_proxy


@temporal_workflow_proxy(
    ASSET_DIRECTORY_ACTIVITY_BASE,
    default_timeout_seconds=60,
    raise_as=TransportError,
)
class WorkflowAssetDirectoryRepositoryProxy(AssetDirectoryRepository):
    pass


@temporal_workflow_proxy(
    EMPLOYEE_RESOLVER_ACTIVITY_BASE,
    default_timeout_seconds=30,
    raise_as=TransportError,
)
class WorkflowEmployeeResolverProxy(EmployeeResolver):
    pass


@temporal_workflow_proxy(
    DOCUMENT_STORE_ACTIVITY_BASE,
    default_timeout_seconds=30,
    raise_as=TransportError,
)
class WorkflowDocumentStoreRepositoryProxy(DocumentStoreRepository):
    pass


@temporal_workflow_proxy(
    ROSTER_CACHE_ACTIVITY_BASE,
    default_timeout_seconds=30,
    raise_as=TransportError,
)
class WorkflowRosterCacheRepositoryProxy(RosterCacheRepository):
    pass


@temporal_workflow_proxy(
    SNAPSHOT_ACTIVITY_BASE,
    default_timeout_seconds=30,
    raise_as=TransportError,
)
class WorkflowSnapshotRepositoryProxy(SnapshotRepository):
    pass


__all__ = [
    "WorkflowAssetDirectoryRepositoryProxy",
    "WorkflowEmployeeResolverProxy",
    "WorkflowDocumentStoreRepositoryProxy",
    "WorkflowRosterCacheRepositoryProxy",
    "WorkflowSnapshotRepositoryProxy",
]
