"""
Temporal activity wrapper classes for asset_sync.

Each class wraps a concrete backend with
``@temporal_activity_registration``. Both employee resolvers register under
the same activity base, so the worker decides which one answers
``find_employees`` and the workflows never need to know.

Imported by the worker only; workflows import ``proxies`` instead.
"""

from asset_sync.repos.confluence import ConfluenceDocumentStoreRepository
from asset_sync.repos.jsm import (
    JsmAssetDirectoryRepository,
    LiveEmployeeResolver,
)
from asset_sync.repos.local import (
    LocalRosterCacheRepository,
    LocalSnapshotRepository,
)
from asset_sync.repos.temporal.activity_names import (
    ASSET_DIRECTORY_ACTIVITY_BASE,
    DOCUMENT_STORE_ACTIVITY_BASE,
    EMPLOYEE_RESOLVER_ACTIVITY_BASE,
    ROSTER_CACHE_ACTIVITY_BASE,
    SNAPSHOT_ACTIVITY_BASE,
)
from asset_sync.repositories import TransportError
from util.temporal import temporal_activity_registration


@temporal_activity_registration(
    ASSET_DIRECTORY_ACTIVITY_BASE, error_types=(TransportError,)
)
class TemporalJsmAssetDirectoryRepository(JsmAssetDirectoryRepository):
    """Temporal activity wrapper for JsmAssetDirectoryRepository."""

    pass


@temporal_activity_registration(
    EMPLOYEE_RESOLVER_ACTIVITY_BASE, error_types=(TransportError,)
)
class TemporalLiveEmployeeResolver(LiveEmployeeResolver):
    """Resolves employees with a live directory query."""

    pass


@temporal_activity_registration(
    EMPLOYEE_RESOLVER_ACTIVITY_BASE, error_types=(TransportError,)
)
class TemporalCachedEmployeeResolver(LocalRosterCacheRepository):
    """Resolves employees from the roster cache file."""

    pass


@temporal_activity_registration(
    DOCUMENT_STORE_ACTIVITY_BASE, error_types=(TransportError,)
)
class TemporalConfluenceDocumentStoreRepository(
    ConfluenceDocumentStoreRepository
):
    pass


@temporal_activity_registration(
    ROSTER_CACHE_ACTIVITY_BASE, error_types=(TransportError, OSError)
)
class TemporalLocalRosterCacheRepository(LocalRosterCacheRepository):
    pass


@temporal_activity_registration(
    SNAPSHOT_ACTIVITY_BASE, error_types=(OSError,)
)
class TemporalLocalSnapshotRepository(LocalSnapshotRepository):
    pass


__all__ = [
    "TemporalJsmAssetDirectoryRepository",
    "TemporalLiveEmployeeResolver",
    "TemporalCachedEmployeeResolver",
    "TemporalConfluenceDocumentStoreRepository",
    "TemporalLocalRosterCacheRepository",
    "TemporalLocalSnapshotRepository",
]
