"""
Activity name bases shared by the activity registrations and the workflow
proxies.

Kept in a module of their own so the proxies, which are imported inside the
workflow sandbox, never import the httpx-backed repositories.
"""

ASSET_DIRECTORY_ACTIVITY_BASE = "asset_sync.asset_directory_repo"
EMPLOYEE_RESOLVER_ACTIVITY_BASE = "asset_sync.employee_resolver"
DOCUMENT_STORE_ACTIVITY_BASE = "asset_sync.document_store_repo"
ROSTER_CACHE_ACTIVITY_BASE = "asset_sync.roster_cache_repo"
SNAPSHOT_ACTIVITY_BASE = "asset_sync.snapshot_repo"

__all__ = [
    "ASSET_DIRECTORY_ACTIVITY_BASE",
    "EMPLOYEE_RESOLVER_ACTIVITY_BASE",
    "DOCUMENT_STORE_ACTIVITY_BASE",
    "ROSTER_CACHE_ACTIVITY_BASE",
    "SNAPSHOT_ACTIVITY_BASE",
]
