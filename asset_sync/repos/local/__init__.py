"""Local file implementations of the asset_sync repositories."""

from .roster_cache import LocalRosterCacheRepository
from .snapshot import LocalSnapshotRepository

__all__ = [
    "LocalRosterCacheRepository",
    "LocalSnapshotRepository",
]
