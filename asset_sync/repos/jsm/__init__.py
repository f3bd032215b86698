"""JSM Assets implementations of the asset directory repositories."""

from .asset_directory import JsmAssetDirectoryRepository, create_assets_client
from .employee_resolver import LiveEmployeeResolver, employee_query

__all__ = [
    "JsmAssetDirectoryRepository",
    "LiveEmployeeResolver",
    "create_assets_client",
    "employee_query",
]
