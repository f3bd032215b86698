"""Repository implementations for asset_sync."""
