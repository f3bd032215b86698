"""Command line entry points for asset_sync."""
