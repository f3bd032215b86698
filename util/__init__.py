"""
Shared utilities used across the asset_sync package.
"""
