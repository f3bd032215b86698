"""
FastAPI dependencies for the webhook endpoints.

Settings and the Temporal client are created once per process. Tests
replace both through ``app.dependency_overrides``.
"""

import logging
from typing import Optional

from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter

from asset_sync.config import AssetSyncSettings, load_settings

logger = logging.getLogger(__name__)


class DependencyContainer:
    """Lazily built, process-wide settings and Temporal client."""

    def __init__(self, config_path: Optional[str] = None) -> None:
        self.config_path = config_path
        self._settings: Optional[AssetSyncSettings] = None
        self._client: Optional[Client] = None

    def settings(self) -> AssetSyncSettings:
        if self._settings is None:
            self._settings = load_settings(self.config_path)
        return self._settings

    async def temporal_client(self) -> Client:
        if self._client is None:
            address = self.settings().temporal_address
            logger.debug(
                "Connecting API to Temporal", extra={"endpoint": address}
            )
            self._client = await Client.connect(
                address,
                namespace="default",
                data_converter=pydantic_data_converter,
            )
        return self._client


_container = DependencyContainer()


async def get_settings() -> AssetSyncSettings:
    """FastAPI dependency for the loaded settings."""
    return _container.settings()


async def get_temporal_client() -> Client:
    """FastAPI dependency for the Temporal client."""
    return await _container.temporal_client()
