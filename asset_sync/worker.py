"""
Temporal worker that runs the asset_sync workflows and activities.
"""

import asyncio
import logging
import os
from typing import Any, Callable, List, Optional

import httpx
from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter
from temporalio.service import RPCError
from temporalio.worker import Worker

from asset_sync.config import AssetSyncSettings, load_settings
from asset_sync.repos.confluence import create_wiki_client
from asset_sync.repos.jsm import (
    JsmAssetDirectoryRepository,
    create_assets_client,
)
from asset_sync.repos.temporal.activities import (
    TemporalCachedEmployeeResolver,
    TemporalConfluenceDocumentStoreRepository,
    TemporalJsmAssetDirectoryRepository,
    TemporalLiveEmployeeResolver,
    TemporalLocalRosterCacheRepository,
    TemporalLocalSnapshotRepository,
)
from asset_sync.workflows import ALL_WORKFLOWS

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure logging based on environment variables"""
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    log_format = os.environ.get(
        "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    numeric_level = getattr(logging, log_level, None)
    if not isinstance(numeric_level, int):
        print(f"Invalid log level: {log_level}, defaulting to INFO")
        numeric_level = logging.INFO

    logging.basicConfig(level=numeric_level, format=log_format, force=True)

    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))

    logger.info(
        "Logging configured",
        extra={"log_level": log_level, "numeric_level": numeric_level},
    )


async def get_temporal_client_with_retries(
    endpoint: str, attempts: int = 10, delay: int = 5
) -> Client:
    """Attempt to connect to Temporal with retries."""
    for attempt in range(attempts):
        try:
            client = await Client.connect(
                endpoint,
                data_converter=pydantic_data_converter,
                namespace="default",
            )
            logger.info(
                "Successfully connected to Temporal",
                extra={"endpoint": endpoint, "attempt": attempt + 1},
            )
            return client
        except RPCError as e:
            logger.warning(
                "Failed to connect to Temporal",
                extra={
                    "endpoint": endpoint,
                    "attempt": attempt + 1,
                    "max_attempts": attempts,
                    "error": str(e),
                    "retry_in_seconds": delay,
                },
            )
            if attempt + 1 == attempts:
                logger.error(
                    "All connection attempts to Temporal failed",
                    extra={"endpoint": endpoint, "total_attempts": attempts},
                )
                raise
            await asyncio.sleep(delay)

    raise RuntimeError("Failed to connect to Temporal after all attempts")


def build_activities(
    settings: AssetSyncSettings,
    assets_client: httpx.AsyncClient,
    wiki_client: Optional[httpx.AsyncClient] = None,
) -> List[Callable[..., Any]]:
    """
    Instantiate the activity repositories and list their activity methods.

    The employee resolver implementation is chosen by
    ``settings.employee_resolver``; both register the same activity name.
    """
    page_size = settings.asset_directory.page_size
    directory_repo = TemporalJsmAssetDirectoryRepository(
        assets_client, page_size=page_size
    )
    roster_cache_repo = TemporalLocalRosterCacheRepository(
        settings.roster_cache_path
    )

    resolver: Any
    if settings.employee_resolver == "cache":
        resolver = TemporalCachedEmployeeResolver(settings.roster_cache_path)
    else:
        resolver = TemporalLiveEmployeeResolver(
            JsmAssetDirectoryRepository(assets_client, page_size=page_size),
            settings.attributes,
        )
    logger.info(
        "Selected employee resolver",
        extra={"employee_resolver": settings.employee_resolver},
    )

    activities: List[Callable[..., Any]] = [
        directory_repo.find_objects,
        directory_repo.get_attributes,
        directory_repo.set_attribute,
        directory_repo.create_object,
        directory_repo.delete_object,
        directory_repo.list_object_types,
        directory_repo.list_type_attributes,
        resolver.find_employees,
        roster_cache_repo.load_roster,
        roster_cache_repo.store_roster,
    ]

    if wiki_client is not None:
        document_store_repo = TemporalConfluenceDocumentStoreRepository(
            wiki_client
        )
        activities += [
            document_store_repo.find_page,
            document_store_repo.create_page,
            document_store_repo.update_page,
        ]
    else:
        logger.warning(
            "document_store.base_url is not set; publishing is disabled"
        )

    if settings.snapshot_path:
        snapshot_repo = TemporalLocalSnapshotRepository(settings.snapshot_path)
        activities.append(snapshot_repo.write_snapshot)

    return activities


async def run_worker(config_path: Optional[str] = None) -> None:
    """Run the Temporal worker"""
    setup_logging()
    settings = load_settings(config_path)

    logger.info(
        "Starting Temporal worker",
        extra={
            "temporal_address": settings.temporal_address,
            "task_queue": settings.task_queue,
        },
    )
    client = await get_temporal_client_with_retries(settings.temporal_address)

    assets_client = create_assets_client(settings.asset_directory)
    wiki_client = (
        create_wiki_client(settings)
        if settings.document_store.base_url
        else None
    )
    try:
        activities = build_activities(settings, assets_client, wiki_client)
        logger.info(
            "Creating Temporal worker",
            extra={
                "task_queue": settings.task_queue,
                "workflow_count": len(ALL_WORKFLOWS),
                "activity_count": len(activities),
            },
        )
        worker = Worker(
            client,
            task_queue=settings.task_queue,
            workflows=ALL_WORKFLOWS,
            activities=activities,
        )
        await worker.run()
    finally:
        await assets_client.aclose()
        if wiki_client is not None:
            await wiki_client.aclose()


if __name__ == "__main__":
    asyncio.run(run_worker())
