"""
Command line interface for asset_sync.

The event commands run the handlers directly against the configured
backends, without Temporal, and print the ``HandlerResult`` as JSON. The
exit status is 0 for successful outcomes (including "already assigned"
and "already registered") and 1 otherwise. ``worker`` starts the Temporal
worker.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import (
    AsyncIterator,
    Awaitable,
    Callable,
    Optional,
)

import click

from asset_sync.config import (
    AssetSyncSettings,
    ConfigurationError,
    load_settings,
)
from asset_sync.domain import HandlerResult
from asset_sync.handlers import AssetEventHandlers
from asset_sync.repos.confluence import (
    ConfluenceDocumentStoreRepository,
    create_wiki_client,
)
from asset_sync.repos.jsm import (
    JsmAssetDirectoryRepository,
    LiveEmployeeResolver,
    create_assets_client,
)
from asset_sync.repos.local import (
    LocalRosterCacheRepository,
    LocalSnapshotRepository,
)
from asset_sync.repositories import (
    AssetDirectoryRepository,
    DocumentStoreRepository,
    EmployeeResolver,
)
from asset_sync.usecase import (
    AssignAssetUseCase,
    PublishInventoryUseCase,
    RefreshRosterCacheUseCase,
    RegisterEmployeeUseCase,
    RemoveEmployeeUseCase,
)
from asset_sync.worker import run_worker, setup_logging

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = {
    "confirmed",
    "already_assigned",
    "created",
    "already_registered",
    "removed",
    "published",
    "refreshed",
    "logged",
}


def build_handlers(
    settings: AssetSyncSettings,
    directory_repo: AssetDirectoryRepository,
    document_store_repo: Optional[DocumentStoreRepository] = None,
) -> AssetEventHandlers:
    """Wire every use case to the given backends."""
    roster_cache = LocalRosterCacheRepository(settings.roster_cache_path)

    resolver: EmployeeResolver
    if settings.employee_resolver == "cache":
        resolver = roster_cache
    else:
        resolver = LiveEmployeeResolver(directory_repo, settings.attributes)

    publish_use_case = None
    if document_store_repo is not None:
        snapshot_repo = (
            LocalSnapshotRepository(settings.snapshot_path)
            if settings.snapshot_path
            else None
        )
        publish_use_case = PublishInventoryUseCase(
            directory_repo, document_store_repo, snapshot_repo
        )

    return AssetEventHandlers(
        assign_use_case=AssignAssetUseCase(
            directory_repo, resolver, settings.attributes
        ),
        register_use_case=RegisterEmployeeUseCase(
            directory_repo, resolver, settings.attributes
        ),
        remove_use_case=RemoveEmployeeUseCase(directory_repo, resolver),
        publish_use_case=publish_use_case,
        refresh_use_case=RefreshRosterCacheUseCase(
            directory_repo, roster_cache, settings.attributes
        ),
    )


@asynccontextmanager
async def open_handlers(
    settings: AssetSyncSettings,
) -> AsyncIterator[AssetEventHandlers]:
    """Open the HTTP clients for the configured backends."""
    assets_client = create_assets_client(settings.asset_directory)
    wiki_client = (
        create_wiki_client(settings)
        if settings.document_store.base_url
        else None
    )
    try:
        yield build_handlers(
            settings,
            JsmAssetDirectoryRepository(
                assets_client, page_size=settings.asset_directory.page_size
            ),
            (
                ConfluenceDocumentStoreRepository(wiki_client)
                if wiki_client is not None
                else None
            ),
        )
    finally:
        await assets_client.aclose()
        if wiki_client is not None:
            await wiki_client.aclose()


def _settings(ctx: click.Context) -> AssetSyncSettings:
    try:
        return load_settings(ctx.obj.get("config_path"))
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


def _run(
    ctx: click.Context,
    action: Callable[[AssetEventHandlers], Awaitable[HandlerResult]],
    settings: Optional[AssetSyncSettings] = None,
) -> None:
    settings = settings or _settings(ctx)

    async def _execute() -> HandlerResult:
        async with open_handlers(settings) as handlers:
            return await action(handlers)

    try:
        result = asyncio.run(_execute())
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    click.echo(result.model_dump_json(indent=2))
    if result.status not in SUCCESS_STATUSES:
        ctx.exit(1)


@click.group()
@click.option(
    "--config",
    "config_path",
    default=None,
    help="YAML configuration file (defaults to ASSET_SYNC_CONFIG or "
    "~/.config/asset-sync/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str]) -> None:
    """Synchronise employees and assets with the asset directory."""
    setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.argument("object_key")
@click.argument("employee_id")
@click.pass_context
def assign(ctx: click.Context, object_key: str, employee_id: str) -> None:
    """Assign OBJECT_KEY to EMPLOYEE_ID unless it already has an owner."""
    payload = {"objectKey": object_key, "employeeId": employee_id}
    _run(ctx, lambda handlers: handlers.assign_asset(payload))


@cli.command("register-employee")
@click.argument("employee_id")
@click.argument("username")
@click.pass_context
def register_employee(
    ctx: click.Context, employee_id: str, username: str
) -> None:
    """Create the directory record for a new employee."""
    payload = {"employeeId": employee_id, "username": username}
    _run(ctx, lambda handlers: handlers.register_employee(payload))


@cli.command("remove-employee")
@click.argument("employee_id")
@click.pass_context
def remove_employee(ctx: click.Context, employee_id: str) -> None:
    """Delete the directory record of an employee."""
    payload = {"employeeId": employee_id}
    _run(ctx, lambda handlers: handlers.remove_employee(payload))


@cli.command()
@click.option(
    "--page-title",
    default=None,
    help="Update this page in place instead of creating a dated page",
)
@click.pass_context
def publish(ctx: click.Context, page_title: Optional[str]) -> None:
    """Export the asset inventory to the wiki."""
    settings = _settings(ctx)
    if not settings.document_store.base_url:
        raise click.ClickException(
            "document_store.base_url must be configured to publish"
        )

    options = settings.publish_options
    if page_title:
        options = options.model_copy(update={"page_title": page_title})
    published_at = datetime.now(timezone.utc)

    _run(
        ctx,
        lambda handlers: handlers.publish_inventory(options, published_at),
        settings=settings,
    )


@cli.command("refresh-cache")
@click.pass_context
def refresh_cache(ctx: click.Context) -> None:
    """Mirror the employee roster into the local cache file."""
    _run(ctx, lambda handlers: handlers.refresh_roster_cache())


@cli.command()
@click.pass_context
def worker(ctx: click.Context) -> None:
    """Run the Temporal worker."""
    asyncio.run(run_worker(ctx.obj.get("config_path")))


if __name__ == "__main__":
    cli()
