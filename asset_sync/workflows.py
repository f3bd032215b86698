"""
Temporal workflows for asset_sync.

Each workflow is a thin wrapper: it builds the handlers with workflow
proxies and delegates. All remote work happens in activities executed once
each (no retries), and every workflow returns a ``HandlerResult`` instead
of failing, so the host always gets a structured answer.
"""

from temporalio import workflow

from asset_sync.config import AttributeMapping, PublishOptions
from asset_sync.domain import HandlerResult
from asset_sync.handlers import AssetEventHandlers
from asset_sync.repos.temporal.proxies import (
    WorkflowAssetDirectoryRepositoryProxy,
    WorkflowDocumentStoreRepositoryProxy,
    WorkflowEmployeeResolverProxy,
    WorkflowRosterCacheRepositoryProxy,
    WorkflowSnapshotRepositoryProxy,
)
from asset_sync.usecase import (
    AssignAssetUseCase,
    PublishInventoryUseCase,
    RefreshRosterCacheUseCase,
    RegisterEmployeeUseCase,
    RemoveEmployeeUseCase,
)


@workflow.defn
class AssignAssetWorkflow:
    @workflow.run
    async def run(
        self, payload: dict, attributes: AttributeMapping
    ) -> HandlerResult:
        workflow.logger.info(
            "Starting asset assignment workflow",
            extra={"workflow_id": workflow.info().workflow_id},
        )
        handlers = AssetEventHandlers(
            assign_use_case=AssignAssetUseCase(
                directory_repo=WorkflowAssetDirectoryRepositoryProxy(),
                employee_resolver=WorkflowEmployeeResolverProxy(),
                attributes=attributes,
            )
        )
        return await handlers.assign_asset(payload)


@workflow.defn
class RegisterEmployeeWorkflow:
    @workflow.run
    async def run(
        self, payload: dict, attributes: AttributeMapping
    ) -> HandlerResult:
        handlers = AssetEventHandlers(
            register_use_case=RegisterEmployeeUseCase(
                directory_repo=WorkflowAssetDirectoryRepositoryProxy(),
                employee_resolver=WorkflowEmployeeResolverProxy(),
                attributes=attributes,
            )
        )
        return await handlers.register_employee(payload)


@workflow.defn
class RemoveEmployeeWorkflow:
    @workflow.run
    async def run(
        self, payload: dict, attributes: AttributeMapping
    ) -> HandlerResult:
        handlers = AssetEventHandlers(
            remove_use_case=RemoveEmployeeUseCase(
                directory_repo=WorkflowAssetDirectoryRepositoryProxy(),
                employee_resolver=WorkflowEmployeeResolverProxy(),
            )
        )
        return await handlers.remove_employee(payload)


@workflow.defn
class PublishInventoryWorkflow:
    @workflow.run
    async def run(self, options: PublishOptions) -> HandlerResult:
        """
        Publish the inventory page.

        The page timestamp comes from ``workflow.now()`` so a replay renders
        the same title.
        """
        workflow.logger.info(
            "Starting inventory publish workflow",
            extra={
                "workflow_id": workflow.info().workflow_id,
                "object_schema_id": options.object_schema_id,
            },
        )
        handlers = AssetEventHandlers(
            publish_use_case=PublishInventoryUseCase(
                directory_repo=WorkflowAssetDirectoryRepositoryProxy(),
                document_store_repo=WorkflowDocumentStoreRepositoryProxy(),
                snapshot_repo=(
                    WorkflowSnapshotRepositoryProxy()
                    if options.write_snapshot
                    else None
                ),
            )
        )
        return await handlers.publish_inventory(options, workflow.now())


@workflow.defn
class RefreshRosterCacheWorkflow:
    @workflow.run
    async def run(self, attributes: AttributeMapping) -> HandlerResult:
        handlers = AssetEventHandlers(
            refresh_use_case=RefreshRosterCacheUseCase(
                directory_repo=WorkflowAssetDirectoryRepositoryProxy(),
                roster_cache_repo=WorkflowRosterCacheRepositoryProxy(),
                attributes=attributes,
            )
        )
        return await handlers.refresh_roster_cache()


ALL_WORKFLOWS = [
    AssignAssetWorkflow,
    RegisterEmployeeWorkflow,
    RemoveEmployeeWorkflow,
    PublishInventoryWorkflow,
    RefreshRosterCacheWorkflow,
]
