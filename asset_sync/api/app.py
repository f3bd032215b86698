"""
FastAPI webhook for host platform events.

Each event endpoint starts the matching workflow, waits for it and returns
its ``HandlerResult``. Validation problems in a payload come back as a
normal result with ``status="invalid_payload"``; only infrastructure
failures (Temporal unreachable, workflow crashed) produce an HTTP 500.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, HTTPException
from temporalio.client import Client

from asset_sync.api.dependencies import get_settings, get_temporal_client
from asset_sync.api.responses import HealthCheckResponse
from asset_sync.config import AssetSyncSettings
from asset_sync.domain import HandlerResult
from asset_sync.worker import setup_logging
from asset_sync.workflows import (
    AssignAssetWorkflow,
    PublishInventoryWorkflow,
    RefreshRosterCacheWorkflow,
    RegisterEmployeeWorkflow,
    RemoveEmployeeWorkflow,
)

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Asset Sync Webhook")

Payload = Optional[Dict[str, Any]]


async def _run_workflow(
    client: Client,
    settings: AssetSyncSettings,
    workflow_run: Any,
    args: list,
    id_prefix: str,
) -> HandlerResult:
    workflow_id = f"{id_prefix}-{uuid.uuid4()}"
    logger.info(
        "Starting workflow",
        extra={"workflow_id": workflow_id, "task_queue": settings.task_queue},
    )
    try:
        result = await client.execute_workflow(
            workflow_run,
            args=args,
            id=workflow_id,
            task_queue=settings.task_queue,
        )
    except Exception as e:
        logger.error(
            "Workflow execution failed",
            extra={"workflow_id": workflow_id, "error": str(e)},
            exc_info=True,
        )
        raise HTTPException(
            status_code=500, detail="Internal server error"
        ) from e

    logger.info(
        "Workflow completed",
        extra={"workflow_id": workflow_id, "result_status": result.status},
    )
    return result  # type: ignore[no-any-return]


@app.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """Health check endpoint"""
    logger.debug("Health check requested")
    return HealthCheckResponse(status="ok", version="1.0.0")


@app.post("/events/employees", response_model=HandlerResult)
async def register_employee(
    payload: Payload = Body(None),
    client: Client = Depends(get_temporal_client),
    settings: AssetSyncSettings = Depends(get_settings),
) -> HandlerResult:
    """Register a new employee, or log a plain ``{message}`` payload."""
    return await _run_workflow(
        client,
        settings,
        RegisterEmployeeWorkflow.run,
        [payload or {}, settings.attributes],
        "register-employee",
    )


@app.post("/events/employees/remove", response_model=HandlerResult)
async def remove_employee(
    payload: Payload = Body(None),
    client: Client = Depends(get_temporal_client),
    settings: AssetSyncSettings = Depends(get_settings),
) -> HandlerResult:
    return await _run_workflow(
        client,
        settings,
        RemoveEmployeeWorkflow.run,
        [payload or {}, settings.attributes],
        "remove-employee",
    )


@app.post("/events/assets/assign", response_model=HandlerResult)
async def assign_asset(
    payload: Payload = Body(None),
    client: Client = Depends(get_temporal_client),
    settings: AssetSyncSettings = Depends(get_settings),
) -> HandlerResult:
    """Assign an asset to an employee unless it already has an owner."""
    return await _run_workflow(
        client,
        settings,
        AssignAssetWorkflow.run,
        [payload or {}, settings.attributes],
        "assign-asset",
    )


@app.post("/events/inventory/publish", response_model=HandlerResult)
async def publish_inventory(
    client: Client = Depends(get_temporal_client),
    settings: AssetSyncSettings = Depends(get_settings),
) -> HandlerResult:
    return await _run_workflow(
        client,
        settings,
        PublishInventoryWorkflow.run,
        [settings.publish_options],
        "publish-inventory",
    )


@app.post("/events/roster/refresh", response_model=HandlerResult)
async def refresh_roster_cache(
    client: Client = Depends(get_temporal_client),
    settings: AssetSyncSettings = Depends(get_settings),
) -> HandlerResult:
    return await _run_workflow(
        client,
        settings,
        RefreshRosterCacheWorkflow.run,
        [settings.attributes],
        "refresh-roster",
    )
