"""
Host-facing event handlers.

Each handler takes the raw event payload delivered by the host platform,
validates it, runs the matching use case and returns a ``HandlerResult``.
Handlers never raise for bad input or remote failures; the host always
gets a structured ``{status, message}`` record back.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from asset_sync.config import PublishOptions
from asset_sync.domain import (
    AssignAssetEvent,
    AssignmentOutcome,
    AssignmentStatus,
    EmployeeEvent,
    EmployeeOutcome,
    EmployeeStatus,
    HandlerResult,
    PublishOutcome,
    PublishStatus,
    RemoveEmployeeEvent,
)
from asset_sync.usecase import (
    AssignAssetUseCase,
    PublishInventoryUseCase,
    RefreshRosterCacheUseCase,
    RegisterEmployeeUseCase,
    RemoveEmployeeUseCase,
)

logger = logging.getLogger(__name__)

INVALID_PAYLOAD = "invalid_payload"
LOGGED = "logged"

E = TypeVar("E", bound=BaseModel)
U = TypeVar("U")


def _describe_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"]) or "payload"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def _invalid(error: ValidationError) -> HandlerResult:
    message = _describe_validation_error(error)
    logger.warning("Rejected invalid payload", extra={"errors": message})
    return HandlerResult(status=INVALID_PAYLOAD, message=message)


def _parse(model: type[E], payload: Optional[Dict[str, Any]]) -> E:
    return model.model_validate(payload or {})


def assignment_message(outcome: AssignmentOutcome) -> str:
    if outcome.status == AssignmentStatus.CONFIRMED:
        return f"Asset {outcome.asset_key} assigned to {outcome.owner_ref}"
    if outcome.status == AssignmentStatus.ALREADY_ASSIGNED:
        return (
            f"Asset {outcome.asset_key} is already assigned to "
            f"{outcome.current_value!r}"
        )
    if outcome.status == AssignmentStatus.UNKNOWN_EMPLOYEE:
        return f"Employee {outcome.employee_id} not found"
    if outcome.status == AssignmentStatus.AMBIGUOUS_EMPLOYEE:
        return (
            f"Employee {outcome.employee_id} is not unique: "
            f"{outcome.detail}"
        )
    if outcome.status == AssignmentStatus.WRITE_FAILED:
        return (
            f"Assigning {outcome.asset_key} failed with status "
            f"{outcome.status_code}"
        )
    return f"Could not reach the asset directory: {outcome.detail}"


def employee_message(outcome: EmployeeOutcome) -> str:
    messages = {
        EmployeeStatus.CREATED: (
            f"Employee {outcome.employee_id} created as {outcome.object_key}"
        ),
        EmployeeStatus.ALREADY_REGISTERED: (
            f"Employee {outcome.employee_id} already exists as "
            f"{outcome.object_key}"
        ),
        EmployeeStatus.REMOVED: (
            f"Employee {outcome.employee_id} ({outcome.object_key}) removed"
        ),
        EmployeeStatus.UNKNOWN_EMPLOYEE: (
            f"Employee {outcome.employee_id} not found"
        ),
        EmployeeStatus.AMBIGUOUS_EMPLOYEE: (
            f"Employee {outcome.employee_id} is not unique: {outcome.detail}"
        ),
        EmployeeStatus.WRITE_FAILED: (
            f"Asset directory rejected the change with status "
            f"{outcome.status_code}"
        ),
    }
    return messages.get(
        outcome.status,
        f"Could not reach the asset directory: {outcome.detail}",
    )


def publish_message(outcome: PublishOutcome) -> str:
    if outcome.status == PublishStatus.PUBLISHED and outcome.page:
        verb = "Created" if outcome.created else "Updated"
        return (
            f"{verb} page '{outcome.page.title}' with "
            f"{outcome.object_count} objects"
        )
    if outcome.status == PublishStatus.WRITE_FAILED:
        return f"Wiki rejected the page with status {outcome.status_code}"
    return f"Inventory could not be published: {outcome.detail}"


def _result(status: str, message: str, outcome: BaseModel) -> HandlerResult:
    return HandlerResult(
        status=status,
        message=message,
        data=outcome.model_dump(mode="json", exclude_none=True),
    )


class AssetEventHandlers:
    """
    Entry points invoked by the host platform.

    Only the use cases needed by the caller have to be supplied; calling a
    handler whose use case was not configured is a programming error.
    """

    def __init__(
        self,
        assign_use_case: Optional[AssignAssetUseCase] = None,
        register_use_case: Optional[RegisterEmployeeUseCase] = None,
        remove_use_case: Optional[RemoveEmployeeUseCase] = None,
        publish_use_case: Optional[PublishInventoryUseCase] = None,
        refresh_use_case: Optional[RefreshRosterCacheUseCase] = None,
    ) -> None:
        self.assign_use_case = assign_use_case
        self.register_use_case = register_use_case
        self.remove_use_case = remove_use_case
        self.publish_use_case = publish_use_case
        self.refresh_use_case = refresh_use_case

    @staticmethod
    def _require(use_case: Optional[U], name: str) -> U:
        if use_case is None:
            raise RuntimeError(f"{name} is not configured for this handler")
        return use_case

    async def assign_asset(
        self, payload: Optional[Dict[str, Any]]
    ) -> HandlerResult:
        """Handle an ``{objectKey, employeeId}`` assignment request."""
        use_case = self._require(self.assign_use_case, "assign_use_case")
        try:
            event = _parse(AssignAssetEvent, payload)
        except ValidationError as e:
            return _invalid(e)

        outcome = await use_case.assign(event.object_key, event.employee_id)
        return _result(
            outcome.status.value, assignment_message(outcome), outcome
        )

    async def register_employee(
        self, payload: Optional[Dict[str, Any]]
    ) -> HandlerResult:
        """
        Handle an ``{employeeId, username}`` announcement.

        A payload carrying only a ``message`` is logged and acknowledged
        without touching the directory.
        """
        use_case = self._require(self.register_use_case, "register_use_case")
        try:
            event = _parse(EmployeeEvent, payload)
        except ValidationError as e:
            return _invalid(e)

        if not event.has_employee:
            if event.message:
                logger.info(
                    "Received message", extra={"event_message": event.message}
                )
                return HandlerResult(status=LOGGED, message=event.message)
            return HandlerResult(
                status=INVALID_PAYLOAD,
                message="employeeId and username are required",
            )

        outcome = await use_case.register(event.employee_id, event.username)
        return _result(
            outcome.status.value, employee_message(outcome), outcome
        )

    async def remove_employee(
        self, payload: Optional[Dict[str, Any]]
    ) -> HandlerResult:
        use_case = self._require(self.remove_use_case, "remove_use_case")
        try:
            event = _parse(RemoveEmployeeEvent, payload)
        except ValidationError as e:
            return _invalid(e)

        outcome = await use_case.remove(event.employee_id)
        return _result(
            outcome.status.value, employee_message(outcome), outcome
        )

    async def publish_inventory(
        self, options: PublishOptions, published_at: datetime
    ) -> HandlerResult:
        use_case = self._require(self.publish_use_case, "publish_use_case")
        outcome = await use_case.publish(options, published_at)
        return _result(outcome.status.value, publish_message(outcome), outcome)

    async def refresh_roster_cache(self) -> HandlerResult:
        use_case = self._require(self.refresh_use_case, "refresh_use_case")
        outcome = await use_case.refresh()
        if outcome.status == "refreshed":
            message = f"Cached {outcome.employee_count} employee records"
        else:
            message = f"Roster cache not refreshed: {outcome.detail}"
        return _result(outcome.status, message, outcome)
