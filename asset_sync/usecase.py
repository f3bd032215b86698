"""
Use cases for the asset directory synchronisation system.

Use case logic is clean, without direct dependencies: repositories are
injected and validated at construction time. The same classes run in a
plain async context (CLI, tests) and inside Temporal workflows, where the
repositories are proxies delegating to activities.

Every remote failure is converted into a tagged outcome here; nothing
raised by a repository escapes a use case.
"""

import html
import json
import logging
from datetime import datetime
from typing import Dict, List, Optional

from asset_sync.config import AttributeMapping, PublishOptions
from asset_sync.domain import (
    AssetObject,
    AssignmentOutcome,
    AssignmentStatus,
    EmployeeOutcome,
    EmployeeRecord,
    EmployeeStatus,
    ExportedObject,
    InventorySnapshot,
    ObjectTypeExport,
    OwnershipState,
    OwnershipStatus,
    PublishOutcome,
    PublishStatus,
    RosterRefreshOutcome,
    WikiPage,
)
from asset_sync.repositories import (
    AssetDirectoryRepository,
    DocumentStoreRepository,
    EmployeeResolver,
    RosterCacheRepository,
    SnapshotRepository,
    TransportError,
)
from asset_sync.validation import (
    ensure_asset_directory_repository,
    ensure_document_store_repository,
    ensure_employee_resolver,
    ensure_roster_cache_repository,
    ensure_snapshot_repository,
)

logger = logging.getLogger(__name__)

PAGE_TITLE_PREFIX = "Assets - "
PAGE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class AssignAssetUseCase:
    """
    Guarded assignment of an asset to an employee.

    The owner is resolved from the employee business key to the directory
    system key, the asset's ownership attribute is read fresh, and a write
    is issued only when that attribute is unset. The first assignment wins:
    an asset that already has an owner is never overwritten.

    Known limitation: two concurrent calls for the same asset may both read
    "unset" and both write. The directory exposes no version token, so
    there is no compare-and-swap to close that window.
    """

    def __init__(
        self,
        directory_repo: AssetDirectoryRepository,
        employee_resolver: EmployeeResolver,
        attributes: AttributeMapping,
    ) -> None:
        self.directory_repo = ensure_asset_directory_repository(
            directory_repo
        )
        self.employee_resolver = ensure_employee_resolver(employee_resolver)
        self.attributes = attributes

    async def assign(
        self, asset_key: str, employee_id: str
    ) -> AssignmentOutcome:
        """
        Assign ``asset_key`` to the employee with business key
        ``employee_id``.

        Issues at most one write. Never raises for remote failures; every
        path ends in an ``AssignmentOutcome``.
        """
        log_extra = {"asset_key": asset_key, "employee_id": employee_id}
        logger.info("Starting guarded assignment", extra=log_extra)

        # 1. Resolve the owner's system key
        try:
            matches = await self.employee_resolver.find_employees(employee_id)
        except TransportError as e:
            return self._transport_error(asset_key, employee_id, e)

        if not matches:
            logger.info("Employee not found", extra=log_extra)
            return AssignmentOutcome(
                status=AssignmentStatus.UNKNOWN_EMPLOYEE,
                asset_key=asset_key,
                employee_id=employee_id,
                detail=f"No employee record with id {employee_id}",
            )
        if len(matches) > 1:
            keys = ", ".join(m.object_key for m in matches)
            logger.warning(
                "Employee id matches more than one record",
                extra={**log_extra, "object_keys": keys},
            )
            return AssignmentOutcome(
                status=AssignmentStatus.AMBIGUOUS_EMPLOYEE,
                asset_key=asset_key,
                employee_id=employee_id,
                detail=f"Employee id {employee_id} matches {keys}",
            )
        owner_ref = matches[0].object_key

        # 2. Read and normalise the current ownership
        try:
            current = await self.directory_repo.get_attributes(asset_key)
        except TransportError as e:
            return self._transport_error(asset_key, employee_id, e)

        ownership = OwnershipState.from_attributes(
            current, self.attributes.ownership_attribute_id
        )
        if not ownership.is_unset:
            # An unreadable (blank) value is left alone as well.
            if ownership.status == OwnershipStatus.UNKNOWN:
                logger.warning(
                    "Ownership attribute holds an unrecognised value",
                    extra=log_extra,
                )
            logger.info(
                "Asset already assigned, not writing",
                extra={**log_extra, "current_value": ownership.value},
            )
            return AssignmentOutcome(
                status=AssignmentStatus.ALREADY_ASSIGNED,
                asset_key=asset_key,
                employee_id=employee_id,
                current_value=ownership.value or "",
            )

        # 3. Conditional write
        try:
            result = await self.directory_repo.set_attribute(
                asset_key,
                self.attributes.asset_object_type_id,
                self.attributes.ownership_attribute_id,
                owner_ref,
            )
        except TransportError as e:
            return self._transport_error(asset_key, employee_id, e)

        if not result.ok:
            logger.error(
                "Asset directory rejected the ownership write",
                extra={**log_extra, "status_code": result.status_code},
            )
            return AssignmentOutcome(
                status=AssignmentStatus.WRITE_FAILED,
                asset_key=asset_key,
                employee_id=employee_id,
                owner_ref=owner_ref,
                status_code=result.status_code,
                detail=result.body,
            )

        logger.info(
            "Asset assigned",
            extra={**log_extra, "owner_ref": owner_ref},
        )
        return AssignmentOutcome(
            status=AssignmentStatus.CONFIRMED,
            asset_key=asset_key,
            employee_id=employee_id,
            owner_ref=owner_ref,
        )

    def _transport_error(
        self, asset_key: str, employee_id: str, error: TransportError
    ) -> AssignmentOutcome:
        logger.error(
            "Transport failure during assignment",
            extra={
                "asset_key": asset_key,
                "employee_id": employee_id,
                "error": str(error),
            },
        )
        return AssignmentOutcome(
            status=AssignmentStatus.TRANSPORT_ERROR,
            asset_key=asset_key,
            employee_id=employee_id,
            status_code=error.status_code,
            detail=str(error),
        )


class RegisterEmployeeUseCase:
    """Creates the directory record for a newly announced employee."""

    def __init__(
        self,
        directory_repo: AssetDirectoryRepository,
        employee_resolver: EmployeeResolver,
        attributes: AttributeMapping,
    ) -> None:
        self.directory_repo = ensure_asset_directory_repository(
            directory_repo
        )
        self.employee_resolver = ensure_employee_resolver(employee_resolver)
        self.attributes = attributes

    async def register(
        self, employee_id: str, username: str
    ) -> EmployeeOutcome:
        """
        Create an employee record unless the business key already resolves.

        An existing record (one or more) yields ``already_registered`` and
        nothing is written.
        """
        log_extra = {"employee_id": employee_id, "username": username}
        try:
            existing = await self.employee_resolver.find_employees(
                employee_id
            )
        except TransportError as e:
            return _employee_transport_error(employee_id, e)

        if existing:
            logger.info("Employee already registered", extra=log_extra)
            return EmployeeOutcome(
                status=EmployeeStatus.ALREADY_REGISTERED,
                employee_id=employee_id,
                object_key=existing[0].object_key,
            )

        fields = {
            self.attributes.employee_name_attribute_id: username,
            self.attributes.employee_id_attribute_id: employee_id,
        }
        try:
            result = await self.directory_repo.create_object(
                self.attributes.employee_object_type_id, fields
            )
        except TransportError as e:
            return _employee_transport_error(employee_id, e)

        if not result.ok:
            logger.error(
                "Asset directory rejected the employee record",
                extra={**log_extra, "status_code": result.status_code},
            )
            return EmployeeOutcome(
                status=EmployeeStatus.WRITE_FAILED,
                employee_id=employee_id,
                status_code=result.status_code,
                detail=result.body,
            )

        object_key = result.object.object_key if result.object else None
        logger.info(
            "Employee record created",
            extra={**log_extra, "object_key": object_key},
        )
        return EmployeeOutcome(
            status=EmployeeStatus.CREATED,
            employee_id=employee_id,
            object_key=object_key,
        )


class RemoveEmployeeUseCase:
    """Deletes the directory record of a departing employee."""

    def __init__(
        self,
        directory_repo: AssetDirectoryRepository,
        employee_resolver: EmployeeResolver,
    ) -> None:
        self.directory_repo = ensure_asset_directory_repository(
            directory_repo
        )
        self.employee_resolver = ensure_employee_resolver(employee_resolver)

    async def remove(self, employee_id: str) -> EmployeeOutcome:
        try:
            matches = await self.employee_resolver.find_employees(employee_id)
        except TransportError as e:
            return _employee_transport_error(employee_id, e)

        if not matches:
            return EmployeeOutcome(
                status=EmployeeStatus.UNKNOWN_EMPLOYEE,
                employee_id=employee_id,
                detail=f"No employee record with id {employee_id}",
            )
        if len(matches) > 1:
            keys = ", ".join(m.object_key for m in matches)
            logger.warning(
                "Refusing to remove ambiguous employee",
                extra={"employee_id": employee_id, "object_keys": keys},
            )
            return EmployeeOutcome(
                status=EmployeeStatus.AMBIGUOUS_EMPLOYEE,
                employee_id=employee_id,
                detail=f"Employee id {employee_id} matches {keys}",
            )

        object_key = matches[0].object_key
        try:
            result = await self.directory_repo.delete_object(object_key)
        except TransportError as e:
            return _employee_transport_error(employee_id, e)

        if not result.ok:
            return EmployeeOutcome(
                status=EmployeeStatus.WRITE_FAILED,
                employee_id=employee_id,
                object_key=object_key,
                status_code=result.status_code,
                detail=result.body,
            )

        logger.info(
            "Employee record removed",
            extra={"employee_id": employee_id, "object_key": object_key},
        )
        return EmployeeOutcome(
            status=EmployeeStatus.REMOVED,
            employee_id=employee_id,
            object_key=object_key,
        )


def _employee_transport_error(
    employee_id: str, error: TransportError
) -> EmployeeOutcome:
    logger.error(
        "Transport failure while updating employee records",
        extra={"employee_id": employee_id, "error": str(error)},
    )
    return EmployeeOutcome(
        status=EmployeeStatus.TRANSPORT_ERROR,
        employee_id=employee_id,
        status_code=error.status_code,
        detail=str(error),
    )


def page_title_for(options: PublishOptions, published_at: datetime) -> str:
    if options.page_title:
        return options.page_title
    return PAGE_TITLE_PREFIX + published_at.strftime(PAGE_TIMESTAMP_FORMAT)


def render_storage_body(snapshot: InventorySnapshot) -> str:
    """Render the snapshot as a preformatted JSON block in storage format."""
    text = json.dumps(snapshot.to_wire(), indent=2, ensure_ascii=False)
    return f"<pre>{html.escape(text, quote=False)}</pre>"


def export_object(
    obj: AssetObject, attribute_names: Dict[str, str]
) -> ExportedObject:
    """Flatten an object to ``{attribute name: first value}``.

    Attributes without a known name or without a value are left out.
    """
    exported: Dict[str, str] = {}
    for attr in obj.attributes:
        name = attribute_names.get(attr.attribute_id)
        value = attr.first_value()
        if name and value:
            exported[name] = value
    return ExportedObject(
        id=obj.object_id or obj.object_key,
        name=obj.label,
        attributes=exported,
    )


class PublishInventoryUseCase:
    """
    Exports every object of a schema and publishes it as a wiki page.

    With a stable page title the existing page is updated in place;
    otherwise each run creates a new ``Assets - <timestamp>`` page. The
    timestamp is passed in by the caller so workflow replays render the
    same title.
    """

    def __init__(
        self,
        directory_repo: AssetDirectoryRepository,
        document_store_repo: DocumentStoreRepository,
        snapshot_repo: Optional[SnapshotRepository] = None,
    ) -> None:
        self.directory_repo = ensure_asset_directory_repository(
            directory_repo
        )
        self.document_store_repo = ensure_document_store_repository(
            document_store_repo
        )
        self.snapshot_repo = (
            ensure_snapshot_repository(snapshot_repo)
            if snapshot_repo is not None
            else None
        )

    async def publish(
        self, options: PublishOptions, published_at: datetime
    ) -> PublishOutcome:
        logger.info(
            "Starting inventory publish",
            extra={
                "object_schema_id": options.object_schema_id,
                "space_key": options.space_key,
            },
        )

        try:
            snapshot, skipped = await self._export(options.object_schema_id)
        except TransportError as e:
            logger.error(
                "Could not list object types",
                extra={
                    "object_schema_id": options.object_schema_id,
                    "error": str(e),
                },
            )
            return PublishOutcome(
                status=PublishStatus.TRANSPORT_ERROR,
                status_code=e.status_code,
                detail=str(e),
            )

        snapshot_location = await self._write_snapshot(snapshot)

        title = page_title_for(options, published_at)
        body = render_storage_body(snapshot)
        try:
            existing = await self._find_existing_page(options, title)
        except TransportError as e:
            logger.error(
                "Looking up the inventory page failed",
                extra={
                    "title": title,
                    "status_code": e.status_code,
                    "error": str(e),
                },
            )
            return PublishOutcome(
                status=PublishStatus.TRANSPORT_ERROR,
                object_count=snapshot.object_count,
                skipped_types=skipped,
                snapshot_location=snapshot_location,
                status_code=e.status_code,
                detail=str(e),
            )

        try:
            page, created = await self._write_page(
                options, title, body, existing
            )
        except TransportError as e:
            logger.error(
                "Publishing the inventory page failed",
                extra={
                    "title": title,
                    "status_code": e.status_code,
                    "error": str(e),
                },
            )
            return PublishOutcome(
                status=(
                    PublishStatus.WRITE_FAILED
                    if e.status_code is not None
                    else PublishStatus.TRANSPORT_ERROR
                ),
                object_count=snapshot.object_count,
                skipped_types=skipped,
                snapshot_location=snapshot_location,
                status_code=e.status_code,
                detail=str(e),
            )

        logger.info(
            "Inventory published",
            extra={
                "page_id": page.page_id,
                "version": page.version,
                "page_created": created,
                "object_count": snapshot.object_count,
            },
        )
        return PublishOutcome(
            status=PublishStatus.PUBLISHED,
            page=page,
            created=created,
            object_count=snapshot.object_count,
            skipped_types=skipped,
            snapshot_location=snapshot_location,
        )

    async def _export(
        self, schema_id: str
    ) -> tuple[InventorySnapshot, List[str]]:
        object_types = await self.directory_repo.list_object_types(schema_id)

        groups: List[ObjectTypeExport] = []
        skipped: List[str] = []
        for object_type in object_types:
            try:
                definitions = await self.directory_repo.list_type_attributes(
                    object_type.object_type_id
                )
                names = {d.attribute_id: d.name for d in definitions}
                objects = await self.directory_repo.find_objects(
                    _object_type_query(object_type.name)
                )
            except TransportError as e:
                logger.warning(
                    "Skipping object type that could not be exported",
                    extra={
                        "object_type": object_type.name,
                        "error": str(e),
                    },
                )
                skipped.append(object_type.name)
                continue

            groups.append(
                ObjectTypeExport(
                    object_type=object_type.name,
                    objects=[export_object(o, names) for o in objects],
                )
            )

        return InventorySnapshot(groups=groups), skipped

    async def _write_snapshot(
        self, snapshot: InventorySnapshot
    ) -> Optional[str]:
        if self.snapshot_repo is None:
            return None
        # A failed snapshot write does not stop the publish.
        try:
            return await self.snapshot_repo.write_snapshot(snapshot)
        except (OSError, TransportError) as e:
            logger.warning(
                "Failed to write inventory snapshot",
                extra={"error": str(e)},
            )
            return None

    async def _find_existing_page(
        self, options: PublishOptions, title: str
    ) -> Optional[WikiPage]:
        # Dated titles are unique per run, so only stable titles are looked up
        if not options.page_title:
            return None
        return await self.document_store_repo.find_page(
            options.space_key, title
        )

    async def _write_page(
        self,
        options: PublishOptions,
        title: str,
        body: str,
        existing: Optional[WikiPage],
    ) -> tuple[WikiPage, bool]:
        if existing is None:
            page = await self.document_store_repo.create_page(
                options.space_key, title, body
            )
            return page, True

        page = await self.document_store_repo.update_page(
            existing.page_id, title, body, existing.version + 1
        )
        return page, False


def _object_type_query(name: str) -> str:
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    return f'objectType = "{escaped}"'


class RefreshRosterCacheUseCase:
    """Mirrors every employee record into the local roster cache."""

    def __init__(
        self,
        directory_repo: AssetDirectoryRepository,
        roster_cache_repo: RosterCacheRepository,
        attributes: AttributeMapping,
    ) -> None:
        self.directory_repo = ensure_asset_directory_repository(
            directory_repo
        )
        self.roster_cache_repo = ensure_roster_cache_repository(
            roster_cache_repo
        )
        self.attributes = attributes

    async def refresh(self) -> RosterRefreshOutcome:
        query = f"objectTypeId = {self.attributes.employee_object_type_id}"
        try:
            objects = await self.directory_repo.find_objects(query)
        except TransportError as e:
            logger.error(
                "Could not read employee records",
                extra={"error": str(e)},
            )
            return RosterRefreshOutcome(
                status="transport_error", detail=str(e)
            )

        records: List[EmployeeRecord] = []
        for obj in objects:
            record = self.attributes.employee_from_object(obj)
            if record is None:
                logger.debug(
                    "Skipping employee object without an id",
                    extra={"object_key": obj.object_key},
                )
                continue
            records.append(record)

        try:
            location = await self.roster_cache_repo.store_roster(records)
        except (OSError, TransportError) as e:
            logger.error(
                "Could not store the roster cache",
                extra={"error": str(e)},
            )
            return RosterRefreshOutcome(
                status="write_failed",
                employee_count=len(records),
                detail=str(e),
            )

        logger.info(
            "Roster cache refreshed",
            extra={"employee_count": len(records), "location": location},
        )
        return RosterRefreshOutcome(
            status="refreshed",
            employee_count=len(records),
            detail=location,
        )
