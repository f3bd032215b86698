"""
Domain models for the asset directory synchronisation system.

These are pure Pydantic v2 data structures with validation. Records are owned
by the remote Asset Directory Service; nothing here is persisted locally
except through the explicit cache and snapshot repositories.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

OBJECT_KEY_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_]*-\d+$")

# Upstream systems write the literal string "null" for a cleared value.
NULL_SENTINEL = "null"


# --- Asset directory records ---


class AttributeValue(BaseModel):
    """A single value held by an object attribute."""

    value: Optional[str] = None
    display_value: Optional[str] = None


class ObjectAttribute(BaseModel):
    """An attribute of an asset object, identified by its attribute id."""

    attribute_id: str
    values: List[AttributeValue] = Field(default_factory=list)

    @field_validator("attribute_id", mode="before")
    @classmethod
    def coerce_attribute_id(cls, v: Any) -> str:
        return str(v)

    def first_value(self) -> Optional[str]:
        if not self.values:
            return None
        return self.values[0].value


class AssetObject(BaseModel):
    """
    An object stored in the asset directory (an asset, an employee, ...).

    ``object_key`` is the directory's system key, e.g. ``"EM-1953"``.
    """

    object_key: str
    object_id: Optional[str] = None
    label: Optional[str] = None
    object_type_id: Optional[str] = None
    attributes: List[ObjectAttribute] = Field(default_factory=list)

    def attribute(self, attribute_id: str) -> Optional[ObjectAttribute]:
        for attr in self.attributes:
            if attr.attribute_id == str(attribute_id):
                return attr
        return None

    def first_value(self, attribute_id: str) -> Optional[str]:
        attr = self.attribute(attribute_id)
        return attr.first_value() if attr else None


class EmployeeRecord(BaseModel):
    """
    An employee as known to the directory.

    The ownership attribute of an asset stores ``object_key`` (system key),
    never ``employee_id`` (business key).
    """

    employee_id: str
    object_key: str
    username: Optional[str] = None


class ObjectType(BaseModel):
    object_type_id: str
    name: str

    @field_validator("object_type_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)


class ObjectTypeAttribute(BaseModel):
    attribute_id: str
    name: str

    @field_validator("attribute_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v)


class WriteResult(BaseModel):
    """Result of a mutation sent to the asset directory."""

    ok: bool
    status_code: int
    body: Optional[str] = None
    object: Optional[AssetObject] = None


# --- Ownership ---


class OwnershipStatus(str, Enum):
    UNSET = "unset"
    ASSIGNED = "assigned"
    UNKNOWN = "unknown"


class OwnershipState(BaseModel):
    """Normalised view of an asset's ownership attribute."""

    status: OwnershipStatus
    value: Optional[str] = None

    @classmethod
    def from_attributes(
        cls, attributes: List[ObjectAttribute], attribute_id: str
    ) -> "OwnershipState":
        """
        Normalise a freshly read attribute list.

        An absent attribute, an attribute without values, a ``None`` value
        and the string ``"null"`` all mean unset. A blank value cannot be
        interpreted and is reported as unknown.
        """
        attribute = next(
            (a for a in attributes if a.attribute_id == str(attribute_id)),
            None,
        )
        if attribute is None:
            return cls(status=OwnershipStatus.UNSET)

        value = attribute.first_value()
        if value is None or value == NULL_SENTINEL:
            return cls(status=OwnershipStatus.UNSET)
        if not value.strip():
            return cls(status=OwnershipStatus.UNKNOWN, value=value)
        return cls(status=OwnershipStatus.ASSIGNED, value=value)

    @property
    def is_unset(self) -> bool:
        return self.status == OwnershipStatus.UNSET


# --- Outcomes ---


class AssignmentStatus(str, Enum):
    CONFIRMED = "confirmed"
    ALREADY_ASSIGNED = "already_assigned"
    UNKNOWN_EMPLOYEE = "unknown_employee"
    AMBIGUOUS_EMPLOYEE = "ambiguous_employee"
    WRITE_FAILED = "write_failed"
    TRANSPORT_ERROR = "transport_error"


class AssignmentOutcome(BaseModel):
    """Tagged result of one guarded assignment."""

    status: AssignmentStatus
    asset_key: str
    employee_id: str
    # Validated even when omitted, so the per-status requirements hold.
    owner_ref: Optional[str] = Field(None, validate_default=True)
    current_value: Optional[str] = Field(None, validate_default=True)
    status_code: Optional[int] = Field(None, validate_default=True)
    detail: Optional[str] = None

    @field_validator("owner_ref")
    @classmethod
    def owner_ref_must_be_present_if_confirmed(
        cls, v: Optional[str], info: Any
    ) -> Optional[str]:
        if info.data.get("status") == AssignmentStatus.CONFIRMED and not v:
            raise ValueError("owner_ref must be present if confirmed")
        return v

    @field_validator("current_value")
    @classmethod
    def current_value_must_be_present_if_assigned(
        cls, v: Optional[str], info: Any
    ) -> Optional[str]:
        if (
            info.data.get("status") == AssignmentStatus.ALREADY_ASSIGNED
            and v is None
        ):
            raise ValueError(
                "current_value must be present if already assigned"
            )
        return v

    @field_validator("status_code")
    @classmethod
    def status_code_must_be_present_if_write_failed(
        cls, v: Optional[int], info: Any
    ) -> Optional[int]:
        if (
            info.data.get("status") == AssignmentStatus.WRITE_FAILED
            and v is None
        ):
            raise ValueError("status_code must be present if write failed")
        return v


class EmployeeStatus(str, Enum):
    CREATED = "created"
    ALREADY_REGISTERED = "already_registered"
    REMOVED = "removed"
    UNKNOWN_EMPLOYEE = "unknown_employee"
    AMBIGUOUS_EMPLOYEE = "ambiguous_employee"
    WRITE_FAILED = "write_failed"
    TRANSPORT_ERROR = "transport_error"


class EmployeeOutcome(BaseModel):
    """Result of registering or removing an employee record."""

    status: EmployeeStatus
    employee_id: str
    object_key: Optional[str] = None
    status_code: Optional[int] = None
    detail: Optional[str] = None


# --- Inventory export ---


class ExportedObject(BaseModel):
    id: str
    name: Optional[str] = None
    attributes: Dict[str, str] = Field(default_factory=dict)


class ObjectTypeExport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    object_type: str = Field(..., alias="objectType")
    objects: List[ExportedObject] = Field(default_factory=list)


class InventorySnapshot(BaseModel):
    """All objects of a schema, grouped by object type."""

    groups: List[ObjectTypeExport] = Field(default_factory=list)

    @property
    def object_count(self) -> int:
        return sum(len(g.objects) for g in self.groups)

    def to_wire(self) -> List[Dict[str, Any]]:
        return [g.model_dump(mode="json", by_alias=True) for g in self.groups]


class WikiPage(BaseModel):
    page_id: str
    title: str
    version: int = 1
    url: Optional[str] = None


class PublishStatus(str, Enum):
    PUBLISHED = "published"
    WRITE_FAILED = "write_failed"
    TRANSPORT_ERROR = "transport_error"


class PublishOutcome(BaseModel):
    status: PublishStatus
    page: Optional[WikiPage] = None
    created: bool = False
    object_count: int = 0
    skipped_types: List[str] = Field(default_factory=list)
    snapshot_location: Optional[str] = None
    status_code: Optional[int] = None
    detail: Optional[str] = None


class RosterRefreshOutcome(BaseModel):
    status: str
    employee_count: int = 0
    detail: Optional[str] = None


# --- Inbound host events ---


class EmployeeEvent(BaseModel):
    """Payload announcing a new employee, or a plain log message."""

    model_config = ConfigDict(populate_by_name=True)

    employee_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("employeeId", "userId", "employee_id"),
    )
    username: Optional[str] = None
    message: Optional[str] = None

    @field_validator("employee_id", "username")
    @classmethod
    def blank_is_missing(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def has_employee(self) -> bool:
        return bool(self.employee_id and self.username)


class RemoveEmployeeEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    employee_id: str = Field(
        ...,
        validation_alias=AliasChoices("employeeId", "userId", "employee_id"),
    )

    @field_validator("employee_id")
    @classmethod
    def employee_id_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("employeeId must not be blank")
        return v


class AssignAssetEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    object_key: str = Field(
        ..., validation_alias=AliasChoices("objectKey", "object_key")
    )
    employee_id: str = Field(
        ..., validation_alias=AliasChoices("employeeId", "employee_id")
    )

    @field_validator("object_key")
    @classmethod
    def object_key_must_be_well_formed(cls, v: str) -> str:
        v = v.strip()
        if not OBJECT_KEY_PATTERN.match(v):
            raise ValueError(
                "objectKey must look like '<TYPE>-<numeric id>'"
            )
        return v

    @field_validator("employee_id")
    @classmethod
    def employee_id_must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("employeeId must not be blank")
        return v


class HandlerResult(BaseModel):
    """The structured record returned to the host platform."""

    status: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
