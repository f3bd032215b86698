"""
Memory implementation of AssetDirectoryRepository.

Holds object types and objects in dictionaries, for tests and dry runs.
``find_objects`` understands the small AQL subset the use cases and the
live employee resolver send: ``AND``-joined equality clauses on
``objectType``, ``objectTypeId`` or an attribute name.

Failures can be injected: ``fail_writes_with`` makes every mutation return
a rejected ``WriteResult`` with that status, ``fail_reads_with`` makes every
read raise ``TransportError`` with that status, and object type ids listed
in ``failing_object_types`` cannot be exported.
"""

import logging
import re
from typing import Dict, List, Optional, Set, Tuple

from asset_sync.domain import (
    AssetObject,
    AttributeValue,
    ObjectAttribute,
    ObjectType,
    ObjectTypeAttribute,
    WriteResult,
)
from asset_sync.repositories import AssetDirectoryRepository, TransportError

logger = logging.getLogger(__name__)

_CLAUSE = re.compile(
    r'^\s*(?:"((?:[^"\\]|\\.)*)"|(\w+))\s*=\s*'
    r'(?:"((?:[^"\\]|\\.)*)"|(\S+))\s*$'
)


def _unescape(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text)


def parse_query(query: str) -> List[Tuple[str, str]]:
    """Split an AQL query into ``(field, value)`` equality clauses."""
    clauses = []
    for part in re.split(r"\s+AND\s+", query.strip()):
        match = _CLAUSE.match(part)
        if not match:
            raise ValueError(f"Unsupported query clause: {part!r}")
        field = (
            _unescape(match.group(1))
            if match.group(1) is not None
            else match.group(2)
        )
        value = (
            _unescape(match.group(3))
            if match.group(3) is not None
            else match.group(4)
        )
        clauses.append((field, value))
    return clauses


class MemoryAssetDirectoryRepository(AssetDirectoryRepository):
    def __init__(
        self,
        fail_writes_with: Optional[int] = None,
        fail_reads_with: Optional[int] = None,
    ) -> None:
        self.fail_writes_with = fail_writes_with
        self.fail_reads_with = fail_reads_with
        self.failing_object_types: Set[str] = set()

        self.object_types: Dict[str, ObjectType] = {}
        self.schemas: Dict[str, str] = {}
        self.type_attributes: Dict[str, List[ObjectTypeAttribute]] = {}
        self.key_prefixes: Dict[str, str] = {}
        self.objects: Dict[str, AssetObject] = {}
        self.writes: List[Tuple[str, str]] = []
        self._next_id = 1

        logger.debug("Initializing MemoryAssetDirectoryRepository")

    # --- Seeding helpers ---

    def add_object_type(
        self,
        object_type_id: str,
        name: str,
        attributes: Optional[Dict[str, str]] = None,
        key_prefix: str = "OBJ",
        schema_id: str = "14",
    ) -> ObjectType:
        object_type = ObjectType(object_type_id=object_type_id, name=name)
        self.object_types[object_type.object_type_id] = object_type
        self.schemas[object_type.object_type_id] = schema_id
        self.type_attributes[object_type.object_type_id] = [
            ObjectTypeAttribute(attribute_id=attr_id, name=attr_name)
            for attr_id, attr_name in (attributes or {}).items()
        ]
        self.key_prefixes[object_type.object_type_id] = key_prefix
        return object_type

    def add_object(
        self,
        object_type_id: str,
        attributes: Dict[str, Optional[str]],
        object_key: Optional[str] = None,
        label: Optional[str] = None,
    ) -> AssetObject:
        """Store an object; an attribute mapped to None has no values."""
        object_id = str(self._next_id)
        self._next_id += 1
        prefix = self.key_prefixes.get(str(object_type_id), "OBJ")
        obj = AssetObject(
            object_key=object_key or f"{prefix}-{object_id}",
            object_id=object_id,
            label=label,
            object_type_id=str(object_type_id),
            attributes=[
                ObjectAttribute(
                    attribute_id=attr_id,
                    values=(
                        [] if value is None else [AttributeValue(value=value)]
                    ),
                )
                for attr_id, value in attributes.items()
            ],
        )
        self.objects[obj.object_key] = obj
        return obj

    # --- Failure injection ---

    def _check_read(self, what: str) -> None:
        if self.fail_reads_with is not None:
            raise TransportError(
                f"{what} failed with status {self.fail_reads_with}",
                status_code=self.fail_reads_with,
            )

    def _rejected_write(self) -> Optional[WriteResult]:
        if self.fail_writes_with is None:
            return None
        return WriteResult(
            ok=False,
            status_code=self.fail_writes_with,
            body="Injected write failure",
        )

    # --- AssetDirectoryRepository ---

    def _matches(self, obj: AssetObject, field: str, value: str) -> bool:
        if field == "objectTypeId":
            return obj.object_type_id == value
        if field == "objectType":
            object_type = self.object_types.get(obj.object_type_id or "")
            return object_type is not None and object_type.name == value

        # AQL attribute comparison is case-insensitive
        for definition in self.type_attributes.get(
            obj.object_type_id or "", []
        ):
            if definition.name == field:
                current = obj.first_value(definition.attribute_id)
                return (
                    current is not None and current.lower() == value.lower()
                )
        return False

    async def find_objects(self, query: str) -> List[AssetObject]:
        self._check_read(f"find_objects({query!r})")
        clauses = parse_query(query)

        for field, value in clauses:
            if field != "objectType":
                continue
            type_ids = {
                t.object_type_id
                for t in self.object_types.values()
                if t.name == value
            }
            if type_ids & self.failing_object_types:
                raise TransportError(
                    f"Search for object type {value!r} failed",
                    status_code=500,
                )

        return [
            obj.model_copy(deep=True)
            for obj in self.objects.values()
            if all(self._matches(obj, f, v) for f, v in clauses)
        ]

    async def get_attributes(self, object_key: str) -> List[ObjectAttribute]:
        self._check_read(f"get_attributes({object_key})")
        obj = self.objects.get(object_key)
        if obj is None:
            raise TransportError(
                f"Object {object_key} not found", status_code=404
            )
        return [a.model_copy(deep=True) for a in obj.attributes]

    async def set_attribute(
        self,
        object_key: str,
        object_type_id: str,
        attribute_id: str,
        value: str,
    ) -> WriteResult:
        self.writes.append(("set_attribute", object_key))
        rejected = self._rejected_write()
        if rejected is not None:
            return rejected

        obj = self.objects.get(object_key)
        if obj is None:
            return WriteResult(
                ok=False, status_code=404, body=f"{object_key} not found"
            )

        new_attribute = ObjectAttribute(
            attribute_id=attribute_id, values=[AttributeValue(value=value)]
        )
        obj.attributes = [
            a for a in obj.attributes if a.attribute_id != str(attribute_id)
        ] + [new_attribute]
        return WriteResult(
            ok=True, status_code=200, object=obj.model_copy(deep=True)
        )

    async def create_object(
        self, object_type_id: str, attributes: Dict[str, str]
    ) -> WriteResult:
        self.writes.append(("create_object", str(object_type_id)))
        rejected = self._rejected_write()
        if rejected is not None:
            return rejected

        obj = self.add_object(object_type_id, dict(attributes))
        return WriteResult(
            ok=True, status_code=201, object=obj.model_copy(deep=True)
        )

    async def delete_object(self, object_key: str) -> WriteResult:
        self.writes.append(("delete_object", object_key))
        rejected = self._rejected_write()
        if rejected is not None:
            return rejected

        if self.objects.pop(object_key, None) is None:
            return WriteResult(
                ok=False, status_code=404, body=f"{object_key} not found"
            )
        return WriteResult(ok=True, status_code=204)

    async def list_object_types(self, schema_id: str) -> List[ObjectType]:
        self._check_read(f"list_object_types({schema_id})")
        return [
            t
            for type_id, t in self.object_types.items()
            if self.schemas.get(type_id) == str(schema_id)
        ]

    async def list_type_attributes(
        self, object_type_id: str
    ) -> List[ObjectTypeAttribute]:
        self._check_read(f"list_type_attributes({object_type_id})")
        if str(object_type_id) in self.failing_object_types:
            raise TransportError(
                f"Attributes of type {object_type_id} unavailable",
                status_code=500,
            )
        return list(self.type_attributes.get(str(object_type_id), []))
