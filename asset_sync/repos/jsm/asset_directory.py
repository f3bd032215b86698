"""
Jira Service Management Assets implementation of AssetDirectoryRepository.

Talks to the Assets REST API of one workspace
(``https://api.atlassian.com/jsm/assets/workspace/{id}/v1``). Objects are
addressed by their object key (``"EM-1953"``) and searched with AQL.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from asset_sync.config import AssetDirectorySettings
from asset_sync.domain import (
    AssetObject,
    AttributeValue,
    ObjectAttribute,
    ObjectType,
    ObjectTypeAttribute,
    WriteResult,
)
from asset_sync.repos.http import (
    create_http_client,
    decode_json,
    read_json,
    send,
)
from asset_sync.repositories import AssetDirectoryRepository, TransportError

logger = logging.getLogger(__name__)


def create_assets_client(
    settings: AssetDirectorySettings,
) -> httpx.AsyncClient:
    return create_http_client(
        settings.base_url,
        settings.email,
        settings.api_token.get_secret_value(),
        settings.timeout_seconds,
    )


def _wire_to_attribute(item: Dict[str, Any]) -> ObjectAttribute:
    return ObjectAttribute(
        attribute_id=item["objectTypeAttributeId"],
        values=[
            AttributeValue(
                value=_as_text(v.get("value")),
                display_value=_as_text(v.get("displayValue")),
            )
            for v in item.get("objectAttributeValues") or []
        ],
    )


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _wire_to_object(item: Dict[str, Any]) -> AssetObject:
    """Converts an Assets API object entry to an AssetObject."""
    object_type = item.get("objectType") or {}
    type_id = object_type.get("id", item.get("objectTypeId"))
    return AssetObject(
        object_key=item["objectKey"],
        object_id=_as_text(item.get("id")),
        label=item.get("label") or item.get("name"),
        object_type_id=_as_text(type_id),
        attributes=[
            _wire_to_attribute(a) for a in item.get("attributes") or []
        ],
    )


def _domain_to_wire_attributes(
    attributes: Dict[str, str],
) -> List[Dict[str, Any]]:
    return [
        {
            "objectTypeAttributeId": str(attribute_id),
            "objectAttributeValues": [{"value": value}],
        }
        for attribute_id, value in attributes.items()
    ]


class JsmAssetDirectoryRepository(AssetDirectoryRepository):
    """
    Asset directory backed by the JSM Assets REST API.

    Every call is a single HTTP request (AQL searches page through the
    result set with one request per page). Nothing is cached.
    """

    def __init__(self, client: httpx.AsyncClient, page_size: int = 100):
        self._client = client
        self._page_size = page_size

    async def find_objects(self, query: str) -> List[AssetObject]:
        objects: List[AssetObject] = []
        start_at = 0
        while True:
            data = await read_json(
                self._client,
                "POST",
                "/object/aql",
                params={
                    "startAt": start_at,
                    "maxResults": self._page_size,
                    "includeAttributes": "true",
                },
                json={"qlQuery": query},
            )
            try:
                values = data.get("values") or []
                page = [_wire_to_object(v) for v in values]
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise TransportError(
                    f"Unexpected AQL response for {query!r}: {e}"
                ) from e
            objects.extend(page)

            start_at += len(page)
            is_last = data.get("isLast")
            if is_last is None:
                total = data.get("total")
                is_last = total is None or start_at >= total
            if not page or is_last:
                break

        logger.debug(
            "AQL search completed",
            extra={"query": query, "object_count": len(objects)},
        )
        return objects

    async def get_attributes(self, object_key: str) -> List[ObjectAttribute]:
        data = await read_json(
            self._client, "GET", f"/object/{object_key}/attributes"
        )
        try:
            return [_wire_to_attribute(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(
                f"Unexpected attribute list for {object_key}: {e}"
            ) from e

    async def set_attribute(
        self,
        object_key: str,
        object_type_id: str,
        attribute_id: str,
        value: str,
    ) -> WriteResult:
        body = {
            "attributes": _domain_to_wire_attributes({attribute_id: value}),
            "objectTypeId": str(object_type_id),
            "avatarUUID": "",
            "hasAvatar": False,
        }
        response = await send(
            self._client, "PUT", f"/object/{object_key}", json=body
        )
        return self._write_result(response)

    async def create_object(
        self, object_type_id: str, attributes: Dict[str, str]
    ) -> WriteResult:
        body = {
            "objectTypeId": str(object_type_id),
            "attributes": _domain_to_wire_attributes(attributes),
        }
        response = await send(
            self._client, "POST", "/object/create", json=body
        )
        return self._write_result(response)

    async def delete_object(self, object_key: str) -> WriteResult:
        response = await send(self._client, "DELETE", f"/object/{object_key}")
        return self._write_result(response, expect_object=False)

    async def list_object_types(self, schema_id: str) -> List[ObjectType]:
        data = await read_json(
            self._client, "GET", f"/objectschema/{schema_id}/objecttypes"
        )
        try:
            return [
                ObjectType(object_type_id=t["id"], name=t["name"])
                for t in data
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(
                f"Unexpected object type list for schema {schema_id}: {e}"
            ) from e

    async def list_type_attributes(
        self, object_type_id: str
    ) -> List[ObjectTypeAttribute]:
        data = await read_json(
            self._client, "GET", f"/objecttype/{object_type_id}/attributes"
        )
        try:
            return [
                ObjectTypeAttribute(attribute_id=a["id"], name=a["name"])
                for a in data
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(
                f"Unexpected attribute definitions for type "
                f"{object_type_id}: {e}"
            ) from e

    @staticmethod
    def _write_result(
        response: httpx.Response, expect_object: bool = True
    ) -> WriteResult:
        if not response.is_success:
            logger.warning(
                "Asset directory rejected a write",
                extra={
                    "path": response.request.url.path,
                    "status_code": response.status_code,
                },
            )
            return WriteResult(
                ok=False,
                status_code=response.status_code,
                body=response.text,
            )

        created = None
        if expect_object and response.content:
            try:
                data = decode_json(response)
            except TransportError as e:
                logger.warning(
                    "Write succeeded but the response was unreadable",
                    extra={"error": str(e)},
                )
                data = None
            if isinstance(data, dict) and "objectKey" in data:
                created = _wire_to_object(data)
        return WriteResult(
            ok=True, status_code=response.status_code, object=created
        )
