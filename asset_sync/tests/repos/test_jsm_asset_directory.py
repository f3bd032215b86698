"""
Tests for the JSM Assets repository and the live employee resolver.

Requests are answered by an ``httpx.MockTransport`` so the wire format
(paths, query parameters, JSON bodies) can be asserted directly.
"""

import json
from typing import Any, Callable, List

import httpx
import pytest

from asset_sync.config import AttributeMapping
from asset_sync.repos.jsm import (
    JsmAssetDirectoryRepository,
    LiveEmployeeResolver,
    employee_query,
)
from asset_sync.repositories import TransportError

BASE_URL = "https://assets.test/jsm/assets/workspace/ws-1/v1"
PREFIX = "/jsm/assets/workspace/ws-1/v1"


def wire_object(key: str, object_id: int, **attributes: Any) -> dict:
    return {
        "id": object_id,
        "objectKey": key,
        "label": key.lower(),
        "objectType": {"id": 166, "name": "Employee"},
        "attributes": [
            {
                "objectTypeAttributeId": attr_id.lstrip("a"),
                "objectAttributeValues": [{"value": value}],
            }
            for attr_id, value in attributes.items()
        ],
    }


def make_repo(
    handler: Callable[[httpx.Request], httpx.Response],
    requests: List[httpx.Request],
    page_size: int = 100,
) -> JsmAssetDirectoryRepository:
    def recording(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client = httpx.AsyncClient(
        base_url=BASE_URL, transport=httpx.MockTransport(recording)
    )
    return JsmAssetDirectoryRepository(client, page_size=page_size)


class TestFindObjects:
    @pytest.mark.asyncio
    async def test_pages_until_last(self) -> None:
        requests: List[httpx.Request] = []
        pages = {
            "0": {
                "values": [wire_object("EMP-1", 1), wire_object("EMP-2", 2)],
                "isLast": False,
            },
            "2": {"values": [wire_object("EMP-3", 3)], "isLast": True},
        }

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json=pages[request.url.params["startAt"]]
            )

        repo = make_repo(handler, requests, page_size=2)
        objects = await repo.find_objects("objectTypeId = 166")

        assert [o.object_key for o in objects] == ["EMP-1", "EMP-2", "EMP-3"]
        assert len(requests) == 2
        first = requests[0]
        assert first.method == "POST"
        assert first.url.path == f"{PREFIX}/object/aql"
        assert first.url.params["maxResults"] == "2"
        assert first.url.params["includeAttributes"] == "true"
        assert json.loads(first.content) == {"qlQuery": "objectTypeId = 166"}

    @pytest.mark.asyncio
    async def test_total_is_used_without_is_last(self) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json={"values": [wire_object("EMP-1", 1)], "total": 1}
            )

        repo = make_repo(handler, requests)
        objects = await repo.find_objects("objectTypeId = 166")

        assert len(objects) == 1
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_converts_attributes(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            item = wire_object("EMP-9", 9, a1561="E077", a1552="jdoe")
            item["attributes"].append(
                {"objectTypeAttributeId": 1600, "objectAttributeValues": []}
            )
            return httpx.Response(200, json={"values": [item], "isLast": True})

        repo = make_repo(handler, [])
        [obj] = await repo.find_objects("objectTypeId = 166")

        assert obj.object_id == "9"
        assert obj.object_type_id == "166"
        assert obj.label == "emp-9"
        assert obj.first_value("1561") == "E077"
        assert obj.attribute("1600").values == []

    @pytest.mark.asyncio
    async def test_rejected_search_raises_with_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, text="bad AQL")

        repo = make_repo(handler, [])
        with pytest.raises(TransportError) as exc_info:
            await repo.find_objects("nonsense")

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_response(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"values": [{"id": 1}]})

        repo = make_repo(handler, [])
        with pytest.raises(TransportError) as exc_info:
            await repo.find_objects("objectTypeId = 166")

        assert exc_info.value.status_code is None


class TestObjectAccess:
    @pytest.mark.asyncio
    async def test_get_attributes(self) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json=[
                    {
                        "objectTypeAttributeId": "1567",
                        "objectAttributeValues": [
                            {"value": "EMP-9", "displayValue": "jdoe"}
                        ],
                    }
                ],
            )

        repo = make_repo(handler, requests)
        [attribute] = await repo.get_attributes("EM-1953")

        assert requests[0].method == "GET"
        assert requests[0].url.path == f"{PREFIX}/object/EM-1953/attributes"
        assert attribute.attribute_id == "1567"
        assert attribute.values[0].value == "EMP-9"
        assert attribute.values[0].display_value == "jdoe"

    @pytest.mark.asyncio
    async def test_get_attributes_of_missing_object(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"errorMessages": ["nope"]})

        repo = make_repo(handler, [])
        with pytest.raises(TransportError) as exc_info:
            await repo.get_attributes("EM-1")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_set_attribute_sends_single_value(self) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=wire_object("EM-1953", 1953))

        repo = make_repo(handler, requests)
        result = await repo.set_attribute("EM-1953", "167", "1567", "EMP-9")

        assert result.ok
        assert result.status_code == 200
        request = requests[0]
        assert request.method == "PUT"
        assert request.url.path == f"{PREFIX}/object/EM-1953"
        assert json.loads(request.content) == {
            "attributes": [
                {
                    "objectTypeAttributeId": "1567",
                    "objectAttributeValues": [{"value": "EMP-9"}],
                }
            ],
            "objectTypeId": "167",
            "avatarUUID": "",
            "hasAvatar": False,
        }

    @pytest.mark.asyncio
    async def test_rejected_write_is_reported_not_raised(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, text="Forbidden")

        repo = make_repo(handler, [])
        result = await repo.set_attribute("EM-1953", "167", "1567", "EMP-9")

        assert not result.ok
        assert result.status_code == 403
        assert result.body == "Forbidden"

    @pytest.mark.asyncio
    async def test_unreadable_success_body_is_still_ok(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>ok</html>")

        repo = make_repo(handler, [])
        result = await repo.set_attribute("EM-1953", "167", "1567", "EMP-9")

        assert result.ok
        assert result.object is None

    @pytest.mark.asyncio
    async def test_timeout_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        repo = make_repo(handler, [])
        with pytest.raises(TransportError, match="timed out"):
            await repo.set_attribute("EM-1953", "167", "1567", "EMP-9")

    @pytest.mark.asyncio
    async def test_create_object_returns_new_key(self) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, json=wire_object("EMP-51", 51))

        repo = make_repo(handler, requests)
        result = await repo.create_object(
            "166", {"1552": "alice", "1561": "E100"}
        )

        assert result.ok
        assert result.object.object_key == "EMP-51"
        assert requests[0].url.path == f"{PREFIX}/object/create"
        body = json.loads(requests[0].content)
        assert body["objectTypeId"] == "166"
        assert [a["objectTypeAttributeId"] for a in body["attributes"]] == [
            "1552",
            "1561",
        ]

    @pytest.mark.asyncio
    async def test_delete_object(self) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204)

        repo = make_repo(handler, requests)
        result = await repo.delete_object("EMP-9")

        assert result.ok
        assert result.status_code == 204
        assert requests[0].method == "DELETE"
        assert requests[0].url.path == f"{PREFIX}/object/EMP-9"


class TestSchemaAccess:
    @pytest.mark.asyncio
    async def test_list_object_types(self) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json=[
                    {"id": 166, "name": "Employee"},
                    {"id": "167", "name": "Laptop"},
                ],
            )

        repo = make_repo(handler, requests)
        types = await repo.list_object_types("14")

        assert requests[0].url.path == f"{PREFIX}/objectschema/14/objecttypes"
        assert [(t.object_type_id, t.name) for t in types] == [
            ("166", "Employee"),
            ("167", "Laptop"),
        ]

    @pytest.mark.asyncio
    async def test_list_type_attributes(self) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"id": 1567, "name": "Owner"}])

        repo = make_repo(handler, requests)
        [definition] = await repo.list_type_attributes("167")

        assert requests[0].url.path == f"{PREFIX}/objecttype/167/attributes"
        assert definition.attribute_id == "1567"
        assert definition.name == "Owner"


class TestLiveEmployeeResolver:
    def test_employee_query(self) -> None:
        assert employee_query(AttributeMapping(), "E077") == (
            'objectTypeId = 166 AND "Employee ID" = "E077"'
        )

    def test_employee_query_escapes_quotes(self) -> None:
        assert employee_query(AttributeMapping(), 'E"1').endswith(
            '"E\\"1"'
        )

    @pytest.mark.asyncio
    async def test_keeps_exact_matches_only(self) -> None:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "values": [
                        wire_object("EMP-9", 9, a1561="E077"),
                        wire_object("EMP-10", 10, a1561="e077"),
                    ],
                    "isLast": True,
                },
            )

        resolver = LiveEmployeeResolver(
            make_repo(handler, requests), AttributeMapping()
        )
        matches = await resolver.find_employees("E077")

        assert [m.object_key for m in matches] == ["EMP-9"]
        assert json.loads(requests[0].content)["qlQuery"] == (
            'objectTypeId = 166 AND "Employee ID" = "E077"'
        )
