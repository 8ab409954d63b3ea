"""Tests for the HTTP batch source client."""

from __future__ import annotations

import json

import httpx
import pytest

from gqlexec import Executor, ObjectType, SchemaBuilder, ServiceError
from gqlexec.runtime.service_client import ServiceClient, batch_fn

from helpers import doc, field, query

PEOPLE = {
    1: {"id": 1, "first_name": "Ada", "last_name": "Lovelace"},
    2: {"id": 2, "first_name": "Alan", "last_name": "Turing"},
}


def people_transport(requests):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append((str(request.url), body))
        ids = body["filters"][0]["value"]
        items = [PEOPLE[i] for i in ids if i in PEOPLE]
        return httpx.Response(200, json={"items": items, "total": len(items)})
    return httpx.MockTransport(handler)


class TestServiceClient:
    @pytest.mark.asyncio
    async def test_fetch_by_keys_orders_results(self):
        requests = []
        async with ServiceClient(transport=people_transport(requests)) as client:
            items = await client.fetch_by_keys(
                "http://person:8002/", [2, 404, 1], fields=["first_name"], entity="person"
            )

        assert items == [PEOPLE[2], None, PEOPLE[1]]
        url, body = requests[0]
        assert url == "http://person:8002/internal/query"
        assert body == {
            "entity": "person",
            "filters": [{"field": "id", "op": "in", "value": [2, 404, 1]}],
            "fields": ["id", "first_name"],
            "offset": 0,
        }

    @pytest.mark.asyncio
    async def test_no_keys_no_request(self):
        requests = []
        client = ServiceClient(transport=people_transport(requests))
        assert await client.fetch_by_keys("http://person:8002", []) == []
        assert requests == []

    @pytest.mark.asyncio
    async def test_error_status_raises_service_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503, text="maintenance"))
        async with ServiceClient(transport=transport) as client:
            with pytest.raises(ServiceError) as exc_info:
                await client.fetch_by_keys("http://person:8002", [1])

        assert exc_info.value.status_code == 503
        assert str(exc_info.value) == "Service 'http://person:8002' returned 503: maintenance"

    @pytest.mark.asyncio
    async def test_connection_error_raises_service_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with ServiceClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ServiceError) as exc_info:
                await client.fetch_by_keys("http://person:8002", [1])

        assert exc_info.value.status_code == 0

    @pytest.mark.asyncio
    async def test_malformed_response_raises_service_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"rows": []}))
        async with ServiceClient(transport=transport) as client:
            with pytest.raises(ServiceError, match="malformed response"):
                await client.fetch_by_keys("http://person:8002", [1])


class TestBatchSource:
    @pytest.mark.asyncio
    async def test_loader_batches_into_one_request(self):
        builder = SchemaBuilder()
        builder.add_types(
            ObjectType("Person", fields={"id": "ID!", "first_name": "String"}),
            ObjectType("Query", fields={"people": "[Person]!"}),
        )
        builder.set_resolver(
            "Query", "people", lambda root, info: [info.loader("people").load(i) for i in (1, 2, 3)]
        )

        requests = []
        client = ServiceClient(transport=people_transport(requests))
        executor = Executor(builder.build(), loaders={"people": client.batch_fn("http://person:8002")})

        result = await executor.execute(doc(query(field("people", field("first_name")))))
        await client.close()

        assert result.formatted == {
            "data": {"people": [{"first_name": "Ada"}, {"first_name": "Alan"}, None]}
        }
        assert len(requests) == 1
        assert requests[0][1]["filters"][0]["value"] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_module_batch_fn_uses_callers_client(self):
        requests = []
        async with ServiceClient(transport=people_transport(requests)) as client:
            load = batch_fn("http://person:8002", fields=["first_name"], client=client)
            assert await load([2]) == [PEOPLE[2]]
        assert client._http is None

        with pytest.raises(TypeError):
            batch_fn("http://person:8002")
