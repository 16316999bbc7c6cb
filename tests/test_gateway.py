import json

import httpx
import pytest

from storesync.config.settings import GatewayConfig
from storesync.data.types import Item
from storesync.remote.errors import PermanentFetchFailure, TransientFetchFailure
from storesync.remote.gateway import StoreGateway
from storesync.remote.transport import HttpxTransport

BASE = "https://store.test/api/products/"

PRODUCTS = [
    {"id": 1, "name": "Lamp", "price": 12.5, "modifiedDate": "2024-03-01T10:00:00"},
    {"id": 2, "name": "Desk", "price": 230, "modifiedDate": "2024-02-01T10:00:00"},
]


def gateway_for(handler, **cfg) -> StoreGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StoreGateway(HttpxTransport(client=client), GatewayConfig(base_url=BASE, **cfg))


@pytest.mark.asyncio
async def test_fetch_page_query_and_items():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=PRODUCTS)

    gw = gateway_for(handler)
    items = await gw.fetch_page(10, 20)

    params = seen[0].url.params
    assert seen[0].method == "GET"
    assert params["$skip"] == "10"
    assert params["$top"] == "20"
    assert params["$orderby"] == "ModifiedDate desc"
    assert [it.id for it in items] == [1, 2]
    assert items[1].price == 230.0
    assert items[0].name == "Lamp"
    assert gw.last_meta.kind == "page"
    assert gw.last_meta.records == 2
    assert gw.last_meta.status == 200


@pytest.mark.asyncio
async def test_short_page_is_not_an_error():
    gw = gateway_for(lambda request: httpx.Response(200, json=[]))
    assert await gw.fetch_page(1000, 10) == []


@pytest.mark.parametrize("status", [500, 503, 429, 408])
@pytest.mark.asyncio
async def test_server_errors_are_transient(status):
    gw = gateway_for(lambda request: httpx.Response(status, text="nope"))
    with pytest.raises(TransientFetchFailure) as ei:
        await gw.fetch_page(0, 10)
    assert ei.value.status_code == status
    assert gw.last_meta.error


@pytest.mark.parametrize("status", [400, 404])
@pytest.mark.asyncio
async def test_client_errors_are_permanent(status):
    gw = gateway_for(lambda request: httpx.Response(status))
    with pytest.raises(PermanentFetchFailure) as ei:
        await gw.fetch_page(0, 10)
    assert ei.value.status_code == status


@pytest.mark.parametrize("body", ["<html>oops</html>", json.dumps({"items": []}), json.dumps([{"name": "no id"}])])
@pytest.mark.asyncio
async def test_malformed_page_body_is_permanent(body):
    gw = gateway_for(lambda request: httpx.Response(200, text=body))
    with pytest.raises(PermanentFetchFailure):
        await gw.fetch_page(0, 10)


@pytest.mark.asyncio
async def test_network_error_is_transient():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    gw = gateway_for(handler)
    with pytest.raises(TransientFetchFailure) as ei:
        await gw.fetch_page(0, 10)
    assert ei.value.status_code is None


@pytest.mark.asyncio
async def test_fetch_total_count():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, text="37")

    gw = gateway_for(handler)
    assert await gw.fetch_total_count() == 37
    assert seen == [BASE + "count"]
    assert gw.last_meta.kind == "count"


@pytest.mark.asyncio
async def test_fetch_total_count_rejects_non_integer():
    gw = gateway_for(lambda request: httpx.Response(200, json={"count": 3}))
    with pytest.raises(PermanentFetchFailure):
        await gw.fetch_total_count()


@pytest.mark.asyncio
async def test_insert_posts_item_and_returns_stored():
    posted = []

    def handler(request):
        body = json.loads(request.content)
        posted.append((request.method, body))
        return httpx.Response(201, json={**body, "id": 99})

    gw = gateway_for(handler)
    stored = await gw.insert(Item(id=0, price=5.0, extra={"name": "Mug"}))
    assert posted == [("POST", {"id": 0, "price": 5.0, "name": "Mug"})]
    assert stored.id == 99
    assert stored.name == "Mug"


@pytest.mark.asyncio
async def test_delete_hits_item_url_and_normalizes_failure():
    seen = []

    def handler(request):
        seen.append((request.method, str(request.url)))
        return httpx.Response(404)

    gw = gateway_for(handler)
    with pytest.raises(PermanentFetchFailure) as ei:
        await gw.delete(7)
    assert seen == [("DELETE", BASE + "7")]
    assert ei.value.describe().endswith("(status 404)")
