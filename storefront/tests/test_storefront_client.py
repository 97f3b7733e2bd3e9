from __future__ import annotations

from decimal import Decimal

import httpx
import pytest

from storefront.app.integrations.storefront_api.client import (
    NETWORK_MESSAGE,
    StorefrontApiClient,
    StorefrontApiError,
)
from storefront.app.models.cart import Accepted, OrderRequest, Rejected, RejectionKind
from storefront.routes.mock_api import DEMO_TOKEN, create_mock_api


def stub_client(token=DEMO_TOKEN, app=None) -> StorefrontApiClient:
    return StorefrontApiClient(
        "http://mock",
        token_provider=lambda: token,
        transport=httpx.ASGITransport(app=app or create_mock_api()),
    )


def order(*lines, user_id="u-demo") -> OrderRequest:
    return OrderRequest.model_validate({
        "CART_USER_ID": user_id,
        "CART_PRODUCT": [{"PRODUCT_ID": p, "PRODUCT_QUANTITY": q} for p, q in lines],
    })


@pytest.mark.asyncio
async def test_create_order_then_conflict_on_second_active_order():
    client = stub_client()
    try:
        first = await client.create_order(order(("p-bread", 2)))
        second = await client.create_order(order(("p-milk", 1)))
    finally:
        await client.aclose()

    assert isinstance(first, Accepted) and first.order_id
    assert isinstance(second, Rejected)
    assert second.kind is RejectionKind.CONFLICT
    assert second.title == "Pending order"
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_create_order_without_token_is_a_failure_with_server_text():
    client = stub_client(token=None)
    try:
        result = await client.create_order(order(("p-bread", 1)))
    finally:
        await client.aclose()

    assert isinstance(result, Rejected)
    assert result.kind is RejectionKind.FAILURE
    assert result.status_code == 401
    assert result.title == "Unauthorized"


@pytest.mark.asyncio
async def test_bearer_header_only_sent_with_token():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("authorization"))
        return httpx.Response(200, json=[])

    for token in (None, "", "abc"):
        client = StorefrontApiClient("http://api.test", token_provider=lambda t=token: t,
                                     transport=httpx.MockTransport(handler))
        await client.list_products()
        await client.aclose()

    assert seen == [None, None, "Bearer abc"]


@pytest.mark.asyncio
async def test_create_order_is_sent_once_on_transport_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("refused", request=request)

    client = StorefrontApiClient("http://api.test", transport=httpx.MockTransport(handler))
    result = await client.create_order(order(("p1", 1), user_id=None))
    await client.aclose()

    assert len(calls) == 1
    assert result.message == NETWORK_MESSAGE


@pytest.mark.asyncio
async def test_reads_retry_transport_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            raise httpx.ConnectError("flaky", request=request)
        return httpx.Response(200, json=[{"_id": "p1", "PRODUCT_NAME": "A", "PRODUCT_PRICE": "1.50"}])

    client = StorefrontApiClient("http://api.test", transport=httpx.MockTransport(handler))
    products = await client.list_products()
    await client.aclose()

    assert len(calls) == 3
    assert products[0].unit_price == Decimal("1.50")


@pytest.mark.asyncio
async def test_reads_give_up_after_configured_attempts():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("down", request=request)

    client = StorefrontApiClient("http://api.test", transport=httpx.MockTransport(handler))
    with pytest.raises(StorefrontApiError):
        await client.list_categories()
    await client.aclose()

    assert len(calls) == 3


@pytest.mark.asyncio
async def test_orders_for_user_without_orders_is_empty():
    client = stub_client()
    try:
        assert await client.list_orders_for_user("u-demo") == []
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_unknown_order_raises_not_found():
    client = stub_client()
    try:
        with pytest.raises(StorefrontApiError) as err:
            await client.get_order("missing")
    finally:
        await client.aclose()
    assert err.value.status_code == 404
    assert err.value.title == "Not found"


@pytest.mark.asyncio
async def test_catalog_and_user_reads():
    client = stub_client()
    try:
        me = await client.get_me()
        products = await client.list_products()
        categories = await client.list_categories()
    finally:
        await client.aclose()

    assert me.user_id == "u-demo"
    assert {p.product_id for p in products} >= {"p-bread", "p-milk"}
    assert {c.name for c in categories} >= {"Bakery", "Dairy"}


@pytest.mark.asyncio
async def test_unexpected_list_shape_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"products": []})

    client = StorefrontApiClient("http://api.test", transport=httpx.MockTransport(handler))
    with pytest.raises(StorefrontApiError):
        await client.list_products()
    await client.aclose()
