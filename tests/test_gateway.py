from __future__ import annotations

import json

import httpx
import pytest

from app.core.config import Settings
from app.core.errors import GatewayError
from app.payments.gateway import (
    MisconfiguredGatewayClient,
    MockGatewayClient,
    RazorpayGatewayClient,
    build_gateway_client,
)


def _razorpay(handler) -> RazorpayGatewayClient:
    return RazorpayGatewayClient(
        key_id="rzp_test_abc",
        key_secret="secret_abc",
        base_url="https://api.razorpay.test/",
        transport=httpx.MockTransport(handler),
    )


def test_build_mock_client_by_default():
    client = build_gateway_client(Settings())
    assert isinstance(client, MockGatewayClient)
    assert client.key_id == "rzp_test_key"


def test_build_razorpay_client():
    client = build_gateway_client(Settings(gateway_mode="razorpay", gateway_key_id="rzp_live_1", gateway_key_secret="s"))
    assert isinstance(client, RazorpayGatewayClient)
    assert client.signing_secret() == "s"


def test_missing_credentials_fail_loudly_instead_of_falling_back():
    client = build_gateway_client(Settings(gateway_mode="razorpay", gateway_key_id="", gateway_key_secret=None))
    assert isinstance(client, MisconfiguredGatewayClient)

    with pytest.raises(GatewayError, match="SHOP_GATEWAY_KEY_ID"):
        client.create_order(amount=100, currency="INR", receipt="GLITZ_1")
    with pytest.raises(GatewayError):
        client.signing_secret()


def test_unknown_mode_is_misconfigured():
    client = build_gateway_client(Settings(gateway_mode="paypal"))
    assert isinstance(client, MisconfiguredGatewayClient)


def test_razorpay_create_order_posts_minor_units_with_basic_auth():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"id": "order_N1", "entity": "order", "amount": 24000, "currency": "INR", "receipt": "GLITZ_1", "status": "created"},
        )

    order = _razorpay(handler).create_order(amount=24000, currency="INR", receipt="GLITZ_1", notes={"orderId": "GLITZ_1"})

    assert order.id == "order_N1"
    assert order.amount == 24000
    assert seen["url"] == "https://api.razorpay.test/v1/orders"
    assert seen["auth"].startswith("Basic ")
    assert seen["body"] == {"amount": 24000, "currency": "INR", "receipt": "GLITZ_1", "notes": {"orderId": "GLITZ_1"}}


def test_razorpay_rejection_becomes_gateway_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"code": "BAD_REQUEST_ERROR", "description": "Authentication failed"}})

    with pytest.raises(GatewayError, match="Authentication failed"):
        _razorpay(handler).create_order(amount=100, currency="INR", receipt="GLITZ_1")


def test_razorpay_unreachable_becomes_gateway_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayError, match="unreachable"):
        _razorpay(handler).create_order(amount=100, currency="INR", receipt="GLITZ_1")


def test_razorpay_response_without_id_is_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"amount": 100})

    with pytest.raises(GatewayError, match="missing the order id"):
        _razorpay(handler).create_order(amount=100, currency="INR", receipt="GLITZ_1")


def test_mock_client_ids_are_distinct():
    client = MockGatewayClient(key_id="k", key_secret="s")
    first = client.create_order(amount=100, currency="INR", receipt="a")
    second = client.create_order(amount=100, currency="INR", receipt="b")

    assert first.id.startswith("order_mock_")
    assert first.id != second.id
    assert [o.receipt for o in client.created] == ["a", "b"]
