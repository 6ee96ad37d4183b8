from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

from app.core.config import Settings, get_settings
from app.core.errors import GatewayError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutOrder:
    id: str
    amount: int
    currency: str
    receipt: str
    status: str = "created"
    raw: dict[str, Any] = field(default_factory=dict)


class GatewayClient(Protocol):
    backend: str
    key_id: str

    def signing_secret(self) -> str:
        ...

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> CheckoutOrder:
        ...


class RazorpayGatewayClient:
    backend = "razorpay"

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str,
        timeout_seconds: int = 15,
        transport: httpx.BaseTransport | None = None,
    ):
        self.key_id = key_id
        self._key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = max(1, timeout_seconds)
        self.transport = transport

    def signing_secret(self) -> str:
        return self._key_secret

    def _request(self, method: str, path: str, *, json_body: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(
                timeout=self.timeout,
                auth=(self.key_id, self._key_secret),
                transport=self.transport,
            ) as client:
                response = client.request(method, url, json=json_body)
        except httpx.HTTPError as exc:
            raise GatewayError(f"payment gateway unreachable: {exc}") from exc

        if response.status_code >= 400:
            detail = _error_description(response)
            raise GatewayError(f"payment gateway rejected request ({response.status_code}): {detail}")

        payload = response.json()
        if not isinstance(payload, dict):
            raise GatewayError("payment gateway returned a non-object response")
        return payload

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> CheckoutOrder:
        payload = self._request(
            "POST",
            "/v1/orders",
            json_body={
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            },
        )
        if not payload.get("id"):
            raise GatewayError("payment gateway response is missing the order id")
        return CheckoutOrder(
            id=str(payload["id"]),
            amount=int(payload.get("amount", amount)),
            currency=str(payload.get("currency", currency)),
            receipt=str(payload.get("receipt", receipt)),
            status=str(payload.get("status", "created")),
            raw=payload,
        )


class MockGatewayClient:
    backend = "mock"

    def __init__(self, key_id: str, key_secret: str):
        self.key_id = key_id
        self._key_secret = key_secret
        self.created: list[CheckoutOrder] = []

    def signing_secret(self) -> str:
        return self._key_secret

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> CheckoutOrder:
        stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        order = CheckoutOrder(
            id=f"order_mock_{stamp}{secrets.token_hex(4)}",
            amount=amount,
            currency=currency,
            receipt=receipt,
            raw={"notes": dict(notes or {})},
        )
        self.created.append(order)
        return order


class MisconfiguredGatewayClient:
    backend = "misconfigured"
    key_id = ""

    def __init__(self, reason: str):
        self.reason = reason

    def signing_secret(self) -> str:
        raise GatewayError(f"payment gateway is not configured: {self.reason}")

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict[str, str] | None = None,
    ) -> CheckoutOrder:
        raise GatewayError(f"payment gateway is not configured: {self.reason}")


def _error_description(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return str(body["error"].get("description") or body["error"])
    return str(body)[:200]


def build_gateway_client(settings: Settings | None = None) -> GatewayClient:
    settings = settings or get_settings()
    missing = [
        name
        for name, value in (
            ("SHOP_GATEWAY_KEY_ID", settings.gateway_key_id),
            ("SHOP_GATEWAY_KEY_SECRET", settings.gateway_key_secret),
        )
        if not value
    ]
    if missing:
        reason = "missing " + ", ".join(missing)
        logger.error("payment gateway disabled: %s", reason)
        return MisconfiguredGatewayClient(reason)

    mode = settings.gateway_mode
    if mode == "mock":
        logger.warning("using mock payment gateway; checkout ids are not real")
        return MockGatewayClient(key_id=settings.gateway_key_id, key_secret=settings.gateway_key_secret)
    if mode == "razorpay":
        return RazorpayGatewayClient(
            key_id=settings.gateway_key_id,
            key_secret=settings.gateway_key_secret,
            base_url=settings.gateway_base_url,
            timeout_seconds=settings.gateway_timeout_seconds,
        )
    logger.error("payment gateway disabled: unknown gateway_mode=%s", mode)
    return MisconfiguredGatewayClient(f"unknown gateway_mode={mode}")
