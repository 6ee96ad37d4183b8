from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Header, Query, Request
from sqlalchemy.orm import Session

from app.api.utils import now_utc
from app.core.security import require_admin
from app.domain.orders.schemas import CreateOrderRequest, VerifyPaymentRequest
from app.domain.orders.service import OrderWorkflow
from app.payments.gateway import GatewayClient
from app.persistence.db import get_session

router = APIRouter(tags=["payments"])

OrderStatus = Literal["pending", "paid", "failed", "cancelled", "refunded"]

ROUTES = [
    "POST /api/payments/create-order",
    "POST /api/payments/verify-payment",
    "GET  /api/payments/order/{order_id}",
    "GET  /api/payments/orders",
    "POST /api/payments/webhook",
    "GET  /api/payments/key",
]


def get_gateway(request: Request) -> GatewayClient:
    return request.app.state.gateway


async def read_raw_body(request: Request) -> bytes:
    return await request.body()


def get_workflow(
    gateway: GatewayClient = Depends(get_gateway),
    session: Session = Depends(get_session),
) -> OrderWorkflow:
    return OrderWorkflow(session, gateway=gateway)


@router.post("/create-order")
def create_order(request: CreateOrderRequest, workflow: OrderWorkflow = Depends(get_workflow)):
    return {"success": True, **workflow.create_order(request)}


@router.post("/verify-payment")
def verify_payment(request: VerifyPaymentRequest, workflow: OrderWorkflow = Depends(get_workflow)):
    return {
        "success": True,
        "message": "Payment verified successfully",
        "order": workflow.confirm_payment(request),
    }


@router.post("/webhook")
def gateway_webhook(
    raw_body: bytes = Depends(read_raw_body),
    x_razorpay_signature: str | None = Header(default=None),
    workflow: OrderWorkflow = Depends(get_workflow),
):
    return workflow.handle_webhook(raw_body, x_razorpay_signature)


@router.get("/order/{order_id}")
def get_order(order_id: str, workflow: OrderWorkflow = Depends(get_workflow)):
    return {"success": True, "order": workflow.get_order(order_id)}


@router.get("/orders", dependencies=[Depends(require_admin)])
def list_orders(
    status: OrderStatus | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10),
    workflow: OrderWorkflow = Depends(get_workflow),
):
    return {"success": True, **workflow.list_orders(status=status, page=page, limit=limit)}


@router.get("/key")
def get_publishable_key(gateway: GatewayClient = Depends(get_gateway)):
    return {"success": True, "key": gateway.key_id}


@router.get("/health")
def payments_health(gateway: GatewayClient = Depends(get_gateway)):
    return {
        "message": "Payment routes are working",
        "gateway": gateway.backend,
        "timestamp": now_utc().isoformat().replace("+00:00", "Z"),
        "routes": ROUTES,
    }
