from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy import desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.errors import ConflictError, GatewayError, NotFoundError, SignatureMismatch, ValidationError
from app.domain.catalog.service import CatalogService
from app.domain.orders.ids import generate_order_id
from app.domain.orders.pricing import PricedLine, money, price_lines
from app.domain.orders.schemas import CreateOrderRequest, VerifyPaymentRequest
from app.payments.gateway import GatewayClient
from app.payments.signing import verify_payment_signature, verify_webhook_signature
from app.persistence.models import ORDER_STATUSES, OrderModel, ProductModel

logger = logging.getLogger(__name__)

WEBHOOK_ACK = {"success": True}


def _product_display(product: ProductModel | None) -> dict | None:
    if product is None:
        return None
    return {
        "id": product.id,
        "name": product.name,
        "price": product.price,
        "discount_price": product.discount_price,
        "image_url": product.image_url,
    }


def order_to_dict(order: OrderModel, products: dict[int, ProductModel] | None = None) -> dict:
    products = products or {}
    items = []
    for item in order.items or []:
        items.append(
            {
                "product_id": item["product_id"],
                "name": item["name"],
                "price": money(item["price"]),
                "discount_price": money(item.get("discount_price")),
                "quantity": item["quantity"],
                "image_url": item.get("image_url", ""),
                # Current catalog fields, for display only; the snapshot above is what was charged.
                "product": _product_display(products.get(item["product_id"])),
            }
        )
    return {
        "order_id": order.order_id,
        "gateway_order_id": order.gateway_order_id,
        "gateway_payment_id": order.gateway_payment_id,
        "payment_method": order.payment_method,
        "customer_details": order.customer,
        "items": items,
        "pricing": {
            "subtotal": order.subtotal,
            "shipping": order.shipping,
            "total": order.total,
            "currency": order.currency,
        },
        "status": order.status,
        "notes": order.notes,
        "created_at": order.created_at.isoformat(),
        "updated_at": order.updated_at.isoformat(),
    }


def _payment_entity(event: dict[str, Any]) -> dict[str, Any] | None:
    payload = event.get("payload")
    if not isinstance(payload, dict):
        return None
    payment = payload.get("payment")
    if not isinstance(payment, dict):
        return None
    entity = payment.get("entity")
    return entity if isinstance(entity, dict) else None


class OrderWorkflow:
    def __init__(self, session: Session, gateway: GatewayClient, settings: Settings | None = None):
        self.session = session
        self.gateway = gateway
        self.settings = settings or get_settings()
        self.catalog = CatalogService(session)
        self._webhook_handlers: dict[str, Callable[[dict[str, Any]], None]] = {
            "payment.captured": self._on_payment_captured,
            "payment.failed": self._on_payment_failed,
        }

    def _find(self, order_id: str) -> OrderModel | None:
        return self.session.scalar(select(OrderModel).where(OrderModel.order_id == order_id))

    def _find_by_gateway_order(self, gateway_order_id: str) -> OrderModel | None:
        stmt = (
            select(OrderModel)
            .where(OrderModel.gateway_order_id == gateway_order_id)
            .order_by(OrderModel.id.asc())
            .limit(1)
        )
        return self.session.scalar(stmt)

    def _require(self, order_id: str) -> OrderModel:
        order = self._find(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def _transition(self, order: OrderModel, status: str, **fields: Any) -> bool:
        # Only pending orders move; a concurrent confirmation/webhook that lost the race sees rowcount 0.
        stmt = (
            update(OrderModel)
            .where(OrderModel.id == order.id)
            .where(OrderModel.status == "pending")
            .values(status=status, updated_at=datetime.now(timezone.utc), **fields)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        self.session.refresh(order)
        return result.rowcount == 1

    def create_order(self, request: CreateOrderRequest) -> dict:
        products = self.catalog.products_by_id(item.product_id for item in request.items)
        lines: list[PricedLine] = []
        for item in request.items:
            product = products.get(item.product_id)
            if product is None:
                raise NotFoundError(f"Product with ID {item.product_id} not found", status_code=400)
            lines.append(
                PricedLine(
                    product_id=product.id,
                    name=product.name,
                    price=product.price,
                    discount_price=product.discount_price,
                    quantity=item.quantity,
                    image_url=product.image_url,
                )
            )

        summary = price_lines(lines, shipping=self.settings.shipping_flat, currency=self.settings.currency)
        order_id = generate_order_id(self.settings.order_id_prefix)
        if self._find(order_id) is not None:
            raise ConflictError(f"order id {order_id} already exists; retry the request")

        customer = request.customer_details
        checkout = self.gateway.create_order(
            amount=summary.amount_minor,
            currency=summary.currency,
            receipt=order_id,
            notes={
                "orderId": order_id,
                "customerName": customer.name,
                "customerEmail": customer.email,
            },
        )

        order = OrderModel(
            order_id=order_id,
            gateway_order_id=checkout.id,
            payment_method=self.settings.gateway_name,
            customer=customer.model_dump(mode="json"),
            items=[line.snapshot() for line in lines],
            subtotal=summary.subtotal,
            shipping=summary.shipping,
            total=summary.total,
            currency=summary.currency,
            status="pending",
            notes=request.notes,
        )
        self.session.add(order)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # TODO: look the checkout order up by receipt on retry instead of creating a second one.
            self.session.rollback()
            raise ConflictError(f"order id {order_id} already exists; retry the request") from exc

        logger.info(
            "order created: order_id=%s gateway_order_id=%s total=%s %s items=%d",
            order_id,
            checkout.id,
            summary.total,
            summary.currency,
            len(lines),
        )
        return {
            "key": self.gateway.key_id,
            "order": {
                "id": checkout.id,
                "amount": checkout.amount,
                "currency": checkout.currency,
                "order_id": order_id,
            },
        }

    @staticmethod
    def _confirmation(order: OrderModel) -> dict:
        return {"order_id": order.order_id, "status": order.status, "total": order.total}

    def _replay_terminal(self, order: OrderModel, request: VerifyPaymentRequest) -> dict:
        if order.status == "paid" and order.gateway_payment_id == request.gateway_payment_id:
            return self._confirmation(order)
        raise ConflictError(f"order {order.order_id} is already {order.status}")

    def confirm_payment(self, request: VerifyPaymentRequest) -> dict:
        order = self._require(request.order_id)
        if order.status != "pending":
            return self._replay_terminal(order, request)

        authentic = request.gateway_order_id == order.gateway_order_id and verify_payment_signature(
            request.gateway_order_id,
            request.gateway_payment_id,
            request.signature,
            self.gateway.signing_secret(),
        )

        if not authentic:
            changed = self._transition(order, "failed")
            # The failed verdict must survive the error response, so commit before raising.
            self.session.commit()
            if not changed and order.status != "failed":
                logger.warning(
                    "status divergence: order_id=%s is %s but client confirmation failed verification",
                    order.order_id,
                    order.status,
                )
            logger.warning(
                "payment signature mismatch: order_id=%s gateway_order_id=%s",
                order.order_id,
                request.gateway_order_id,
            )
            raise SignatureMismatch("Payment verification failed")

        changed = self._transition(
            order,
            "paid",
            gateway_payment_id=request.gateway_payment_id,
            gateway_signature=request.signature,
        )
        if not changed:
            return self._replay_terminal(order, request)
        logger.info("payment verified: order_id=%s payment_id=%s", order.order_id, request.gateway_payment_id)
        return self._confirmation(order)

    def handle_webhook(self, raw_body: bytes, signature: str | None) -> dict:
        secret = self.settings.gateway_webhook_secret
        if not secret:
            raise GatewayError("webhook secret is not configured")
        if not verify_webhook_signature(raw_body, signature, secret):
            logger.warning("webhook rejected: invalid signature")
            raise SignatureMismatch("Invalid signature")

        try:
            event = json.loads(raw_body)
        except ValueError:
            logger.error("webhook body with valid signature is not JSON; acknowledging")
            return WEBHOOK_ACK
        if not isinstance(event, dict):
            logger.error("webhook body is not an event object; acknowledging")
            return WEBHOOK_ACK

        event_type = event.get("event")
        if not isinstance(event_type, str):
            logger.warning("webhook event type is not a string: %r; acknowledging", event_type)
            return WEBHOOK_ACK
        handler = self._webhook_handlers.get(event_type)
        if handler is None:
            logger.info("unhandled webhook event: %s", event_type)
            return WEBHOOK_ACK

        entity = _payment_entity(event)
        if entity is None or not entity.get("order_id"):
            logger.warning("webhook %s without payment.entity.order_id; acknowledging", event_type)
            return WEBHOOK_ACK

        handler(entity)
        return WEBHOOK_ACK

    def _on_payment_captured(self, entity: dict[str, Any]) -> None:
        order = self._find_by_gateway_order(str(entity["order_id"]))
        if order is None:
            logger.info("payment.captured for untracked gateway order %s", entity["order_id"])
            return
        fields: dict[str, Any] = {}
        if entity.get("id"):
            fields["gateway_payment_id"] = str(entity["id"])
        changed = self._transition(order, "paid", **fields)
        if changed:
            logger.info("webhook marked order paid: order_id=%s", order.order_id)
        elif order.status != "paid":
            logger.warning(
                "status divergence: order_id=%s is %s but gateway reports payment.captured",
                order.order_id,
                order.status,
            )

    def _on_payment_failed(self, entity: dict[str, Any]) -> None:
        order = self._find_by_gateway_order(str(entity["order_id"]))
        if order is None:
            logger.info("payment.failed for untracked gateway order %s", entity["order_id"])
            return
        changed = self._transition(order, "failed")
        if changed:
            logger.info("webhook marked order failed: order_id=%s", order.order_id)
        elif order.status != "failed":
            logger.warning(
                "status divergence: order_id=%s is %s but gateway reports payment.failed",
                order.order_id,
                order.status,
            )

    def get_order(self, order_id: str) -> dict:
        order = self._require(order_id)
        products = self.catalog.products_by_id(item["product_id"] for item in order.items or [])
        return order_to_dict(order, products)

    def list_orders(self, status: str | None = None, page: int = 1, limit: int = 10) -> dict:
        if status is not None and status not in ORDER_STATUSES:
            raise ValidationError(f"unknown order status: {status}")
        if page < 1:
            raise ValidationError("page must be >= 1")
        if limit < 1 or limit > self.settings.max_page_size:
            raise ValidationError(f"limit must be between 1 and {self.settings.max_page_size}")

        stmt = select(OrderModel)
        count_stmt = select(func.count()).select_from(OrderModel)
        if status:
            stmt = stmt.where(OrderModel.status == status)
            count_stmt = count_stmt.where(OrderModel.status == status)

        total = int(self.session.scalar(count_stmt) or 0)
        rows = list(
            self.session.scalars(
                stmt.order_by(desc(OrderModel.created_at), desc(OrderModel.id))
                .limit(limit)
                .offset((page - 1) * limit)
            ).all()
        )
        product_ids = {item["product_id"] for row in rows for item in row.items or []}
        products = self.catalog.products_by_id(product_ids)
        return {
            "orders": [order_to_dict(row, products) for row in rows],
            "pagination": {
                "current": page,
                "limit": limit,
                "pages": math.ceil(total / limit),
                "total": total,
            },
        }
