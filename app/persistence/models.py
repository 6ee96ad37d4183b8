from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    DateTime,
    Index,
    Integer,
    LargeBinary,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON

ORDER_STATUSES = ("pending", "paid", "failed", "cancelled", "refunded")


def _json_type():
    return JSON().with_variant(JSONB(astext_type=Text()), "postgresql")


def _money_type():
    return Numeric(12, 2, asdecimal=True)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class ProductModel(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    price: Mapped[Decimal] = mapped_column(_money_type(), nullable=False)
    discount_price: Mapped[Decimal] = mapped_column(_money_type(), nullable=False, default=Decimal("0"))
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    image_data: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True)
    image_content_type: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class OrderModel(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    gateway_order_id: Mapped[str] = mapped_column(String(128), nullable=False)
    gateway_payment_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    gateway_signature: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False, default="razorpay")
    customer: Mapped[dict] = mapped_column(_json_type(), nullable=False)
    items: Mapped[list] = mapped_column(_json_type(), nullable=False, default=list)
    subtotal: Mapped[Decimal] = mapped_column(_money_type(), nullable=False)
    shipping: Mapped[Decimal] = mapped_column(_money_type(), nullable=False, default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column(_money_type(), nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False, default="INR")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


Index("ix_orders_gateway_order_id", OrderModel.gateway_order_id)
Index("ix_orders_status", OrderModel.status)
Index("ix_orders_created_at", OrderModel.created_at)
Index("ix_products_created_at", ProductModel.created_at)
