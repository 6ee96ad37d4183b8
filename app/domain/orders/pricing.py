from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

CENTS = Decimal("0.01")
MINOR_UNITS_PER_MAJOR = 100


def money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def effective_unit_price(price: Decimal, discount_price: Decimal | None) -> Decimal:
    if discount_price is not None and 0 < discount_price < price:
        return money(discount_price)
    return money(price)


def to_minor_units(amount: Decimal) -> int:
    return int((money(amount) * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    name: str
    price: Decimal
    discount_price: Decimal
    quantity: int
    image_url: str = ""

    @property
    def unit_price(self) -> Decimal:
        return effective_unit_price(self.price, self.discount_price)

    @property
    def line_total(self) -> Decimal:
        return money(self.unit_price * self.quantity)

    def snapshot(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": format(money(self.price), "f"),
            "discount_price": format(money(self.discount_price), "f"),
            "quantity": self.quantity,
            "image_url": self.image_url,
        }


@dataclass(frozen=True)
class PricingSummary:
    subtotal: Decimal
    shipping: Decimal
    total: Decimal
    currency: str

    @property
    def amount_minor(self) -> int:
        return to_minor_units(self.total)


def price_lines(lines: Iterable[PricedLine], shipping: Decimal, currency: str) -> PricingSummary:
    subtotal = money(sum((line.line_total for line in lines), Decimal("0")))
    shipping = money(shipping)
    return PricingSummary(subtotal=subtotal, shipping=shipping, total=subtotal + shipping, currency=currency)
