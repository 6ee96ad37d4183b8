from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartItem(_CamelModel):
    product_id: int
    quantity: int = Field(gt=0)


class Address(_CamelModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    country: str = "India"


class CustomerDetails(_CamelModel):
    name: str
    email: str
    phone: str
    address: Address | None = None

    @field_validator("name", "email", "phone")
    @classmethod
    def _required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class CreateOrderRequest(_CamelModel):
    items: list[CartItem] = Field(min_length=1)
    customer_details: CustomerDetails
    notes: str = ""


class VerifyPaymentRequest(BaseModel):
    gateway_order_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("gateway_order_id", "gatewayOrderId", "razorpay_order_id"),
    )
    gateway_payment_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("gateway_payment_id", "gatewayPaymentId", "razorpay_payment_id"),
    )
    signature: str = Field(
        min_length=1,
        validation_alias=AliasChoices("signature", "razorpay_signature"),
    )
    order_id: str = Field(min_length=1, validation_alias=AliasChoices("order_id", "orderId"))
