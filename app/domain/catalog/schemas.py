from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ProductPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str | None = None
    price: Decimal | None = None
    discount_price: Decimal | None = None
    image_url: str | None = None
    image_base64: str | None = None
    image_content_type: str | None = None
    description: str | None = None
    stock: int | None = None
