from __future__ import annotations

import base64
import binascii
import logging
from typing import Iterable

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.domain.catalog.schemas import ProductPayload
from app.persistence.models import ProductModel

logger = logging.getLogger(__name__)


def product_to_dict(product: ProductModel) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "price": product.price,
        "discount_price": product.discount_price,
        "image_url": product.image_url,
        "has_image": product.image_data is not None,
        "description": product.description,
        "stock": product.stock,
        "created_at": product.created_at.isoformat(),
        "updated_at": product.updated_at.isoformat(),
    }


def _validate(payload: ProductPayload) -> tuple[bytes | None, str | None]:
    if not payload.name or not payload.name.strip():
        raise ValidationError("Name is required")
    if payload.price is None or payload.price <= 0:
        raise ValidationError("Price must be > 0")
    if payload.discount_price is None or payload.discount_price < 0:
        raise ValidationError("Discount price is required (0 or more)")
    if payload.discount_price >= payload.price:
        raise ValidationError("Discount price must be less than price")
    if not payload.description or not payload.description.strip():
        raise ValidationError("Description is required")
    if payload.stock is None or payload.stock < 0:
        raise ValidationError("Stock must be 0 or more")

    has_upload = bool(payload.image_base64 and payload.image_content_type)
    has_url = bool(payload.image_url and payload.image_url.strip())
    if not has_upload and not has_url:
        raise ValidationError("Image is required via upload or imageUrl")

    if not has_upload:
        return None, None
    try:
        data = base64.b64decode(payload.image_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Image upload is not valid base64") from exc
    return data, payload.image_content_type


class CatalogService:
    def __init__(self, session: Session):
        self.session = session

    def list_products(self) -> list[ProductModel]:
        stmt = select(ProductModel).order_by(desc(ProductModel.created_at), desc(ProductModel.id))
        return list(self.session.scalars(stmt).all())

    def find_product(self, product_id: int) -> ProductModel | None:
        return self.session.get(ProductModel, product_id)

    def get_product(self, product_id: int) -> ProductModel:
        product = self.find_product(product_id)
        if product is None:
            raise NotFoundError("Not found")
        return product

    def products_by_id(self, product_ids: Iterable[int]) -> dict[int, ProductModel]:
        ids = sorted({int(x) for x in product_ids})
        if not ids:
            return {}
        rows = self.session.scalars(select(ProductModel).where(ProductModel.id.in_(ids))).all()
        return {row.id: row for row in rows}

    def create_product(self, payload: ProductPayload) -> ProductModel:
        image_data, content_type = _validate(payload)
        product = ProductModel(
            name=payload.name.strip(),
            price=payload.price,
            discount_price=payload.discount_price,
            image_url=(payload.image_url or "").strip(),
            image_data=image_data,
            image_content_type=content_type,
            description=payload.description.strip(),
            stock=payload.stock,
        )
        self.session.add(product)
        self.session.flush()
        logger.info("product created: id=%s name=%s", product.id, product.name)
        return product

    def update_product(self, product_id: int, payload: ProductPayload) -> ProductModel:
        image_data, content_type = _validate(payload)
        product = self.get_product(product_id)
        product.name = payload.name.strip()
        product.price = payload.price
        product.discount_price = payload.discount_price
        product.image_url = (payload.image_url or "").strip()
        product.description = payload.description.strip()
        product.stock = payload.stock
        # An update without a new upload keeps the stored image.
        if image_data is not None:
            product.image_data = image_data
            product.image_content_type = content_type
        self.session.flush()
        return product

    def delete_product(self, product_id: int) -> None:
        product = self.get_product(product_id)
        self.session.delete(product)
        self.session.flush()
        logger.info("product deleted: id=%s", product_id)

    def get_image(self, product_id: int) -> tuple[bytes, str]:
        product = self.find_product(product_id)
        if product is None or product.image_data is None:
            raise NotFoundError("Image not found")
        return product.image_data, product.image_content_type or "application/octet-stream"
