from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.api.utils import now_utc
from app.core.security import require_admin
from app.domain.catalog.schemas import ProductPayload
from app.domain.catalog.service import CatalogService, product_to_dict
from app.persistence.db import get_session

router = APIRouter(prefix="/admin", tags=["catalog"])


@router.get("/health")
def admin_health():
    return {"ok": True, "service": "admin", "timestamp": now_utc().isoformat().replace("+00:00", "Z")}


@router.get("/products")
def list_products(session: Session = Depends(get_session)):
    return [product_to_dict(p) for p in CatalogService(session).list_products()]


@router.get("/products/{product_id}")
def get_product(product_id: int, session: Session = Depends(get_session)):
    return product_to_dict(CatalogService(session).get_product(product_id))


@router.post("/products", status_code=201, dependencies=[Depends(require_admin)])
def create_product(payload: ProductPayload, session: Session = Depends(get_session)):
    return product_to_dict(CatalogService(session).create_product(payload))


@router.put("/products/{product_id}", dependencies=[Depends(require_admin)])
def update_product(product_id: int, payload: ProductPayload, session: Session = Depends(get_session)):
    return product_to_dict(CatalogService(session).update_product(product_id, payload))


@router.delete("/products/{product_id}", dependencies=[Depends(require_admin)])
def delete_product(product_id: int, session: Session = Depends(get_session)):
    CatalogService(session).delete_product(product_id)
    return {"ok": True}


@router.get("/products/{product_id}/image")
def get_product_image(product_id: int, session: Session = Depends(get_session)):
    data, content_type = CatalogService(session).get_image(product_id)
    return Response(content=data, media_type=content_type)
