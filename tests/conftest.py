from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker

import app.persistence.db as db
from app.core.config import get_settings
from app.payments.signing import sign_payment, sign_webhook
from app.persistence.models import Base, OrderModel, ProductModel


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_engine(test_db_path: Path):
    settings = get_settings()
    settings.gateway_mode = "mock"
    settings.auth_enabled = True

    engine = create_engine(
        f"sqlite+pysqlite:///{test_db_path}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    db.engine = engine
    db.SessionLocal = TestSessionLocal

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables(configure_test_engine):
    with db.session_scope() as s:
        s.execute(delete(OrderModel))
        s.execute(delete(ProductModel))
    yield


@pytest.fixture()
def client(configure_test_engine):
    from app.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def session(configure_test_engine):
    with db.session_scope() as s:
        yield s


@pytest.fixture()
def admin_headers():
    return {"X-API-Key": get_settings().admin_api_key}


@pytest.fixture()
def make_product():
    def _make(
        name: str = "Kundan Earrings",
        price: str = "100",
        discount_price: str = "0",
        stock: int = 10,
        image_url: str = "https://cdn.example.com/earrings.jpg",
    ) -> int:
        with db.session_scope() as s:
            product = ProductModel(
                name=name,
                price=Decimal(price),
                discount_price=Decimal(discount_price),
                image_url=image_url,
                description=f"{name} description",
                stock=stock,
            )
            s.add(product)
            s.flush()
            return product.id

    return _make


@pytest.fixture()
def customer():
    return {"name": "Asha Rao", "email": "asha@example.com", "phone": "9876543210"}


@pytest.fixture()
def sign_confirmation():
    def _sign(gateway_order_id: str, payment_id: str) -> str:
        return sign_payment(gateway_order_id, payment_id, get_settings().gateway_key_secret)

    return _sign


@pytest.fixture()
def post_webhook(client):
    def _post(event: dict | bytes, signature: str | None = None, secret: str | None = None):
        body = event if isinstance(event, bytes) else json.dumps(event).encode("utf-8")
        if signature is None:
            signature = sign_webhook(body, secret or get_settings().gateway_webhook_secret)
        return client.post(
            "/api/payments/webhook",
            content=body,
            headers={"Content-Type": "application/json", "X-Razorpay-Signature": signature},
        )

    return _post


@pytest.fixture()
def place_order(client, customer):
    def _place(items: list[dict]) -> dict:
        resp = client.post(
            "/api/payments/create-order",
            json={"items": items, "customerDetails": customer},
        )
        assert resp.status_code == 200, resp.text
        return resp.json()["order"]

    return _place
