from __future__ import annotations

import argparse
import json
from decimal import Decimal

from fastapi.encoders import jsonable_encoder

from app.core.errors import CheckoutError
from app.core.logging import configure_logging
from app.domain.catalog.schemas import ProductPayload
from app.domain.catalog.service import CatalogService, product_to_dict
from app.domain.orders.service import OrderWorkflow
from app.payments.gateway import build_gateway_client
from app.persistence.db import init_db, session_scope


def _print(value) -> None:
    print(json.dumps(jsonable_encoder(value), ensure_ascii=False, indent=2))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Storefront admin CLI")
    top = parser.add_subparsers(dest="command", required=True)

    catalog = top.add_parser("catalog", help="Product catalog operations")
    catalog_sub = catalog.add_subparsers(dest="catalog_command", required=True)

    add = catalog_sub.add_parser("add", help="Create a product")
    add.add_argument("--name", required=True)
    add.add_argument("--price", required=True, type=Decimal)
    add.add_argument("--discount-price", type=Decimal, default=Decimal("0"))
    add.add_argument("--description", required=True)
    add.add_argument("--stock", type=int, default=0)
    add.add_argument("--image-url", required=True)

    catalog_sub.add_parser("list", help="List products")

    orders = top.add_parser("orders", help="Order ledger queries")
    orders_sub = orders.add_subparsers(dest="orders_command", required=True)

    ls = orders_sub.add_parser("list", help="List orders, newest first")
    ls.add_argument("--status", choices=["pending", "paid", "failed", "cancelled", "refunded"], default=None)
    ls.add_argument("--page", type=int, default=1)
    ls.add_argument("--limit", type=int, default=10)

    show = orders_sub.add_parser("show", help="Show one order")
    show.add_argument("order_id")

    return parser


def _run_catalog(args: argparse.Namespace) -> int:
    with session_scope() as session:
        service = CatalogService(session)
        if args.catalog_command == "add":
            product = service.create_product(
                ProductPayload(
                    name=args.name,
                    price=args.price,
                    discount_price=args.discount_price,
                    description=args.description,
                    stock=args.stock,
                    image_url=args.image_url,
                )
            )
            _print(product_to_dict(product))
        else:
            _print([product_to_dict(p) for p in service.list_products()])
    return 0


def _run_orders(args: argparse.Namespace) -> int:
    with session_scope() as session:
        workflow = OrderWorkflow(session, gateway=build_gateway_client())
        if args.orders_command == "show":
            _print(workflow.get_order(args.order_id))
        else:
            _print(workflow.list_orders(status=args.status, page=args.page, limit=args.limit))
    return 0


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    parser = _build_parser()
    args = parser.parse_args(argv)
    init_db()

    try:
        if args.command == "catalog":
            return _run_catalog(args)
        if args.command == "orders":
            return _run_orders(args)
    except CheckoutError as exc:
        _print(exc.to_response())
        return 1

    parser.error("unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
