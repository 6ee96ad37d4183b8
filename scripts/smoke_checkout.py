#!/usr/bin/env python3
from __future__ import annotations

import argparse
import hmac
import json
from hashlib import sha256

import requests


def _hmac_hex(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, sha256).hexdigest()


def main() -> None:
    parser = argparse.ArgumentParser(description="Drive one checkout against a dev server running the mock gateway")
    parser.add_argument("--base-url", default="http://localhost:5010")
    parser.add_argument("--admin-key", default="glitz-admin-dev-key")
    parser.add_argument("--key-secret", default="glitz-dev-gateway-secret-change-me")
    parser.add_argument("--webhook-secret", default="glitz-dev-webhook-secret-change-me")
    args = parser.parse_args()

    product = requests.post(
        f"{args.base_url}/admin/products",
        headers={"X-API-Key": args.admin_key},
        json={
            "name": "Smoke Test Necklace",
            "price": 100,
            "discountPrice": 80,
            "description": "created by smoke_checkout.py",
            "stock": 5,
            "imageUrl": "https://example.com/necklace.jpg",
        },
        timeout=30,
    )
    product.raise_for_status()
    product_id = product.json()["id"]

    created = requests.post(
        f"{args.base_url}/api/payments/create-order",
        json={
            "items": [{"productId": product_id, "quantity": 2}],
            "customerDetails": {"name": "Smoke Tester", "email": "smoke@example.com", "phone": "9999999999"},
        },
        timeout=30,
    )
    created.raise_for_status()
    checkout = created.json()["order"]
    print("Created order:")
    print(json.dumps(checkout, indent=2))

    payment_id = "pay_smoke_0001"
    signature = _hmac_hex(args.key_secret, f"{checkout['id']}|{payment_id}".encode("utf-8"))
    verified = requests.post(
        f"{args.base_url}/api/payments/verify-payment",
        json={
            "razorpay_order_id": checkout["id"],
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
            "orderId": checkout["order_id"],
        },
        timeout=30,
    )
    verified.raise_for_status()
    print("\nVerified payment:")
    print(json.dumps(verified.json(), indent=2))

    body = json.dumps(
        {"event": "payment.captured", "payload": {"payment": {"entity": {"id": payment_id, "order_id": checkout["id"]}}}}
    ).encode("utf-8")
    webhook = requests.post(
        f"{args.base_url}/api/payments/webhook",
        data=body,
        headers={"Content-Type": "application/json", "X-Razorpay-Signature": _hmac_hex(args.webhook_secret, body)},
        timeout=30,
    )
    webhook.raise_for_status()
    print("\nWebhook replay acknowledged:", webhook.json())


if __name__ == "__main__":
    main()
