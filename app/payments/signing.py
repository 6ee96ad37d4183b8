from __future__ import annotations

import hmac
from hashlib import sha256


def _hex_hmac(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, sha256).hexdigest()


def payment_signature_payload(gateway_order_id: str, gateway_payment_id: str) -> bytes:
    return f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8")


def sign_payment(gateway_order_id: str, gateway_payment_id: str, secret: str) -> str:
    return _hex_hmac(secret, payment_signature_payload(gateway_order_id, gateway_payment_id))


def verify_payment_signature(
    gateway_order_id: str,
    gateway_payment_id: str,
    signature: str,
    secret: str,
) -> bool:
    expected = sign_payment(gateway_order_id, gateway_payment_id, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))


def sign_webhook(raw_body: bytes, secret: str) -> str:
    return _hex_hmac(secret, raw_body)


def verify_webhook_signature(raw_body: bytes, signature: str | None, secret: str) -> bool:
    # Digest covers the body exactly as received; never re-serialize before checking.
    if not signature:
        return False
    expected = sign_webhook(raw_body, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
