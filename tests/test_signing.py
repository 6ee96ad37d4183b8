from __future__ import annotations

import hmac
import json
from hashlib import sha256

from app.payments.signing import sign_payment, sign_webhook, verify_payment_signature, verify_webhook_signature

SECRET = "unit-test-secret"


def _flip_first_char(signature: str) -> str:
    flipped = chr(ord(signature[0]) ^ 0x01)
    return flipped + signature[1:]


def test_payment_signature_matches_reference_hmac():
    expected = hmac.new(SECRET.encode(), b"order_abc|pay_xyz", sha256).hexdigest()
    assert sign_payment("order_abc", "pay_xyz", SECRET) == expected
    assert verify_payment_signature("order_abc", "pay_xyz", expected, SECRET)


def test_payment_signature_rejects_tampering():
    sig = sign_payment("order_abc", "pay_xyz", SECRET)

    assert not verify_payment_signature("order_abc", "pay_xyz", _flip_first_char(sig), SECRET)
    assert not verify_payment_signature("order_abc", "pay_other", sig, SECRET)
    assert not verify_payment_signature("order_abc", "pay_xyz", sig, "other-secret")
    assert not verify_payment_signature("order_abc", "pay_xyz", sig.upper(), SECRET)


def test_webhook_signature_covers_raw_bytes():
    body = b'{"event": "payment.captured",  "payload": {}}'
    sig = sign_webhook(body, SECRET)
    assert verify_webhook_signature(body, sig, SECRET)

    reserialized = json.dumps(json.loads(body)).encode("utf-8")
    assert reserialized != body
    assert not verify_webhook_signature(reserialized, sig, SECRET)


def test_webhook_signature_missing_header():
    assert not verify_webhook_signature(b"{}", None, SECRET)
    assert not verify_webhook_signature(b"{}", "", SECRET)
