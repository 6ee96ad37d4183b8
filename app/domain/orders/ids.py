from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone

_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 9


def generate_order_id(prefix: str = "GLITZ", now: datetime | None = None) -> str:
    stamp = int((now or datetime.now(timezone.utc)).timestamp() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{prefix}_{stamp}_{suffix}"
