from __future__ import annotations

import logging

from app.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    settings = get_settings()
    resolved = (level or settings.log_level).upper()

    root = logging.getLogger()
    if not any(getattr(h, "_shop_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._shop_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(resolved)

    # httpx logs every request line at INFO, including gateway URLs.
    logging.getLogger("httpx").setLevel(logging.WARNING)
