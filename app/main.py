from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes_catalog import router as catalog_router
from app.api.routes_payments import router as payments_router
from app.core.config import get_settings
from app.core.errors import CheckoutError
from app.core.logging import configure_logging
from app.payments.gateway import build_gateway_client
from app.persistence.db import init_db

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title=settings.app_name)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    app.state.gateway = build_gateway_client(settings)
    logger.info("payment gateway ready: backend=%s", app.state.gateway.backend)


@app.exception_handler(CheckoutError)
async def checkout_error_handler(_: Request, exc: CheckoutError):
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.code, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError):
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "validation", "detail": errors},
    )


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(catalog_router)
app.include_router(payments_router, prefix="/api/payments")
# Paths used by storefront clients built against the Razorpay-only backend.
app.include_router(payments_router, prefix="/api/razorpay", include_in_schema=False)
