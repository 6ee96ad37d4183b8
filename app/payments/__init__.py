from app.payments.gateway import (
    CheckoutOrder,
    GatewayClient,
    MisconfiguredGatewayClient,
    MockGatewayClient,
    RazorpayGatewayClient,
    build_gateway_client,
)
from app.payments.signing import (
    sign_payment,
    sign_webhook,
    verify_payment_signature,
    verify_webhook_signature,
)

__all__ = [
    "CheckoutOrder",
    "GatewayClient",
    "MisconfiguredGatewayClient",
    "MockGatewayClient",
    "RazorpayGatewayClient",
    "build_gateway_client",
    "sign_payment",
    "sign_webhook",
    "verify_payment_signature",
    "verify_webhook_signature",
]
