from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GATEWAY_KEY_ID = "rzp_test_key"
DEFAULT_GATEWAY_KEY_SECRET = "glitz-dev-gateway-secret-change-me"
DEFAULT_GATEWAY_WEBHOOK_SECRET = "glitz-dev-webhook-secret-change-me"
DEFAULT_ADMIN_API_KEY = "glitz-admin-dev-key"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SHOP_", extra="ignore")

    app_name: str = "Glitz Storefront API"
    env: str = "dev"
    api_host: str = "0.0.0.0"
    api_port: int = 5010
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./shop.db"

    # Payment gateway: razorpay | mock
    gateway_mode: str = "mock"
    gateway_name: str = "razorpay"
    gateway_base_url: str = "https://api.razorpay.com"
    gateway_timeout_seconds: int = 15
    gateway_key_id: str | None = DEFAULT_GATEWAY_KEY_ID
    gateway_key_secret: str | None = DEFAULT_GATEWAY_KEY_SECRET
    gateway_webhook_secret: str | None = DEFAULT_GATEWAY_WEBHOOK_SECRET

    currency: str = "INR"
    shipping_flat: Decimal = Field(default=Decimal("0"), ge=0)
    order_id_prefix: str = "GLITZ"
    max_page_size: int = 100

    auth_enabled: bool = True
    admin_api_key: str = DEFAULT_ADMIN_API_KEY

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return

        insecure_items: list[str] = []
        if self.gateway_mode == "mock":
            insecure_items.append("SHOP_GATEWAY_MODE")
        if self.gateway_key_secret == DEFAULT_GATEWAY_KEY_SECRET:
            insecure_items.append("SHOP_GATEWAY_KEY_SECRET")
        if self.gateway_webhook_secret == DEFAULT_GATEWAY_WEBHOOK_SECRET:
            insecure_items.append("SHOP_GATEWAY_WEBHOOK_SECRET")
        if self.admin_api_key == DEFAULT_ADMIN_API_KEY:
            insecure_items.append("SHOP_ADMIN_API_KEY")

        if insecure_items:
            raise ValueError(
                "dev defaults are not allowed outside dev mode; set env vars: "
                + ", ".join(sorted(insecure_items))
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
