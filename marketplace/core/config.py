"""Marketplace Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "UnityShop Marketplace"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5000

    # Document store
    mongodb_url: str = "mongodb://localhost:27017"
    database_name: str = "UnityShopDB"
    mongodb_timeout_ms: int = 5000

    # Payment processor (Stripe)
    stripe_secret_key: Optional[str] = None
    stripe_api_base: str = "https://api.stripe.com/v1"
    payment_timeout_seconds: float = 30.0
    currency: str = "usd"

    # Frontend base URL for payment redirects
    site_domain: str = "http://localhost:5173"

    # Realtime channel tokens
    channel_token_secret: str = "dev-channel-secret-change"
    channel_token_algorithm: str = "HS256"

    notification_list_limit: int = 50

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def payments_configured(self) -> bool:
        """Check if the payment processor key is configured"""
        return bool(self.stripe_secret_key)

    @property
    def success_url(self) -> str:
        return f"{self.site_domain.rstrip('/')}/payment-success?session_id={{CHECKOUT_SESSION_ID}}"

    @property
    def cancel_url(self) -> str:
        return f"{self.site_domain.rstrip('/')}/payment-cancel"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
