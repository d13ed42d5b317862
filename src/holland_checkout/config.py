"""Configuration surface for the checkout redirect service."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

DEFAULT_PAYPER_CHECKOUT_URL = "https://checkout-staging.payper.ca/api/v2/checkout-session"
DEFAULT_PUBLIC_HOST = "hollandcheckout.netlify.app"


class CheckoutSettings(BaseSettings):
    """Service configuration, read from the environment and ``.env``."""

    environment: Literal["dev", "staging", "prod"] = "dev"
    log_level: str = "INFO"

    # Vendor
    payper_checkout_url: str = DEFAULT_PAYPER_CHECKOUT_URL
    payper_token: Optional[str] = None
    vendor_timeout_seconds: float = 30.0

    # Remote code store (Upstash Redis REST)
    upstash_redis_rest_url: Optional[str] = None
    upstash_redis_rest_token: Optional[str] = None
    store_timeout_seconds: float = 5.0

    # Admin
    admin_api_key: Optional[str] = None

    # Payload extras
    merchant_ntf_url: Optional[str] = None
    notify_email: Optional[str] = None
    notify_phone: Optional[str] = None

    # Used to build return/short URLs when the request has no Host header
    public_host: str = DEFAULT_PUBLIC_HOST

    class Config:
        env_prefix = ""
        env_file = ".env"
        extra = "ignore"

    @field_validator(
        "payper_token",
        "upstash_redis_rest_url",
        "upstash_redis_rest_token",
        "admin_api_key",
        "merchant_ntf_url",
        "notify_email",
        "notify_phone",
        mode="before",
    )
    @classmethod
    def blank_as_unset(cls, v):
        """Treat empty strings from the environment as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("upstash_redis_rest_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        return v.rstrip("/") if v else v

    @property
    def remote_store_configured(self) -> bool:
        return bool(self.upstash_redis_rest_url and self.upstash_redis_rest_token)


@lru_cache
def load_settings(env_file: str | None = None) -> CheckoutSettings:
    """Load CheckoutSettings once per process."""
    env_path = Path(env_file) if env_file else None
    if env_path is None:
        return CheckoutSettings()
    return CheckoutSettings(_env_file=env_path)
