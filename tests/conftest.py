"""
Pytest configuration and fixtures for holland-checkout tests.
"""
from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

# Add package source to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Set test environment before importing settings
os.environ.setdefault("ENVIRONMENT", "dev")
for var in ("PAYPER_TOKEN", "UPSTASH_REDIS_REST_URL", "UPSTASH_REDIS_REST_TOKEN", "ADMIN_API_KEY"):
    os.environ.pop(var, None)

from holland_checkout.config import CheckoutSettings
from holland_checkout.store import InMemoryCodeConfigStore
from holland_checkout.vendor import PayperClient

VENDOR_URL = "https://checkout.test/api/v2/checkout-session"
HOSTED_URL = "https://checkout.test/hosted/sess_123"


class FakeVendor:
    """Records Payper requests and answers with a canned response."""

    def __init__(
        self,
        status_code: int = 200,
        body: Any = None,
        error: Optional[Exception] = None,
    ):
        self.status_code = status_code
        self.body = body if body is not None else {
            "data": {"url": HOSTED_URL, "session_id": "sess_123"},
        }
        self.error = error
        self.requests: list[httpx.Request] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last_payload(self) -> dict:
        return json.loads(self.requests[-1].content)

    @property
    def last_authorization(self) -> Optional[str]:
        return self.requests[-1].headers.get("authorization")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)

    def client(self) -> PayperClient:
        return PayperClient(
            checkout_url=VENDOR_URL,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def fake_vendor() -> FakeVendor:
    return FakeVendor()


@pytest.fixture
def vendor_client(fake_vendor) -> PayperClient:
    return fake_vendor.client()


@pytest.fixture
def memory_store() -> InMemoryCodeConfigStore:
    return InMemoryCodeConfigStore()


@pytest.fixture
def make_settings() -> Callable[..., CheckoutSettings]:
    """Build settings without reading the process env file."""

    def _make(**overrides) -> CheckoutSettings:
        values = {
            "environment": "dev",
            "payper_checkout_url": VENDOR_URL,
            "payper_token": None,
            "upstash_redis_rest_url": None,
            "upstash_redis_rest_token": None,
            "admin_api_key": None,
        }
        values.update(overrides)
        return CheckoutSettings(_env_file=None, **values)

    return _make
