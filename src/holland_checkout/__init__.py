"""
Holland Checkout - redirect layer in front of the Payper hosted checkout.

Accepts a payment request, builds the Payper checkout-session payload,
forwards it and redirects the browser to the hosted checkout page.

Admins can pre-register short codes that pin an amount, product, currency
and optional credential, so visiting ``/c/{code}`` runs the same flow
without the caller supplying parameters.
"""

__version__ = "0.2.0"

from holland_checkout.models import (
    CodeConfig,
    CheckoutSession,
    RedemptionResult,
    DEFAULT_CURRENCY,
    DEFAULT_PRODUCT,
)
from holland_checkout.exceptions import (
    CheckoutRedirectError,
    ValidationError,
    InvalidAmountError,
    UnauthorizedError,
    MissingAuthorizationError,
    MissingTokenError,
    MissingCodeError,
    CodeNotFoundError,
    BadGatewayError,
    VendorRequestError,
    CheckoutFailedError,
    RedeemFailedError,
    StoreError,
)
from holland_checkout.config import CheckoutSettings, load_settings
from holland_checkout.store import (
    CodeConfigStore,
    InMemoryCodeConfigStore,
    UpstashCodeConfigStore,
    create_code_store,
)
from holland_checkout.codes import CodeRegistry, RegisteredCode, generate_code, CODE_ALPHABET
from holland_checkout.tokens import normalize_bearer, resolve_bearer
from holland_checkout.payload import build_checkout_payload
from holland_checkout.vendor import PayperClient
from holland_checkout.redemption import RedemptionOrchestrator, resolve_amount
from holland_checkout.checkout import DirectCheckoutRequest, DirectCheckoutService

__all__ = [
    # Models
    "CodeConfig",
    "CheckoutSession",
    "RedemptionResult",
    "DEFAULT_CURRENCY",
    "DEFAULT_PRODUCT",
    # Errors
    "CheckoutRedirectError",
    "ValidationError",
    "InvalidAmountError",
    "UnauthorizedError",
    "MissingAuthorizationError",
    "MissingTokenError",
    "MissingCodeError",
    "CodeNotFoundError",
    "BadGatewayError",
    "VendorRequestError",
    "CheckoutFailedError",
    "RedeemFailedError",
    "StoreError",
    # Configuration
    "CheckoutSettings",
    "load_settings",
    # Store
    "CodeConfigStore",
    "InMemoryCodeConfigStore",
    "UpstashCodeConfigStore",
    "create_code_store",
    # Codes
    "CodeRegistry",
    "RegisteredCode",
    "generate_code",
    "CODE_ALPHABET",
    # Tokens and payload
    "normalize_bearer",
    "resolve_bearer",
    "build_checkout_payload",
    # Services
    "PayperClient",
    "RedemptionOrchestrator",
    "resolve_amount",
    "DirectCheckoutRequest",
    "DirectCheckoutService",
]
