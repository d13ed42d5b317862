"""Exception hierarchy for the checkout redirect service.

Every error the service reports to a caller inherits from
CheckoutRedirectError, which carries:
- error_code: machine-readable code (e.g. "code_not_found")
- http_status: status code used by the API layer
- message: human-readable message
- details: optional extra context, serialized alongside the code

The API layer converts these into ``{"error": error_code, ...}`` bodies,
so the codes here are part of the public contract.
"""
from __future__ import annotations

from typing import Any, Optional


class CheckoutRedirectError(Exception):
    """Base exception for all checkout redirect errors."""

    error_code: str = "internal_error"
    http_status: int = 500

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        http_status: Optional[int] = None,
    ) -> None:
        self.message = message or self.error_code.replace("_", " ")
        super().__init__(self.message)
        if error_code:
            self.error_code = error_code
        if http_status:
            self.http_status = http_status
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        result: dict[str, Any] = {"error": self.error_code}
        if self.message and self.message != self.error_code.replace("_", " "):
            result["message"] = self.message
        if self.details is not None:
            result["details"] = self.details
        return result


# =============================================================================
# Caller errors (4xx)
# =============================================================================

class ValidationError(CheckoutRedirectError):
    """Malformed request input; details carry field-level errors."""

    error_code = "validation_error"
    http_status = 400


class InvalidAmountError(CheckoutRedirectError):
    """Registration amount missing, non-numeric or not positive."""

    error_code = "invalid_amount"
    http_status = 400


class UnauthorizedError(CheckoutRedirectError):
    """Admin API key missing or wrong."""

    error_code = "unauthorized"
    http_status = 401


class MissingAuthorizationError(CheckoutRedirectError):
    """Direct checkout could not resolve a bearer credential."""

    error_code = "missing_authorization"
    http_status = 401

    def __init__(self, message: str = "Provide Authorization header or token param") -> None:
        super().__init__(message)


class MissingTokenError(CheckoutRedirectError):
    """Redemption could not resolve a bearer credential."""

    error_code = "missing_token"
    http_status = 401


class MissingCodeError(CheckoutRedirectError):
    """Redemption request carried no code."""

    error_code = "missing_code"
    http_status = 400


class CodeNotFoundError(CheckoutRedirectError):
    """No config is stored for the requested code."""

    error_code = "code_not_found"
    http_status = 404

    def __init__(self, code: str) -> None:
        super().__init__()
        self.code = code


# =============================================================================
# Upstream errors
# =============================================================================

class BadGatewayError(CheckoutRedirectError):
    """Vendor answered successfully but without a checkout URL."""

    error_code = "bad_gateway"
    http_status = 502


class VendorRequestError(CheckoutRedirectError):
    """Vendor call failed in transport or returned a non-2xx status.

    ``status_code`` is None when no HTTP response was received.
    """

    error_code = "vendor_request_failed"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message, http_status=status_code or 500)
        self.status_code = status_code
        self.body = body

    def forwarded_details(self) -> Any:
        """Vendor body when one was received, else the transport message."""
        if self.status_code is not None and self.body is not None:
            return self.body
        return {"message": self.message}


class CheckoutFailedError(CheckoutRedirectError):
    """Direct checkout failed upstream; status and body are forwarded."""

    error_code = "checkout_failed"

    @classmethod
    def from_vendor(cls, exc: VendorRequestError) -> "CheckoutFailedError":
        return cls(
            exc.message,
            details=exc.forwarded_details(),
            http_status=exc.status_code or 500,
        )


class RedeemFailedError(CheckoutRedirectError):
    """Redemption failed upstream; status and body are forwarded."""

    error_code = "redeem_failed"

    @classmethod
    def from_vendor(cls, exc: VendorRequestError) -> "RedeemFailedError":
        return cls(
            exc.message,
            details=exc.forwarded_details(),
            http_status=exc.status_code or 500,
        )


class StoreError(CheckoutRedirectError):
    """Remote configuration store could not be reached or refused a call."""

    error_code = "store_unavailable"
    http_status = 500
