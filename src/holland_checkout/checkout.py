"""Direct checkout: caller supplies amount, product and credential."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from holland_checkout.exceptions import CheckoutFailedError, MissingAuthorizationError, VendorRequestError
from holland_checkout.models import CheckoutSession, DEFAULT_CURRENCY
from holland_checkout.payload import build_checkout_payload
from holland_checkout.tokens import resolve_bearer
from holland_checkout.vendor import PayperClient

logger = logging.getLogger(__name__)


@dataclass
class DirectCheckoutRequest:
    """Validated direct checkout parameters."""
    amount: Decimal
    product: str
    currency: str = DEFAULT_CURRENCY
    return_url: Optional[str] = None
    failed_return_url: Optional[str] = None
    token: Optional[str] = None


class DirectCheckoutService:
    """Forwards caller-specified checkouts to the vendor."""

    def __init__(
        self,
        vendor: PayperClient,
        merchant_ntf_url: Optional[str] = None,
        notify_email: Optional[str] = None,
        notify_phone: Optional[str] = None,
    ):
        self.vendor = vendor
        self.merchant_ntf_url = merchant_ntf_url
        self.notify_email = notify_email
        self.notify_phone = notify_phone

    async def create_checkout(
        self,
        request: DirectCheckoutRequest,
        base_url: str,
        authorization: Optional[str] = None,
        customer_ip: Optional[str] = None,
    ) -> CheckoutSession:
        """
        Create a vendor session for a direct checkout.

        The ``token`` field takes precedence over the Authorization header.
        Return URLs default to ``{base_url}/payment-return`` and
        ``{base_url}/checkout-failed``.

        Raises:
            MissingAuthorizationError: No usable credential
            BadGatewayError: Vendor response had no URL
            CheckoutFailedError: Vendor call failed
        """
        bearer = resolve_bearer(request.token, authorization)
        if not bearer:
            raise MissingAuthorizationError()

        base_url = base_url.rstrip("/")
        payload = build_checkout_payload(
            amount=request.amount,
            product=request.product,
            currency=request.currency,
            return_url=request.return_url or f"{base_url}/payment-return",
            failed_return_url=request.failed_return_url or f"{base_url}/checkout-failed",
            customer_ip=customer_ip,
            merchant_ntf_url=self.merchant_ntf_url,
            notify_email=self.notify_email,
            notify_phone=self.notify_phone,
        )

        try:
            session = await self.vendor.create_checkout_session(payload, bearer)
        except VendorRequestError as e:
            raise CheckoutFailedError.from_vendor(e) from e

        logger.info(f"Created checkout session {session.session_id or '-'} for {request.amount} {request.currency}")
        return session
