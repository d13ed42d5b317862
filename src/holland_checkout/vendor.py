"""Payper checkout-session client."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from holland_checkout.config import DEFAULT_PAYPER_CHECKOUT_URL
from holland_checkout.exceptions import BadGatewayError, VendorRequestError
from holland_checkout.models import CheckoutSession

logger = logging.getLogger(__name__)


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class PayperClient:
    """Creates hosted checkout sessions with the Payper API."""

    def __init__(
        self,
        checkout_url: str = DEFAULT_PAYPER_CHECKOUT_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.checkout_url = checkout_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def create_checkout_session(
        self,
        payload: Dict[str, Any],
        bearer: str,
    ) -> CheckoutSession:
        """
        POST a session payload and return the hosted checkout URL.

        Args:
            payload: Body built by build_checkout_payload()
            bearer: Full ``Bearer ...`` credential

        Raises:
            VendorRequestError: Transport failure or non-2xx response
            BadGatewayError: 2xx response without ``data.url``
        """
        try:
            response = await self._client.post(
                self.checkout_url,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": bearer,
                },
            )
        except httpx.HTTPError as e:
            logger.warning(f"Payper request failed: {e!r}")
            raise VendorRequestError(str(e) or type(e).__name__) from e

        if response.is_error:
            body = _response_body(response)
            logger.warning(f"Payper returned {response.status_code}")
            raise VendorRequestError(
                f"Payper returned status {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        data = _response_body(response)
        session = data.get("data") if isinstance(data, dict) else None
        url = session.get("url") if isinstance(session, dict) else None
        if not url:
            raise BadGatewayError(details=data)

        return CheckoutSession(
            url=url,
            session_id=session.get("session_id"),
            raw=data,
        )

    async def close(self):
        """Close HTTP client."""
        await self._client.aclose()
