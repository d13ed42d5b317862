"""
Code redemption orchestration.

Flow for one redemption (strictly sequential):
1. Look up the code's config (missing_code / code_not_found)
2. Resolve the amount, applying the override policy
3. Resolve the bearer credential (missing_token)
4. Build the vendor payload
5. Create the vendor checkout session
6. Schedule the usage-count update and return the redirect URL

The usage update is fire-and-forget: it runs as a background task whose
failures are logged and never reach the caller. It is a plain
read-modify-write with no locking, so concurrent redemptions of one code
may lose increments; the count is telemetry, not a consumption lock.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any, Optional, Set

from holland_checkout.exceptions import (
    CodeNotFoundError,
    MissingCodeError,
    MissingTokenError,
    RedeemFailedError,
    StoreError,
    VendorRequestError,
)
from holland_checkout.models import CodeConfig, RedemptionResult, now_ms, parse_positive_amount
from holland_checkout.payload import build_checkout_payload
from holland_checkout.store import CodeConfigStore
from holland_checkout.tokens import resolve_bearer
from holland_checkout.vendor import PayperClient

logger = logging.getLogger(__name__)


def resolve_amount(config: CodeConfig, override: Any = None) -> Decimal:
    """Stored amount, or a positive caller override when the code allows it.

    Non-numeric and non-positive overrides are ignored.
    """
    if config.allow_amount_override and override is not None:
        parsed = parse_positive_amount(override)
        if parsed is not None:
            return parsed
    return config.amount


class RedemptionOrchestrator:
    """
    Turns a redemption code into a live vendor checkout URL.

    Usage:
        orchestrator = RedemptionOrchestrator(store, vendor, default_token="...")
        result = await orchestrator.redeem("ABC123", base_url="https://host")
        # redirect to result.redirect_url
    """

    def __init__(
        self,
        store: CodeConfigStore,
        vendor: PayperClient,
        default_token: Optional[str] = None,
        merchant_ntf_url: Optional[str] = None,
        notify_email: Optional[str] = None,
        notify_phone: Optional[str] = None,
    ):
        self.store = store
        self.vendor = vendor
        self.default_token = default_token
        self.merchant_ntf_url = merchant_ntf_url
        self.notify_email = notify_email
        self.notify_phone = notify_phone
        self._pending_updates: Set[asyncio.Task] = set()

    async def load_config(self, code: Optional[str]) -> CodeConfig:
        """Fetch a code's config, raising on missing or unknown codes."""
        if not code:
            raise MissingCodeError()
        try:
            config = await self.store.get(code)
        except StoreError as e:
            raise RedeemFailedError(e.message, details={"message": e.message}) from e
        if config is None:
            raise CodeNotFoundError(code)
        return config

    async def redeem(
        self,
        code: Optional[str],
        base_url: str,
        amount_override: Any = None,
        token: Optional[str] = None,
    ) -> RedemptionResult:
        """
        Redeem a code.

        Args:
            code: Code from the path or ``code`` query param
            base_url: ``{proto}://{host}`` used for return URLs
            amount_override: Caller-supplied ``a`` param
            token: Caller-supplied ``token`` param

        Raises:
            MissingCodeError, CodeNotFoundError, MissingTokenError,
            BadGatewayError, RedeemFailedError
        """
        config = await self.load_config(code)
        amount = resolve_amount(config, amount_override)

        bearer = resolve_bearer(config.token, token, self.default_token)
        if not bearer:
            raise MissingTokenError()

        base_url = base_url.rstrip("/")
        payload = build_checkout_payload(
            amount=amount,
            product=config.product,
            currency=config.currency,
            return_url=f"{base_url}/payment-return",
            failed_return_url=f"{base_url}/checkout-failed",
            merchant_ntf_url=self.merchant_ntf_url,
            notify_email=self.notify_email,
            notify_phone=self.notify_phone,
        )

        try:
            session = await self.vendor.create_checkout_session(payload, bearer)
        except VendorRequestError as e:
            logger.warning(f"Redemption of {code} failed at vendor: {e.message}")
            raise RedeemFailedError.from_vendor(e) from e

        self._schedule_usage_update(code, config)
        logger.info(f"Redeemed code {code} for {amount} {config.currency}")

        return RedemptionResult(
            code=code,
            redirect_url=session.url,
            amount=amount,
            currency=config.currency,
            session_id=session.session_id,
        )

    def _schedule_usage_update(self, code: str, config: CodeConfig) -> None:
        task = asyncio.create_task(self._record_usage(code, config))
        self._pending_updates.add(task)
        task.add_done_callback(self._on_usage_update_done)

    async def _record_usage(self, code: str, config: CodeConfig) -> None:
        updated = replace(
            config,
            usage_count=config.usage_count + 1,
            last_used_at=now_ms(),
        )
        await self.store.set(code, updated)

    def _on_usage_update_done(self, task: asyncio.Task) -> None:
        self._pending_updates.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Usage update failed (ignored): {exc!r}")

    @property
    def pending_updates(self) -> int:
        return len(self._pending_updates)

    async def wait_for_usage_updates(self) -> None:
        """Wait for scheduled usage updates to finish. Never raises."""
        if self._pending_updates:
            await asyncio.gather(*list(self._pending_updates), return_exceptions=True)
        self._pending_updates = {t for t in self._pending_updates if not t.done()}
