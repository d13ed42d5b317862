"""Shared request dependencies for the API routers."""
from __future__ import annotations

import hmac
from dataclasses import dataclass

from fastapi import Depends, Request

from holland_checkout.checkout import DirectCheckoutService
from holland_checkout.codes import CodeRegistry
from holland_checkout.config import CheckoutSettings
from holland_checkout.exceptions import UnauthorizedError
from holland_checkout.redemption import RedemptionOrchestrator


@dataclass
class Dependencies:
    settings: CheckoutSettings
    registry: CodeRegistry
    orchestrator: RedemptionOrchestrator
    checkout: DirectCheckoutService


def get_deps() -> Dependencies:
    raise NotImplementedError("Dependency override required")


def request_base_url(request: Request, settings: CheckoutSettings) -> str:
    """``{proto}://{host}`` as seen by the caller, behind any proxy."""
    proto = request.headers.get("x-forwarded-proto") or "https"
    host = request.headers.get("host") or settings.public_host
    return f"{proto}://{host}"


def require_admin_key(request: Request, deps: Dependencies = Depends(get_deps)) -> None:
    """Compare ``X-API-Key`` with ADMIN_API_KEY when one is configured."""
    expected = deps.settings.admin_api_key
    if not expected:
        return
    provided = request.headers.get("x-api-key") or ""
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise UnauthorizedError()
