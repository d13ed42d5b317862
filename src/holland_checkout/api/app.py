"""API composition root."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from holland_checkout import __version__
from holland_checkout.checkout import DirectCheckoutService
from holland_checkout.codes import CodeRegistry
from holland_checkout.config import CheckoutSettings, load_settings
from holland_checkout.redemption import RedemptionOrchestrator
from holland_checkout.store import CodeConfigStore, create_code_store
from holland_checkout.vendor import PayperClient

from .dependencies import Dependencies, get_deps
from .middleware import StructuredLoggingMiddleware, register_exception_handlers
from .routers import checkout as checkout_router
from .routers import codes as codes_router
from .routers import redeem as redeem_router

logger = logging.getLogger("holland_checkout.api")


def create_app(
    settings: CheckoutSettings | None = None,
    store: Optional[CodeConfigStore] = None,
    vendor: Optional[PayperClient] = None,
) -> FastAPI:
    """Build the API. ``store`` and ``vendor`` default to ones built from settings."""
    settings = settings or load_settings()
    if store is None:
        store = create_code_store(settings)
    if vendor is None:
        vendor = PayperClient(
            checkout_url=settings.payper_checkout_url,
            timeout=settings.vendor_timeout_seconds,
        )

    registry = CodeRegistry(store)
    orchestrator = RedemptionOrchestrator(
        store=store,
        vendor=vendor,
        default_token=settings.payper_token,
        merchant_ntf_url=settings.merchant_ntf_url,
        notify_email=settings.notify_email,
        notify_phone=settings.notify_phone,
    )
    checkout = DirectCheckoutService(
        vendor=vendor,
        merchant_ntf_url=settings.merchant_ntf_url,
        notify_email=settings.notify_email,
        notify_phone=settings.notify_phone,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting checkout redirect API ({settings.environment}, store={store.backend_name})")
        yield
        logger.info("Shutting down checkout redirect API...")
        await orchestrator.wait_for_usage_updates()
        await vendor.close()
        await store.close()

    app = FastAPI(
        title="Holland Checkout Redirect",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(StructuredLoggingMiddleware, exclude_paths=["/health"])
    register_exception_handlers(app)

    deps = Dependencies(
        settings=settings,
        registry=registry,
        orchestrator=orchestrator,
        checkout=checkout,
    )
    app.dependency_overrides[get_deps] = lambda: deps
    app.state.deps = deps

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok", "store": store.backend_name}

    app.include_router(checkout_router.router)
    app.include_router(codes_router.router)
    app.include_router(redeem_router.router)

    return app
