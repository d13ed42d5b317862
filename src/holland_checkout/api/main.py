"""ASGI entry point: ``uvicorn holland_checkout.api.main:app``."""
from __future__ import annotations

from holland_checkout.config import load_settings

from .app import create_app
from .middleware import setup_logging

settings = load_settings()

setup_logging(
    json_format=settings.environment != "dev",
    level=settings.log_level,
)

app = create_app(settings)
