"""Exception handlers converting failures into JSON error bodies.

Every error response has the shape ``{"error": "<code>", ...}`` with
optional ``message`` and ``details`` fields.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from holland_checkout.exceptions import CheckoutRedirectError

logger = logging.getLogger(__name__)


def create_error_response(status_code: int, content: dict[str, Any], request: Request) -> JSONResponse:
    headers = {}
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        headers["X-Request-ID"] = request_id
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def validation_details(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Flatten pydantic errors into ``{field, message}`` pairs."""
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
        details.append({
            "field": ".".join(loc) or None,
            "message": error.get("msg", "invalid value"),
        })
    return details


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""

    @app.exception_handler(CheckoutRedirectError)
    async def checkout_error_handler(request: Request, exc: CheckoutRedirectError):
        if exc.http_status >= 500:
            logger.error(f"{exc.error_code}: {exc.message}")
        return create_error_response(exc.http_status, exc.to_dict(), request)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return create_error_response(
            400,
            {"error": "validation_error", "details": validation_details(exc.errors())},
            request,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = {404: "not_found", 405: "method_not_allowed"}.get(exc.status_code, "http_error")
        response = create_error_response(exc.status_code, {"error": code}, request)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return create_error_response(
            500,
            {"error": "internal_error", "message": "An unexpected error occurred"},
            request,
        )
