"""Middleware for the checkout redirect API."""
from .logging import (
    StructuredLoggingMiddleware,
    JSONFormatter,
    RequestIdFilter,
    setup_logging,
    get_client_ip,
    current_request_id,
    request_id_var,
)
from .exceptions import (
    register_exception_handlers,
    create_error_response,
)

__all__ = [
    "StructuredLoggingMiddleware",
    "JSONFormatter",
    "RequestIdFilter",
    "setup_logging",
    "get_client_ip",
    "current_request_id",
    "request_id_var",
    "register_exception_handlers",
    "create_error_response",
]
