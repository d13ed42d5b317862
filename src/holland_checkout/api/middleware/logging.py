"""Request logging for the checkout redirect API.

Every request gets an ``X-Request-ID`` (taken from the caller or minted
here) that is attached to log records through a context variable and echoed
on the response. Vendor credentials travel in the ``Authorization`` header
and the ``token`` query parameter, and the admin key in ``X-API-Key``; all
three are redacted before anything is logged.
"""
from __future__ import annotations

import json
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Callable, Iterable, Mapping, Optional
from urllib.parse import urlsplit

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

logger = logging.getLogger("holland_checkout.api")

REDACTED_HEADERS = frozenset({"authorization", "x-api-key", "cookie"})
REDACTED_QUERY_PARAMS = frozenset({"token"})

SLOW_REQUEST_MS = 3000.0


class RequestIdFilter(logging.Filter):
    """Stamp the current request ID onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


def redact(value: str) -> str:
    """Keep the first and last four characters of long values."""
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}...{value[-4:]}"


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {
        name: redact(value) if name.lower() in REDACTED_HEADERS else value
        for name, value in headers.items()
    }


def redact_query(query_string: str) -> str:
    """Replace credential values in a raw query string with ``***``."""
    parts = []
    for pair in filter(None, query_string.split("&")):
        name, sep, _ = pair.partition("=")
        parts.append(f"{name}=***" if sep and name.lower() in REDACTED_QUERY_PARAMS else pair)
    return "&".join(parts)


def get_client_ip(request: Request) -> Optional[str]:
    """First ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the socket peer."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one start and one completion record per request.

    Redirect responses log only the host they send the browser to; the
    hosted checkout path carries the vendor session and stays out of logs.
    """

    def __init__(
        self,
        app,
        exclude_paths: Iterable[str] = ("/health",),
        slow_request_ms: float = SLOW_REQUEST_MS,
    ):
        super().__init__(app)
        self.exclude_paths = frozenset(exclude_paths)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.exclude_paths:
            return await call_next(request)

        request_id = request.headers.get("x-request-id") or f"req_{uuid.uuid4().hex[:16]}"
        request_id_var.set(request_id)
        request.state.request_id = request_id

        base = {"method": request.method, "path": path}
        start_extra = {**base, "event": "request_start", "client_ip": get_client_ip(request)}
        if request.url.query:
            start_extra["query"] = redact_query(request.url.query)
        logger.info(f"{request.method} {path}", extra=start_extra)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {path} raised {type(e).__name__}",
                extra={**base, "event": "request_error", "error_type": type(e).__name__},
                exc_info=True,
            )
            raise
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        extra = {**base, "event": "request_complete", "status_code": response.status_code, "duration_ms": elapsed_ms}
        location = response.headers.get("location")
        if location:
            extra["redirect_host"] = urlsplit(location).netloc

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400 or elapsed_ms > self.slow_request_ms:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(level, f"{request.method} {path} -> {response.status_code} in {elapsed_ms}ms", extra=extra)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"
        return response


class JSONFormatter(logging.Formatter):
    """One JSON object per record, including the request fields above."""

    EXTRA_FIELDS = (
        "event",
        "method",
        "path",
        "query",
        "client_ip",
        "status_code",
        "duration_ms",
        "redirect_host",
        "error_type",
    )

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }
        entry.update(
            (name, getattr(record, name))
            for name in self.EXTRA_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(json_format: bool = True, level: str = "INFO") -> None:
    """Install a single stderr handler on the root logger.

    JSON output is meant for deployed environments; dev gets plain lines.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setLevel(log_level)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(
        JSONFormatter()
        if json_format
        else logging.Formatter("%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s")
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level)

    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def current_request_id() -> Optional[str]:
    return request_id_var.get()
