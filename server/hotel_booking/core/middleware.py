"""Custom middleware for request correlation, logging and request metrics."""

import logging
import time
import uuid
from typing import Callable, Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import settings
from .observability import metrics_collector

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a request ID to each request.

    The ID comes from the X-Request-ID header or is generated. It is stored
    on ``request.state``, bound into structlog contextvars so every log line
    of the request carries it, and echoed in the response headers.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[self.header_name] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs HTTP requests and records request metrics.

    Health and metrics probes are skipped so scrapes do not drown the log.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        skip_paths: Optional[list] = None,
    ):
        super().__init__(app)
        self.log_request_body = log_request_body
        self.skip_paths = skip_paths or ["/health", "/ready", "/metrics", "/favicon.ico"]

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"

    @staticmethod
    def _endpoint_label(request: Request) -> str:
        # Route template keeps label cardinality bounded
        route = request.scope.get("route")
        return getattr(route, "path", request.url.path)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.skip_paths:
            return await call_next(request)

        start_time = time.perf_counter()

        log_data = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": self._get_client_ip(request),
            "user_agent": request.headers.get("User-Agent", "unknown"),
            "idempotency_key": request.headers.get("Idempotency-Key"),
        }

        if self.log_request_body and request.method == "POST":
            body = await request.body()
            if body:
                log_data["request_body"] = body.decode("utf-8", errors="replace")[:1000]

        logger.info("HTTP request started", extra=log_data)

        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start_time
            metrics_collector.record_request(request.method, self._endpoint_label(request), 500, duration)
            logger.exception(
                "HTTP request failed",
                extra={**log_data, "duration_ms": round(duration * 1000, 2)}
            )
            raise

        duration = time.perf_counter() - start_time
        metrics_collector.record_request(
            request.method, self._endpoint_label(request), response.status_code, duration
        )

        log_data.update({
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2),
        })

        if response.status_code >= 500:
            logger.error("HTTP request completed with server error", extra=log_data)
        elif response.status_code >= 400:
            logger.warning("HTTP request completed with client error", extra=log_data)
        else:
            logger.info("HTTP request completed successfully", extra=log_data)

        return response


def setup_middleware(app, enable_logging: bool = True) -> None:
    """
    Setup custom middleware on the FastAPI app.

    Middleware added last runs first, so the request ID is bound before the
    logging middleware writes its first line.
    """
    if enable_logging:
        app.add_middleware(
            LoggingMiddleware,
            log_request_body=settings.debug and not settings.is_production,
        )

    app.add_middleware(RequestIDMiddleware)
