"""Request context middleware.

Assigns every request a short correlation id, exposes it to handlers and
to the JSON log formatter, and logs the request/response pair with timing.
"""

from __future__ import annotations

import logging
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..core.structured_logging import request_id_var

logger = logging.getLogger(__name__)


def new_request_id() -> str:
    return uuid4().hex[:8]


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request id and log timing for every request."""

    def __init__(self, app: ASGIApp, log_requests: bool = True):
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = new_request_id()
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        start_time = time.time()

        if self.log_requests:
            logger.info(
                f"Incoming request: {request.method} {request.url.path}",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "content_length": request.headers.get("content-length", 0),
                    "service_key_present": "x-service-key" in request.headers,
                },
            )

        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        processing_time_ms = int((time.time() - start_time) * 1000)
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time"] = f"{processing_time_ms}ms"

        if self.log_requests:
            if response.status_code >= 500:
                log_level = logging.ERROR
            elif response.status_code >= 400:
                log_level = logging.WARNING
            else:
                log_level = logging.INFO
            logger.log(
                log_level,
                f"Response {response.status_code} for {request.method} {request.url.path} ({processing_time_ms}ms)",
                extra={
                    "request_id": request_id,
                    "status_code": response.status_code,
                    "processing_time_ms": processing_time_ms,
                },
            )
        return response
