from __future__ import annotations

import hmac
import logging
from typing import Any, Optional

from fastapi import Request

from .config import settings
from ..models.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

SERVICE_KEY_HEADER = "X-Service-Key"


def verify_service_key(provided: Optional[str], secret: Optional[str]) -> bool:
    """Check a shared-secret header value.

    Auth is disabled (always passes) when no secret is configured.
    """
    if not secret:
        return True
    if not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), secret.encode("utf-8"))


def extract_service_key(headers: Any) -> Optional[str]:
    return headers.get(SERVICE_KEY_HEADER) if hasattr(headers, "get") else None


async def require_service_key(request: Request) -> None:
    """FastAPI dependency guarding the edit and audit routes."""
    if verify_service_key(extract_service_key(request.headers), settings.service_secret):
        return
    logger.warning(
        f"[{request.method} {request.url.path}] Auth failed: invalid or missing {SERVICE_KEY_HEADER}",
        extra={"path": request.url.path},
    )
    raise UnauthorizedError()
