import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.structured_logging import setup_logging
from .middleware.request_context import RequestContextMiddleware
from .middleware.request_size_limit import RequestSizeLimitMiddleware
from .models.exceptions import EditServiceException, to_error_payload
from .routers import edits, health
from .services.audit_log import AuditLog
from .services.edit_pipeline import ModelInvoker
from .services.gemini import generate_text

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


def create_app(
    audit_log: Optional[AuditLog] = None,
    invoke_model: Optional[ModelInvoker] = None,
) -> FastAPI:
    """Build the service. Tests pass their own audit log and model stub."""
    app = FastAPI(
        title=settings.service_name,
        description="AI Edit Service - natural-language edits for page content and theme kits",
        version="1.0.0",
    )
    app.state.audit_log = audit_log if audit_log is not None else AuditLog(capacity=settings.audit_capacity)
    app.state.invoke_model = invoke_model if invoke_model is not None else generate_text

    # Added last runs first: request id is assigned before the size check logs.
    app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.max_request_size)

    origins = [o.strip() for o in (settings.cors_allow_origins or "").split(",") if o.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "X-Service-Key", "X-Request-ID"],
        )

    app.add_middleware(RequestContextMiddleware)

    @app.exception_handler(EditServiceException)
    async def edit_service_exception_handler(request: Request, exc: EditServiceException):
        """Report service errors in the plugin's error contract (status 200)."""
        return JSONResponse(status_code=200, content=to_error_payload(exc))

    app.include_router(health.router, tags=["health"])
    app.include_router(edits.router, tags=["edits"])

    if not settings.service_secret:
        logger.warning("SERVICE_SECRET not set; /edits and /requests are unauthenticated")
    return app


app = create_app()


def run() -> None:
    import uvicorn

    logger.info(f"AI Edit Service listening on port {settings.port}")
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
