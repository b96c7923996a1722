from __future__ import annotations

import json
import logging
from typing import Any, Dict
from uuid import uuid4

from fastapi import APIRouter, Depends, Request

from ..core.security import require_service_key
from ..models.exceptions import EditServiceException, to_error_payload
from ..models.schemas import ContextType
from ..services.audit_log import AuditLog
from ..services.edit_pipeline import (
    ModelInvoker,
    detect_context,
    parse_edit_request,
    run_kit_edit,
    run_page_edit,
)
from ..services.guardrails import reject_constant
from ..services.tracing import Trace

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_service_key)])


def get_audit_log(request: Request) -> AuditLog:
    return request.app.state.audit_log


def get_model_invoker(request: Request) -> ModelInvoker:
    return request.app.state.invoke_model


async def _read_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw, parse_constant=reject_constant)
    except (ValueError, RecursionError):
        return None


@router.post("/edits")
async def create_edits(
    request: Request,
    audit_log: AuditLog = Depends(get_audit_log),
    invoke_model: ModelInvoker = Depends(get_model_invoker),
) -> Dict[str, Any]:
    """
    Turn an instruction into edits for the posted context.

    Flow:
    1. Validate the page (dictionary) or kit (kit_settings) context
    2. Compile the prompt and call the model
    3. Normalize the model's text into edits or a kit patch
    4. Record request and response in the audit log

    Errors are reported as ``{"error": message}`` with status 200, which is
    what the editor plugin reads.
    """
    request_id = getattr(request.state, "request_id", None) or uuid4().hex[:8]
    body = await _read_body(request)
    context = detect_context(body)
    trace = Trace(f"{context.value}_edit", trace_id=request_id)

    logger.info(f"[{request_id}] POST /edits - request received", extra={"context_type": context.value})

    try:
        context, edit_request = parse_edit_request(body)
        if context is ContextType.KIT:
            kit_patch = await run_kit_edit(edit_request, invoke_model, trace=trace)
            response: Dict[str, Any] = {"kit_patch": kit_patch.to_payload()}
        else:
            edits = await run_page_edit(edit_request, invoke_model, trace=trace)
            response = {"edits": [edit.to_payload() for edit in edits]}
        logger.info(f"[{request_id}] POST /edits - success", extra={"context_type": context.value})
    except EditServiceException as e:
        logger.warning(
            f"[{request_id}] POST /edits - {e.__class__.__name__}: {e.message}",
            extra={"details": e.details},
        )
        response = to_error_payload(e)
    except Exception as e:  # noqa: BLE001
        logger.error(f"[{request_id}] POST /edits - error: {e}", exc_info=True)
        response = {"error": str(e) or "LLM request failed"}

    audit_log.record(request_id, body, response, context)
    return response


@router.get("/requests")
async def list_requests(audit_log: AuditLog = Depends(get_audit_log)) -> Dict[str, Any]:
    """Recently processed edit requests, newest first."""
    return {"requests": [entry.to_payload() for entry in audit_log.list()]}
