"""Instruction-to-edit pipeline: compile prompt, call the model, normalize.

The model call is the only awaited step. Everything else is a pure
transformation of the request, so concurrent requests share nothing but
the audit log kept by the router.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable, List, Optional, Tuple, Union

from pydantic import ValidationError

from ..core.config import settings
from ..models.edits import EditRecord, KitPatch
from ..models.exceptions import InvalidInputError
from ..models.schemas import ContextType, KitEditRequest, PageEditRequest
from .edit_normalizer import normalize_edit_response
from .kit_normalizer import normalize_kit_response
from .prompts import compile_edit_prompt, compile_kit_prompt
from .tracing import Trace

logger = logging.getLogger(__name__)

ModelInvoker = Callable[[str], Awaitable[str]]
EditRequest = Union[PageEditRequest, KitEditRequest]


def detect_context(body: Any) -> ContextType:
    """A body asking for a kit edit names ``context: "kit"`` or carries ``kit_settings``."""
    if isinstance(body, dict) and (body.get("context") == ContextType.KIT.value or "kit_settings" in body):
        return ContextType.KIT
    return ContextType.PAGE


def parse_edit_request(body: Any) -> Tuple[ContextType, EditRequest]:
    """Validate the posted body for its context.

    Raises InvalidInputError with the message the editor plugin expects.
    """
    context = detect_context(body)
    if context is ContextType.KIT:
        model, message = KitEditRequest, "Missing kit_settings or instruction"
    else:
        model, message = PageEditRequest, "Missing dictionary or instruction"

    if not isinstance(body, dict):
        raise InvalidInputError(message)
    try:
        return context, model.model_validate(body)
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        logger.warning(f"Request validation failed: {message}", extra={"invalid_fields": fields})
        raise InvalidInputError(message, field=",".join(fields) or None) from e


async def _invoke(invoke_model: ModelInvoker, prompt: str, trace: Trace) -> str:
    with trace.span("invoke_model", {"prompt_chars": len(prompt)}):
        start = time.time()
        raw = await invoke_model(prompt)
        trace.log_llm_call(
            model=settings.gemini_model,
            prompt=prompt,
            completion=raw or "",
            latency_ms=int((time.time() - start) * 1000),
        )
    return raw


async def run_page_edit(
    request: PageEditRequest,
    invoke_model: ModelInvoker,
    trace: Optional[Trace] = None,
) -> List[EditRecord]:
    trace = trace or Trace("page_edit")
    with trace.span("compile_prompt"):
        prompt = compile_edit_prompt(
            request.dictionary,
            request.instruction,
            request.image_slots,
            request.edit_capabilities,
        )

    raw = await _invoke(invoke_model, prompt, trace)

    with trace.span("normalize_edits"):
        edits = normalize_edit_response(
            raw,
            request.dictionary,
            request.image_slots,
            request.edit_capabilities,
        )

    logger.info(
        f"Page edit produced {len(edits)} edits",
        extra={
            "dictionary_size": len(request.dictionary),
            "image_slots": len(request.image_slots),
            "edit_capabilities": request.edit_capabilities,
            "edits_count": len(edits),
            "trace": trace.get_summary(),
        },
    )
    return edits


async def run_kit_edit(
    request: KitEditRequest,
    invoke_model: ModelInvoker,
    trace: Optional[Trace] = None,
) -> KitPatch:
    trace = trace or Trace("kit_edit")
    with trace.span("compile_prompt"):
        prompt = compile_kit_prompt(request.kit_settings, request.instruction)

    raw = await _invoke(invoke_model, prompt, trace)

    with trace.span("normalize_kit_patch"):
        kit_patch = normalize_kit_response(raw)

    logger.info(
        "Kit edit produced patch",
        extra={
            "colors_count": len(kit_patch.colors or []),
            "typography_count": len(kit_patch.typography or []),
            "has_settings": kit_patch.settings is not None,
            "trace": trace.get_summary(),
        },
    )
    return kit_patch
