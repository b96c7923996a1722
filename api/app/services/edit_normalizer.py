"""Turn raw model output into validated edit records.

The root of the response must be a JSON array, otherwise the whole
response is rejected. Individual elements are distrusted instead: anything
that does not address a slot, carries no usable change, or only carries
changes the caller did not allow is dropped quietly.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from ..models.edits import (
    EditRecord,
    ImageChange,
    ImageRef,
    LinkChange,
    LinkTarget,
    TextChange,
)
from .capabilities import filter_by_capabilities, has_payload, parse_capabilities
from .guardrails import EDITS_CONTRACT, decode_model_json
from .resolver import resolve_identifiers

logger = logging.getLogger(__name__)


def coerce_text(value: Any) -> str:
    """String form of a JSON value, as a JavaScript client would print it."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _scalar_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return coerce_text(value)


def _optional_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, int) and value >= 0:
        return value
    return None


def _attachment_id(value: Any) -> Optional[Any]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _validated(model, value: Any):
    if not isinstance(value, dict):
        return None
    try:
        return model.model_validate(value)
    except ValidationError as e:
        logger.debug("Dropping malformed %s from model output: %s", model.__name__, e.errors())
        return None


def _candidate_payload(item: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy the recognised payload fields of one model element."""
    payload: Dict[str, Any] = {}
    if item.get("new_text") is not None:
        payload["new_text"] = coerce_text(item["new_text"])
        if item.get("field") is not None:
            payload["field"] = item["field"]
        if item.get("item_index") is not None:
            payload["item_index"] = item["item_index"]
    for name in ("new_url", "new_link", "new_image_url", "new_attachment_id", "new_image"):
        if item.get(name) is not None:
            payload[name] = item[name]
    return payload


def build_record(edit_id: str, edit_path: str, payload: Mapping[str, Any]) -> Optional[EditRecord]:
    """Assemble an EditRecord from a capability-filtered payload.

    Payload values with an unusable shape are dropped one by one; the
    record itself is dropped when nothing is left.
    """
    text = link = image = None

    if "new_text" in payload:
        text = TextChange(
            new_text=payload["new_text"],
            field=_scalar_text(payload.get("field")),
            item_index=_optional_index(payload.get("item_index")),
        )

    new_url = _scalar_text(payload.get("new_url"))
    new_link = _validated(LinkTarget, payload.get("new_link"))
    if new_url is not None or new_link is not None:
        link = LinkChange(new_url=new_url, new_link=new_link)

    new_image_url = _scalar_text(payload.get("new_image_url"))
    new_attachment_id = _attachment_id(payload.get("new_attachment_id"))
    new_image = _validated(ImageRef, payload.get("new_image"))
    if new_image_url is not None or new_attachment_id is not None or new_image is not None:
        image = ImageChange(
            new_image_url=new_image_url,
            new_attachment_id=new_attachment_id,
            new_image=new_image,
        )

    if text is None and link is None and image is None:
        return None
    if not edit_id and not edit_path:
        return None
    return EditRecord(id=edit_id, path=edit_path, text=text, link=link, image=image)


def normalize_edit_response(
    raw: Optional[str],
    dictionary: Sequence[Any],
    image_slots: Sequence[Any] = (),
    capabilities: Iterable[Any] = ("text",),
) -> List[EditRecord]:
    """Parse model text into edit records, in the order the model gave them.

    Raises InvalidResponseError when the text is not a JSON array.
    """
    items = decode_model_json(raw, EDITS_CONTRACT)
    slots = image_slots if isinstance(image_slots, (list, tuple)) else []
    allowed = parse_capabilities(capabilities)

    edits: List[EditRecord] = []
    dropped = 0
    for item in items:
        if not isinstance(item, dict) or (item.get("id") is None and item.get("path") is None):
            dropped += 1
            continue
        if not has_payload(item):
            dropped += 1
            continue

        edit_id, edit_path = resolve_identifiers(item.get("id"), item.get("path"), dictionary, slots)
        payload = filter_by_capabilities(_candidate_payload(item), allowed)
        record = build_record(edit_id, edit_path, payload) if payload else None
        if record is None:
            dropped += 1
            continue
        edits.append(record)

    if dropped:
        logger.info(
            f"Dropped {dropped} of {len(items)} model edits",
            extra={"edits_received": len(items), "edits_dropped": dropped},
        )
    return edits
