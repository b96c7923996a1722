"""Turn raw model output into a validated theme kit patch.

Only ``colors``, ``typography`` and ``settings`` are ever read from the
model's object; every other key is ignored. A list key is emitted only when
at least one of its entries survives filtering.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..models.edits import TYPOGRAPHY_PREFIX, KitColor, KitPatch, KitTypography
from .edit_normalizer import coerce_text
from .guardrails import KIT_PATCH_CONTRACT, decode_model_json

logger = logging.getLogger(__name__)


def _color_value(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return coerce_text(value).strip()


def normalize_colors(entries: List[Any]) -> List[KitColor]:
    colors: List[KitColor] = []
    for entry in entries:
        if not isinstance(entry, dict) or entry.get("_id") is None:
            continue
        value = _color_value(entry.get("value"))
        if not value:
            continue
        title = entry.get("title")
        colors.append(KitColor(
            _id=coerce_text(entry["_id"]),
            title=coerce_text(title) if title is not None else "",
            value=value,
        ))
    return colors


def normalize_typography(entries: List[Any]) -> List[KitTypography]:
    typography: List[KitTypography] = []
    for entry in entries:
        if not isinstance(entry, dict) or entry.get("_id") is None:
            continue
        fields: Dict[str, Any] = {
            key: value
            for key, value in entry.items()
            if isinstance(key, str) and key.startswith(TYPOGRAPHY_PREFIX) and value is not None
        }
        if not fields:
            continue
        title = entry.get("title")
        typography.append(KitTypography(
            _id=coerce_text(entry["_id"]),
            title=coerce_text(title) if title is not None else None,
            **fields,
        ))
    return typography


def normalize_kit_response(raw: Optional[str]) -> KitPatch:
    """Parse model text into a KitPatch.

    Raises InvalidResponseError when the text is not a JSON object.
    """
    obj = decode_model_json(raw, KIT_PATCH_CONTRACT, "Invalid LLM response for kit")

    colors = typography = settings = None
    raw_colors = obj.get("colors")
    if isinstance(raw_colors, list) and raw_colors:
        colors = normalize_colors(raw_colors) or None
        if colors is None:
            logger.info("All kit colors dropped", extra={"colors_received": len(raw_colors)})

    raw_typography = obj.get("typography")
    if isinstance(raw_typography, list) and raw_typography:
        typography = normalize_typography(raw_typography) or None
        if typography is None:
            logger.info("All kit typography entries dropped", extra={"typography_received": len(raw_typography)})

    if isinstance(obj.get("settings"), dict):
        settings = obj["settings"]

    return KitPatch(colors=colors, typography=typography, settings=settings)
