from __future__ import annotations

from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple


class Capability(str, Enum):
    """Edit kinds a caller can allow."""
    TEXT = "text"
    URL = "url"
    IMAGE = "image"


DEFAULT_CAPABILITIES: FrozenSet[Capability] = frozenset({Capability.TEXT})

# Payload keys gated by each capability. ``field``/``item_index`` only
# qualify a text change and never count as a payload on their own.
CAPABILITY_FIELDS: Dict[Capability, Tuple[str, ...]] = {
    Capability.TEXT: ("new_text", "field", "item_index"),
    Capability.URL: ("new_url", "new_link"),
    Capability.IMAGE: ("new_image_url", "new_attachment_id", "new_image"),
}

PAYLOAD_FIELDS: Tuple[str, ...] = (
    "new_text",
    "new_url",
    "new_link",
    "new_image_url",
    "new_attachment_id",
    "new_image",
)


def parse_capabilities(values: Any) -> FrozenSet[Capability]:
    """Map caller-supplied tags to known capabilities.

    Unknown tags are ignored. A non-list value falls back to text only.
    """
    if isinstance(values, (set, frozenset)):
        values = list(values)
    if not isinstance(values, (list, tuple)):
        return DEFAULT_CAPABILITIES
    known = set()
    for value in values:
        try:
            known.add(Capability(value))
        except ValueError:
            continue
    return frozenset(known)


def has_payload(candidate: Mapping[str, Any]) -> bool:
    return any(candidate.get(name) is not None for name in PAYLOAD_FIELDS)


def filter_by_capabilities(
    candidate: Mapping[str, Any],
    capabilities: Iterable[Capability],
) -> Optional[Dict[str, Any]]:
    """Keep only the payload fields the capabilities allow.

    Returns None when no payload field survives; the caller drops the edit.
    """
    allowed = set(capabilities)
    out: Dict[str, Any] = {}
    for capability, names in CAPABILITY_FIELDS.items():
        if capability not in allowed:
            continue
        for name in names:
            if candidate.get(name) is not None:
                out[name] = candidate[name]
    if "new_text" not in out:
        out.pop("field", None)
        out.pop("item_index", None)
    return out if has_payload(out) else None
