"""Fill in a missing ``id`` or ``path`` from the slots the caller sent.

The model is told to address slots by ``id`` or ``path``; it often returns
only one of them. The missing half is recovered from the dictionary first
and the image slots second. Within a collection the earliest matching entry
wins; duplicates in the input are not an error.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional, Tuple


def _field(entry: Any, name: str) -> Any:
    if isinstance(entry, dict):
        return entry.get(name)
    return getattr(entry, name, None)


def _as_identifier(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def find_slot(candidate_id: Optional[str], candidate_path: Optional[str], entries: Iterable[Any]) -> Any:
    """Return the first entry whose path or id equals the candidate's."""
    for entry in entries or ():
        if candidate_path is not None and _field(entry, "path") == candidate_path:
            return entry
        if candidate_id is not None and _field(entry, "id") == candidate_id:
            return entry
    return None


def resolve_identifiers(
    candidate_id: Any,
    candidate_path: Any,
    dictionary: Iterable[Any],
    image_slots: Iterable[Any] = (),
) -> Tuple[str, str]:
    """Return the ``(id, path)`` pair for an edit candidate.

    Values the candidate carries are kept as-is; only absent ones are looked
    up. Anything still unresolved becomes an empty string.
    """
    edit_id = _as_identifier(candidate_id)
    edit_path = _as_identifier(candidate_path)
    if edit_id is not None and edit_path is not None:
        return edit_id, edit_path

    source = find_slot(edit_id, edit_path, dictionary)
    if source is None:
        source = find_slot(edit_id, edit_path, image_slots)

    if edit_id is None:
        edit_id = _as_identifier(_field(source, "id")) if source is not None else None
    if edit_path is None:
        edit_path = _as_identifier(_field(source, "path")) if source is not None else None
    return edit_id or "", edit_path or ""
