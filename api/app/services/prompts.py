from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Sequence

from pydantic import BaseModel

EDIT_SYSTEM = """You are a precise editor. You receive:
1. **Dictionary** — JSON array of text/link slots. Each entry has: id, path, widget_type, optional field, text, and optional link_url. If link_url is present, you may return a link edit for that slot (new_url or new_link with url, optional is_external, nofollow).
2. **Image slots** (when provided) — JSON array of image/background slots: { id, path, slot_type, el_type, image_url, image_id? }. You may return image edits for these by id or path using new_image_url and/or new_attachment_id, or new_image: { url?, id? }.
3. **edit_capabilities** — Array of allowed edit types (e.g. ["text","url","image"]). Return ONLY edit types that are in this array. If "image" is missing, do not return image edits; if "url" is missing, do not return link edits.
4. **User instruction** — Natural language instruction.

Output: One JSON array of edits. Each edit must have "id" or "path" (same as in the input). Then include only the edit types that apply and are allowed:
- **Text:** new_text (string). Optional: field, item_index (0-based). For heading widgets use plain text; for text-editor use HTML.
- **Links:** new_url (string) or new_link (object with url, optional is_external, nofollow) for dictionary slots that have link_url.
- **Images:** new_image_url and/or new_attachment_id, or new_image: { url?, id? } for slots from image_slots.
Return only the JSON array, no other text. If no changes are needed, return []."""

KIT_SYSTEM = """You are a theme/kit editor for Elementor. You receive:
1. **kit_settings** — Object with:
   - **colors** (array): System colors. Each item has _id (e.g. "primary", "secondary"), title, and value (hex string, e.g. "#1e3a5f").
   - **typography** (array): System typography. Each item has _id (e.g. "primary", "text"), title, and typography_* fields (typography_font_family, typography_font_size with { unit, size }, typography_font_weight, typography_line_height, typography_letter_spacing, etc.).
2. **User instruction** — Natural language (e.g. "Make primary color darker blue", "Use Roboto for headings").

Output: A single JSON object with optional "colors" and "typography" arrays. Include ONLY the items you want to change.
- **colors**: Each object MUST have _id (preserve from request), title, and value (hex string, e.g. "#0d1f36"). Omit colors array or use [] if no color changes.
- **typography**: Each object MUST have _id (preserve from request). Include title if you have it, and only the typography_* fields you want to set (e.g. typography_font_family, typography_font_size, typography_font_weight). For font_size use object: { "unit": "px", "size": number }. Omit typography array or use [] if no typography changes.
Return ONLY valid JSON: { "colors": [...], "typography": [...] } or {} or { "colors": [], "typography": [] }. No markdown, no explanation."""


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(exclude_none=True)
    return value


def _to_json(items: Any) -> str:
    if isinstance(items, (list, tuple)):
        items = [_plain(item) for item in items]
    else:
        items = _plain(items)
    return json.dumps(items, ensure_ascii=False, separators=(",", ":"))


def compile_edit_prompt(
    dictionary: Sequence[Any],
    instruction: str,
    image_slots: Sequence[Any] = (),
    capabilities: Iterable[str] = ("text",),
) -> str:
    """Render the content-edit prompt: contract first, then context and instruction."""
    capability_tags = [getattr(c, "value", c) for c in capabilities]
    parts = [
        f"Dictionary:\n{_to_json(list(dictionary))}",
        f"Edit capabilities (return only these types): {_to_json(capability_tags)}",
        f"User instruction: {instruction}",
    ]
    if image_slots:
        parts.insert(1, f"Image slots:\n{_to_json(list(image_slots))}")
    return f"{EDIT_SYSTEM}\n\n" + "\n\n".join(parts)


def compile_kit_prompt(kit_settings: Mapping[str, Any], instruction: str) -> str:
    """Render the kit-edit prompt."""
    user_part = f"kit_settings:\n{_to_json(dict(kit_settings))}\n\nUser instruction: {instruction}"
    return f"{KIT_SYSTEM}\n\n{user_part}"
