from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator

from ..models.exceptions import InvalidResponseError

EDITS_CONTRACT = "edits.json"
KIT_PATCH_CONTRACT = "kit_patch.json"

_GUARDRAILS_DIR = Path(__file__).resolve().parent.parent / "guardrails"
_SCHEMA_CACHE: Dict[str, Draft7Validator] = {}

# The whole trimmed text must be one fenced block, optionally tagged json.
_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)```\s*$", re.DOTALL)


def _load_schema(name: str) -> Draft7Validator:
    if name in _SCHEMA_CACHE:
        return _SCHEMA_CACHE[name]

    with open(_GUARDRAILS_DIR / name, "r", encoding="utf-8") as f:
        schema = json.load(f)
    validator = Draft7Validator(schema)
    _SCHEMA_CACHE[name] = validator
    return validator


def validate_contract(name: str, payload: Any, message: str = "Invalid LLM response") -> None:
    validator = _load_schema(name)
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.path))
    if errors:
        msgs = [f"{list(e.path)}: {e.message}" for e in errors]
        raise InvalidResponseError(message, contract=name, errors=msgs)


def unwrap_code_fence(raw: Optional[str]) -> str:
    """Strip a surrounding ```/```json fence, if the text is exactly one."""
    text = (raw or "").strip()
    match = _CODE_FENCE.match(text)
    if match:
        text = match.group(1).strip()
    return text


def reject_constant(name: str) -> Any:
    """``parse_constant`` hook: NaN and Infinity are not JSON."""
    raise ValueError(f"{name} is not valid JSON")


def decode_model_json(raw: Optional[str], contract: str, message: str = "Invalid LLM response") -> Any:
    """Decode untrusted model text and assert its root shape.

    Raises InvalidResponseError when the text is not JSON or does not
    satisfy ``contract``.
    """
    text = unwrap_code_fence(raw)
    try:
        payload = json.loads(text, parse_constant=reject_constant)
    except (TypeError, ValueError, RecursionError) as e:
        raise InvalidResponseError(message, contract=contract, errors=[f"not JSON: {e}"]) from e
    validate_contract(contract, payload, message)
    return payload
