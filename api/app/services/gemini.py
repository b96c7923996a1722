"""Gemini text generation over the public REST API."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import httpx

from ..core.config import settings
from ..models.exceptions import ModelInvocationError

logger = logging.getLogger(__name__)


def _api_key() -> Optional[str]:
    return os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")


def _headers(api_key: str) -> Dict[str, str]:
    return {
        "x-goog-api-key": api_key,
        "Content-Type": "application/json",
    }


def _extract_text(response: Dict[str, Any]) -> Optional[str]:
    """Concatenate the text parts of the first candidate.

    Returns None when the payload has no usable candidate.
    """
    candidates = response.get("candidates") or []
    if not candidates:
        return None
    first = candidates[0] if isinstance(candidates, list) else None
    if not isinstance(first, dict):
        return None
    content = first.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    parts = parts if isinstance(parts, list) else []
    texts = [p.get("text", "") for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
    return "".join(texts)


async def generate_text(prompt: str, model: Optional[str] = None) -> str:
    """Send one prompt and return the model's raw text.

    Empty text comes back as "[]". No retries: any transport or provider
    failure raises ModelInvocationError.
    """
    api_key = _api_key()
    if not api_key:
        raise ModelInvocationError("GOOGLE_API_KEY or GEMINI_API_KEY is required")

    model_name = model or settings.gemini_model
    url = f"{settings.gemini_api_base}/models/{model_name}:generateContent"
    payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

    logger.debug(f"Gemini request: model={model_name}, prompt_chars={len(prompt)}")
    try:
        async with httpx.AsyncClient(timeout=float(settings.gemini_timeout)) as client:
            resp = await client.post(url, headers=_headers(api_key), json=payload)
            resp.raise_for_status()
            result = resp.json()
    except httpx.HTTPStatusError as e:
        raise ModelInvocationError(
            f"Gemini API error {e.response.status_code}",
            status_code=e.response.status_code,
            model=model_name,
        ) from e
    except httpx.TimeoutException as e:
        raise ModelInvocationError("Gemini request timed out", model=model_name) from e
    except httpx.HTTPError as e:
        raise ModelInvocationError(f"Gemini request failed: {e}", model=model_name) from e
    except ValueError as e:
        raise ModelInvocationError(f"Invalid JSON from Gemini: {e}", model=model_name) from e

    text = _extract_text(result) if isinstance(result, dict) else None
    if text is None:
        raise ModelInvocationError("No response from Gemini", model=model_name)
    return text or "[]"


async def health_check() -> bool:
    """Check that the Gemini API key is configured and accepted."""
    api_key = _api_key()
    if not api_key:
        logger.warning("Gemini API key not configured")
        return False
    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{settings.gemini_api_base}/models",
                headers=_headers(api_key),
                timeout=10.0,
            )
            return response.status_code == 200
    except httpx.HTTPError as e:
        logger.error(f"Gemini health check failed: {e}")
        return False
