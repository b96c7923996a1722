from __future__ import annotations

import hashlib
import time
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Optional

import logging

logger = logging.getLogger(__name__)


class Trace:
    """Timed spans for one pipeline run."""

    def __init__(self, name: str, trace_id: Optional[str] = None):
        self.name = name
        self.id = trace_id or str(uuid.uuid4())
        self.spans: list[dict] = []
        self.llm_calls: list[dict] = []

    def log_llm_call(self, model: str, prompt: str, completion: str, latency_ms: int) -> None:
        """Record a model call; prompt and completion are kept as hashes only."""
        llm_call = {
            "timestamp": time.time(),
            "model": model,
            "prompt_hash": hashlib.sha256((prompt or "").encode("utf-8")).hexdigest(),
            "completion_hash": hashlib.sha256((completion or "").encode("utf-8")).hexdigest(),
            "prompt_chars": len(prompt or ""),
            "completion_chars": len(completion or ""),
            "latency_ms": latency_ms,
        }
        self.llm_calls.append(llm_call)
        logger.info(
            f"LLM call tracked: model={model}, latency={latency_ms}ms",
            extra={"trace_id": self.id, "model": model, "latency_ms": latency_ms},
        )

    @contextmanager
    def span(self, name: str, meta: Optional[Dict[str, Any]] = None):
        """Create a span for tracking operation timing and metadata."""
        start = time.time()
        span = {"name": name, "start": start, "meta": meta or {}}
        try:
            yield span
            span["status"] = "OK"
        except Exception as e:  # noqa: BLE001
            span["status"] = "ERROR"
            span["error"] = str(e)
            raise
        finally:
            span["end"] = time.time()
            span["duration_ms"] = int((span["end"] - start) * 1000)
            self.spans.append(span)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the trace for logging."""
        return {
            "trace_id": self.id,
            "name": self.name,
            "spans": {span["name"]: span["duration_ms"] for span in self.spans},
            "llm_call_count": len(self.llm_calls),
            "duration_ms": sum(span.get("duration_ms", 0) for span in self.spans),
        }
