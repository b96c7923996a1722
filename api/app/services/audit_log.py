"""In-memory buffer of recently processed edit requests.

A debugging aid for the editor plugin's operators: the last ``capacity``
request/response pairs, newest first. Nothing is persisted; the buffer is
empty after a restart.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, List

from ..models.schemas import AuditRecord, ContextType

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50


class AuditLog:
    """Bounded, thread-safe, newest-first record of processed requests."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("audit log capacity must be at least 1")
        self.capacity = capacity
        self._records: Deque[AuditRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def record(self, request_id: str, body: Any, response: Any, context_type: Any = ContextType.PAGE) -> AuditRecord:
        """Insert a record at the front, evicting the oldest beyond capacity."""
        kind = ContextType.KIT if context_type in (ContextType.KIT, ContextType.KIT.value) else ContextType.PAGE
        entry = AuditRecord(
            id=request_id,
            timestamp=datetime.now(timezone.utc).isoformat(),
            body=copy.deepcopy(body),
            response=copy.deepcopy(response),
            context_type=kind,
        )
        with self._lock:
            evicting = len(self._records) == self.capacity
            self._records.appendleft(entry)
        if evicting:
            logger.debug("Audit log full, evicted oldest record", extra={"capacity": self.capacity})
        return entry

    def list(self) -> List[AuditRecord]:
        """Snapshot of the records, newest first."""
        with self._lock:
            snapshot = list(self._records)
        return [copy.deepcopy(entry) for entry in snapshot]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
