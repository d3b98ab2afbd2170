"""The identifier of the current test session."""

from __future__ import annotations

import threading
import uuid
from typing import Optional

_lock = threading.Lock()
_session_id: Optional[uuid.UUID] = None


def session_id() -> uuid.UUID:
    """Return the session identifier, created once per process."""
    global _session_id
    with _lock:
        if _session_id is None:
            _session_id = uuid.uuid4()
        return _session_id