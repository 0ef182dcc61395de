# Overview: Last-request-wins bookkeeping for superseded analytics requests.

from __future__ import annotations

import math
import threading


class RequestGate:
    """
    Tracks the newest request token per (user, view).

    A client tags each fetch with a monotonically increasing token (issue
    timestamp or sequence number). When a slower, older request finishes
    after a newer one was issued, its result must be discarded rather than
    shown. Ordering is by token, not by completion.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._latest: dict[tuple[str, str], float] = {}

    def begin(self, user_id: str, view: str, token: float) -> bool:
        """Register a request; False if a newer one was already seen."""
        if not math.isfinite(token):
            raise ValueError(f"Request token must be a finite number, got {token!r}")
        key = (user_id, view)
        with self._lock:
            latest = self._latest.get(key)
            if latest is not None and token < latest:
                return False
            self._latest[key] = token
            return True

    def is_current(self, user_id: str, view: str, token: float) -> bool:
        with self._lock:
            latest = self._latest.get((user_id, view))
            return latest is None or token >= latest

    def reset(self) -> None:
        with self._lock:
            self._latest.clear()


gate = RequestGate()
