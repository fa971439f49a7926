"""Entity id generation.

Ids stay integers derived from wall-clock milliseconds so persisted documents
remain readable, but the generator never hands out the same value twice within
one process: when two entities are created in the same millisecond, the second
one gets ``previous + 1``.
"""
from __future__ import annotations

import threading
import time
from typing import Callable


class IdGenerator:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            candidate = int(self._clock() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate

    def __call__(self) -> int:
        return self.next_id()


__all__ = ["IdGenerator"]
