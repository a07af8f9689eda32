"""Single-slot TTL cache for the merged event list."""
from __future__ import annotations

import threading
import time
from typing import Callable

from campushub.log import get_logger
from campushub.models import NormalizedEvent

log = get_logger(__name__)


class EventCache:
    """Holds one merged, unfiltered event list for ``ttl`` seconds.

    The slot is replaced whole; readers never observe a partial list.
    """

    def __init__(self, ttl: float = 180.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self.timestamp: float | None = None
        self.data: tuple[NormalizedEvent, ...] = ()

    def get(self) -> list[NormalizedEvent] | None:
        with self._lock:
            ts, data = self.timestamp, self.data
        if ts is None or self._clock() - ts >= self.ttl:
            return None
        return list(data)

    def put(self, events: list[NormalizedEvent]) -> None:
        snapshot = tuple(events)
        with self._lock:
            self.timestamp = self._clock()
            self.data = snapshot
        log.debug("Cached %d event(s) for %.0fs", len(snapshot), self.ttl)

    def clear(self) -> None:
        with self._lock:
            self.timestamp = None
            self.data = ()

    def age(self) -> float | None:
        with self._lock:
            ts = self.timestamp
        return None if ts is None else self._clock() - ts
