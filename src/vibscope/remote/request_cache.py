"""De-duplication of identical API requests.

Identical requests issued while one is already running share its outcome,
and a completed response is reused for a short TTL. Failed fetches are never
cached.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _InFlight:
    done: threading.Event = field(default_factory=threading.Event)
    value: Any = None
    error: Optional[BaseException] = None


@dataclass
class _Entry(Generic[T]):
    value: T
    expires_at: float


class RequestCoalescer:
    """
    Bounded TTL cache keyed by request URL (or any hashable key).

    Parameters
    ----------
    ttl_seconds:
        How long a completed response is served from the cache.
    max_entries:
        Upper bound on cached responses; the least recently used is evicted.
    clock:
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = 0.5,
        max_entries: int = 64,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.ttl_seconds = max(0.0, float(ttl_seconds))
        self.max_entries = int(max_entries)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: "OrderedDict[Hashable, _Entry[Any]]" = OrderedDict()
        self._in_flight: Dict[Hashable, _InFlight] = {}

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _purge_expired(self) -> None:
        now = self._clock()
        stale = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in stale:
            del self._entries[key]

    def get(self, key: Hashable, fetch: Callable[[], T]) -> T:
        """
        Return the cached response for ``key`` or run ``fetch`` once.

        Concurrent callers with the same key wait for the running fetch and
        receive its value, or its exception re-raised.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if entry.expires_at > self._clock():
                    self._entries.move_to_end(key)
                    logger.debug("Request cache hit for %s", key)
                    return entry.value
                del self._entries[key]

            pending = self._in_flight.get(key)
            owner = pending is None
            if owner:
                pending = _InFlight()
                self._in_flight[key] = pending

        if not owner:
            logger.debug("Joining in-flight request for %s", key)
            pending.done.wait()
            if pending.error is not None:
                raise pending.error
            return pending.value

        try:
            value = fetch()
        except BaseException as exc:
            pending.error = exc
            with self._lock:
                self._in_flight.pop(key, None)
            pending.done.set()
            raise

        pending.value = value
        with self._lock:
            self._in_flight.pop(key, None)
            if self.ttl_seconds > 0:
                self._entries[key] = _Entry(value, self._clock() + self.ttl_seconds)
                self._entries.move_to_end(key)
                self._purge_expired()
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("Evicted %s from request cache", evicted)
        pending.done.set()
        return value
