"""
In-Memory Dedup Guard

Architectural Intent:
- Implements DedupGuardPort with a mutex-protected set of in-flight keys
- Sufficient for a single-process deployment; scaled out, PagerDuty's own
  incident_key uniqueness remains the authoritative guard

Design Decisions:
- A contended caller waits one fixed delay, then proceeds without ownership
  (it re-checks remote state rather than queueing)
- Keys are released in a finally block, on success, skip, and failure alike
- threading.Lock keeps the set consistent even if handlers run off-loop
"""

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

logger = logging.getLogger(__name__)


class InMemoryDedupGuard:
    def __init__(
        self,
        contention_delay: float = 3.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.contention_delay = contention_delay
        self._sleep = sleep
        self._lock = threading.Lock()
        self._in_flight: set[str] = set()

    def _try_acquire(self, key: str) -> bool:
        with self._lock:
            if key in self._in_flight:
                return False
            self._in_flight.add(key)
            return True

    def _release(self, key: str) -> None:
        with self._lock:
            self._in_flight.discard(key)

    def is_held(self, key: str) -> bool:
        with self._lock:
            return key in self._in_flight

    @property
    def in_flight(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._in_flight)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[bool]:
        owner = self._try_acquire(key)
        if not owner:
            logger.info(
                "Creation already in progress for %s, waiting %.1fs", key, self.contention_delay
            )
            await self._sleep(self.contention_delay)
        try:
            yield owner
        finally:
            if owner:
                self._release(key)
