"""
Dedup Guard Port

Architectural Intent:
- Port interface for the mutual exclusion that prevents two concurrent
  creations of the same PagerDuty incident
- Injected into the incident-creation use case instead of held as global state

Design Decisions:
- hold() is an async context manager yielding True when the caller owns the
  key, False when it waited out a concurrent holder
- Waiting is a single bounded delay, never a queue
"""

from typing import AsyncContextManager, Protocol, runtime_checkable


@runtime_checkable
class DedupGuardPort(Protocol):
    """Port for per-key in-flight creation locking."""

    def hold(self, key: str) -> AsyncContextManager[bool]:
        """Enter the critical section for *key*; release is guaranteed on exit."""
        ...

    def is_held(self, key: str) -> bool:
        """Return True while a creation for *key* is in flight."""
        ...
