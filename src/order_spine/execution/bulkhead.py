"""Bulkhead — admission control for concurrent invocations.

Caps how many invocations of one operation kind may be in flight at
once.  An invocation arriving at capacity is rejected immediately; there
is no wait queue.  Isolating each operation kind this way keeps a slow
store query from starving checkouts (and vice versa).

ARCHITECTURE
────────────
::

    Bulkhead(name, max_concurrent)
      ├── .try_acquire()   ─ non-blocking admission
      ├── .release()       ─ free one slot
      ├── .admit()         ─ context manager, raises BulkheadFullError
      ├── .in_flight       ─ current occupancy
      └── .stats           ─ admitted / rejected counters

Example::

    bulkhead = Bulkhead("addOrder", max_concurrent=6)
    with bulkhead.admit():
        checkout()
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from order_spine.core.errors import BulkheadFullError
from order_spine.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class BulkheadStats:
    """Admission counters."""

    admitted: int = 0
    rejected: int = 0
    peak_in_flight: int = 0


class Bulkhead:
    """Non-queueing concurrency cap for one operation kind."""

    def __init__(self, name: str, max_concurrent: int):
        """Initialize with a name and a capacity.

        Args:
            name: Operation kind this bulkhead isolates
            max_concurrent: Maximum in-flight invocations (>= 1)
        """
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {max_concurrent}")
        self.name = name
        self.max_concurrent = max_concurrent
        self._in_flight = 0
        self._lock = threading.Lock()
        self._stats = BulkheadStats()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    @property
    def stats(self) -> BulkheadStats:
        return self._stats

    def try_acquire(self) -> bool:
        """Take a slot if one is free.

        Returns:
            True if admitted, False if at capacity
        """
        with self._lock:
            if self._in_flight >= self.max_concurrent:
                self._stats.rejected += 1
                return False
            self._in_flight += 1
            self._stats.admitted += 1
            self._stats.peak_in_flight = max(self._stats.peak_in_flight, self._in_flight)
            return True

    def release(self) -> None:
        """Free a slot taken by ``try_acquire``."""
        with self._lock:
            if self._in_flight == 0:
                raise RuntimeError(f"Bulkhead '{self.name}' released more than acquired")
            self._in_flight -= 1

    @contextmanager
    def admit(self) -> Iterator[None]:
        """Hold a slot for the duration of the block.

        Raises:
            BulkheadFullError: If no slot is free
        """
        if not self.try_acquire():
            logger.warning(
                "bulkhead_rejected",
                bulkhead=self.name,
                max_concurrent=self.max_concurrent,
            )
            raise BulkheadFullError(
                f"Bulkhead '{self.name}' is at capacity ({self.max_concurrent})"
            )
        try:
            yield
        finally:
            self.release()
