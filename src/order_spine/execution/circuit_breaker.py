"""Circuit breaker pattern for fault tolerance.

Prevents cascading failures by failing fast when the store or the cart
service keeps failing.  One breaker exists per operation kind and is
shared by every request of that kind.

States:
    CLOSED: Normal operation, requests pass through
    OPEN: Failing fast, requests rejected without invoking the operation
    HALF_OPEN: One probe request is let through to test recovery

Trip rule:
    The breaker keeps the outcomes of the last ``request_volume_threshold``
    calls.  Once that window is full and the failure share reaches
    ``failure_ratio``, the circuit opens.  After ``delay`` seconds the next
    request becomes the single half-open probe: success closes the circuit
    (clearing the window), failure re-opens it and restarts the delay.

Permits:
    ``allow_request`` hands out a ``CircuitPermit`` stamped with the
    breaker's generation, which advances on every state change.  An
    outcome recorded against a permit from an earlier generation only
    updates the counters.  A slow call admitted while CLOSED that finishes
    during HALF_OPEN therefore cannot stand in for the probe.

Example:
    >>> breaker = CircuitBreaker("getOrders", request_volume_threshold=4, failure_ratio=0.5)
    >>> permit = breaker.allow_request()
    >>> if permit is None:
    ...     raise CircuitOpenError("Service unavailable")
    >>> try:
    ...     result = call_store()
    ...     breaker.record_success(permit)
    ... except Exception as e:
    ...     breaker.record_failure(permit, e)
    ...     raise
"""

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from order_spine.core.logging import get_logger

logger = get_logger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Rejecting requests
    HALF_OPEN = "half_open"  # Probing recovery


@dataclass
class CircuitStats:
    """Statistics for circuit breaker monitoring."""

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    rejected_requests: int = 0
    state_changes: int = 0

    @property
    def failure_rate(self) -> float:
        """Calculate failure rate as percentage."""
        total = self.successful_requests + self.failed_requests
        if total == 0:
            return 0.0
        return (self.failed_requests / total) * 100


@dataclass(frozen=True)
class CircuitPermit:
    """Admission ticket returned by ``CircuitBreaker.allow_request``.

    Attributes:
        generation: Breaker generation the call was admitted under
        probe: True for the single half-open probe
    """

    generation: int
    probe: bool = False


@dataclass
class CircuitBreaker:
    """Rolling-window circuit breaker.

    Attributes:
        name: Identifier for this circuit (the operation kind)
        request_volume_threshold: Size of the rolling outcome window
        failure_ratio: Failure share of a full window that opens the circuit
        delay: Seconds to stay open before allowing a probe
        clock: Monotonic time source
    """

    name: str = "default"
    request_volume_threshold: int = 4
    failure_ratio: float = 0.5
    delay: float = 2.0
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    # Internal state
    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _window: deque = field(init=False, repr=False)
    _opened_at: float | None = field(default=None, init=False)
    _probe_in_flight: bool = field(default=False, init=False)
    _generation: int = field(default=0, init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)
    _stats: CircuitStats = field(default_factory=CircuitStats, init=False)

    def __post_init__(self) -> None:
        if self.request_volume_threshold < 1:
            raise ValueError("request_volume_threshold must be >= 1")
        if not 0 < self.failure_ratio <= 1:
            raise ValueError("failure_ratio must be in (0, 1]")
        self._window = deque(maxlen=self.request_volume_threshold)

    @property
    def state(self) -> CircuitState:
        """Get current circuit state."""
        with self._lock:
            self._check_state_transition()
            return self._state

    @property
    def stats(self) -> CircuitStats:
        """Get circuit statistics."""
        return self._stats

    @property
    def window_failures(self) -> int:
        """Failures currently held in the rolling window."""
        with self._lock:
            return sum(self._window)

    def _check_state_transition(self) -> None:
        """Move OPEN → HALF_OPEN once the delay has elapsed."""
        if self._state == CircuitState.OPEN and self._opened_at is not None:
            if self.clock() - self._opened_at >= self.delay:
                self._transition_to(CircuitState.HALF_OPEN)

    def _transition_to(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        self._generation += 1
        self._stats.state_changes += 1

        if new_state == CircuitState.OPEN:
            self._opened_at = self.clock()
            self._probe_in_flight = False
            self._window.clear()
        elif new_state == CircuitState.HALF_OPEN:
            self._probe_in_flight = False
        elif new_state == CircuitState.CLOSED:
            self._opened_at = None
            self._probe_in_flight = False
            self._window.clear()

        logger.info(
            "circuit_state_changed",
            circuit=self.name,
            from_state=old_state.value,
            to_state=new_state.value,
        )

    def _window_tripped(self) -> bool:
        if len(self._window) < self.request_volume_threshold:
            return False
        return sum(self._window) / len(self._window) >= self.failure_ratio

    def allow_request(self) -> CircuitPermit | None:
        """Check if a request should be allowed.

        In HALF_OPEN exactly one caller gets a (probe) permit until its
        outcome is recorded; everyone else is rejected.

        Returns:
            A permit to pass to ``record_success``/``record_failure``, or
            None when the request is rejected
        """
        with self._lock:
            self._check_state_transition()
            self._stats.total_requests += 1

            if self._state == CircuitState.CLOSED:
                return CircuitPermit(self._generation)

            if self._state == CircuitState.HALF_OPEN and not self._probe_in_flight:
                self._probe_in_flight = True
                return CircuitPermit(self._generation, probe=True)

            self._stats.rejected_requests += 1
            return None

    def _is_stale(self, permit: CircuitPermit) -> bool:
        if permit.generation == self._generation:
            return False
        logger.debug(
            "circuit_stale_outcome",
            circuit=self.name,
            permit_generation=permit.generation,
            generation=self._generation,
            state=self._state.value,
        )
        return True

    def record_success(self, permit: CircuitPermit) -> None:
        """Record a successful request admitted under ``permit``."""
        with self._lock:
            self._stats.successful_requests += 1
            if self._is_stale(permit):
                return

            if self._state == CircuitState.HALF_OPEN:
                if permit.probe:
                    self._transition_to(CircuitState.CLOSED)
            elif self._state == CircuitState.CLOSED:
                self._window.append(False)

    def record_failure(self, permit: CircuitPermit, error: Exception | None = None) -> None:
        """Record a failed request admitted under ``permit``."""
        with self._lock:
            self._stats.failed_requests += 1
            if self._is_stale(permit):
                return

            if self._state == CircuitState.HALF_OPEN:
                if permit.probe:
                    # Probe failed: re-open and restart the delay
                    self._transition_to(CircuitState.OPEN)
            elif self._state == CircuitState.CLOSED:
                self._window.append(True)
                if self._window_tripped():
                    self._transition_to(CircuitState.OPEN)

    def reset(self) -> None:
        """Reset circuit to closed state."""
        with self._lock:
            self._transition_to(CircuitState.CLOSED)

    def force_open(self) -> None:
        """Force circuit to open state (for maintenance)."""
        with self._lock:
            self._transition_to(CircuitState.OPEN)
