"""Resilience pipeline — timeout, retry, circuit breaker, bulkhead, fallback.

Manifesto:
    Every call to the store or the cart service can hang, throttle, or
    fail.  Rather than decorating each call site with its own ad-hoc
    policy, the service hands each operation to one pipeline that applies
    the same ordered set of policies, scoped per operation kind.  The
    composition order is an explicit contract expressed in code here,
    not an accident of decorator stacking.

Architecture:
    ::

        execute(op_kind, operation, fallback)
        │
        ├── bulkhead.admit()                 reject at capacity ──────┐
        │   └── RetryContext.run(attempt)    1 + max_retries tries    │
        │       └── attempt                                           │
        │           ├── breaker.allow_request()   open ─ fail fast ───┤
        │           ├── run_with_timeout(operation)                   │
        │           └── breaker.record_success / record_failure       │
        │                                                             ▼
        └── fallback(FallbackContext) ◀──── any rejection or final failure

    * A timed-out attempt consumes one retry and counts as one breaker
      failure.
    * The bulkhead counts callers, not worker threads.  A timed-out
      attempt's worker may still be running after the slot is freed.
    * Once the breaker opens, the remaining retries fail fast with
      ``CircuitOpenError`` (not retryable) and the call goes to fallback
      without invoking the operation again.
    * Ignored errors (``ValidationError`` by default) are client errors:
      re-raised unchanged, never retried, never sent to fallback, and
      recorded as breaker successes.

    Breaker and bulkhead state is created once per operation kind and
    shared by every caller of the pipeline instance.

Example:
    >>> pipeline = ResiliencePipeline({"getOrders": ResiliencePolicy()})
    >>> pipeline.execute(
    ...     "getOrders",
    ...     lambda: store.query("u1"),
    ...     lambda ctx: [],
    ... )
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from order_spine.core.errors import (
    BulkheadFullError,
    CircuitOpenError,
    FallbackError,
    OrderSpineError,
    TimeoutExpired,
    ValidationError,
)
from order_spine.core.logging import get_logger
from order_spine.execution.bulkhead import Bulkhead
from order_spine.execution.circuit_breaker import CircuitBreaker
from order_spine.execution.retry import (
    ConstantBackoff,
    ExponentialBackoff,
    RetryContext,
    RetryStrategy,
    is_retryable,
)
from order_spine.execution.timeout import run_with_timeout

if TYPE_CHECKING:
    from order_spine.core.settings import ResilienceSettings

T = TypeVar("T")

logger = get_logger(__name__)


class FallbackReason(str, Enum):
    """Why the fallback was invoked."""

    BULKHEAD_FULL = "bulkhead_full"
    CIRCUIT_OPEN = "circuit_open"
    TIMEOUT = "timeout"
    RETRIES_EXHAUSTED = "retries_exhausted"
    NON_RETRYABLE = "non_retryable"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class ResiliencePolicy:
    """Policy values for one operation kind.

    A ``retry_multiplier`` of 1.0 gives a constant pause of
    ``retry_delay_seconds``; anything larger grows the pause
    exponentially up to ``retry_max_delay_seconds``.
    """

    timeout_seconds: float = 20.0
    max_retries: int = 3
    retry_delay_seconds: float = 0.0
    retry_multiplier: float = 1.0
    retry_max_delay_seconds: float = 30.0
    request_volume_threshold: int = 4
    failure_ratio: float = 0.5
    breaker_delay_seconds: float = 2.0
    bulkhead_limit: int = 5

    @classmethod
    def from_settings(cls, settings: ResilienceSettings) -> ResiliencePolicy:
        return cls(**settings.model_dump())

    def retry_strategy(self) -> RetryStrategy:
        if self.retry_multiplier > 1.0:
            return ExponentialBackoff(
                max_retries=self.max_retries,
                base_delay=self.retry_delay_seconds,
                max_delay=self.retry_max_delay_seconds,
                multiplier=self.retry_multiplier,
                jitter=False,
            )
        return ConstantBackoff(max_retries=self.max_retries, delay=self.retry_delay_seconds)


@dataclass(frozen=True)
class FallbackContext:
    """What the fallback handler is told about the failure.

    Attributes:
        op_kind: Operation kind that degraded
        reason: Classified cause
        error: The final error (rejection, timeout, or operation failure)
        attempts: Times the operation was actually attempted (0 when rejected up front)
    """

    op_kind: str
    reason: FallbackReason
    error: BaseException
    attempts: int


@dataclass
class _Guards:
    policy: ResiliencePolicy
    breaker: CircuitBreaker
    bulkhead: Bulkhead


def classify_failure(error: BaseException) -> FallbackReason:
    """Map a final failure onto a ``FallbackReason``."""
    if isinstance(error, BulkheadFullError):
        return FallbackReason.BULKHEAD_FULL
    if isinstance(error, CircuitOpenError):
        return FallbackReason.CIRCUIT_OPEN
    if isinstance(error, TimeoutExpired):
        return FallbackReason.TIMEOUT
    if is_retryable(error):
        return FallbackReason.RETRIES_EXHAUSTED
    if isinstance(error, OrderSpineError):
        return FallbackReason.NON_RETRYABLE
    return FallbackReason.UNEXPECTED


class ResiliencePipeline:
    """Applies the resilience policies to operations, per operation kind.

    Args:
        policies: Policy per known operation kind
        default_policy: Policy for kinds first seen at ``execute`` time
        clock: Monotonic time source for the breakers
        sleep: Pause function used between retries
        ignore: Error types passed straight through to the caller
    """

    def __init__(
        self,
        policies: Mapping[str, ResiliencePolicy] | None = None,
        *,
        default_policy: ResiliencePolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        ignore: tuple[type[BaseException], ...] = (ValidationError,),
    ):
        self._default_policy = default_policy or ResiliencePolicy()
        self._clock = clock
        self._sleep = sleep
        self._ignore = ignore
        self._lock = threading.Lock()
        self._guards: dict[str, _Guards] = {}
        for op_kind, policy in (policies or {}).items():
            self._guards[op_kind] = self._build_guards(op_kind, policy)

    def _build_guards(self, op_kind: str, policy: ResiliencePolicy) -> _Guards:
        return _Guards(
            policy=policy,
            breaker=CircuitBreaker(
                name=op_kind,
                request_volume_threshold=policy.request_volume_threshold,
                failure_ratio=policy.failure_ratio,
                delay=policy.breaker_delay_seconds,
                clock=self._clock,
            ),
            bulkhead=Bulkhead(op_kind, policy.bulkhead_limit),
        )

    def _guards_for(self, op_kind: str) -> _Guards:
        guards = self._guards.get(op_kind)
        if guards is None:
            with self._lock:
                guards = self._guards.get(op_kind)
                if guards is None:
                    guards = self._build_guards(op_kind, self._default_policy)
                    self._guards[op_kind] = guards
        return guards

    def breaker(self, op_kind: str) -> CircuitBreaker:
        """Circuit breaker shared by every call of ``op_kind``."""
        return self._guards_for(op_kind).breaker

    def bulkhead(self, op_kind: str) -> Bulkhead:
        """Bulkhead shared by every call of ``op_kind``."""
        return self._guards_for(op_kind).bulkhead

    def policy(self, op_kind: str) -> ResiliencePolicy:
        return self._guards_for(op_kind).policy

    def execute(
        self,
        op_kind: str,
        operation: Callable[[], T],
        fallback: Callable[[FallbackContext], T],
    ) -> T:
        """Run ``operation`` under the policies of ``op_kind``.

        Returns:
            The operation's result, or the fallback's degraded result

        Raises:
            ValidationError: (or any other ignored type) unchanged from the operation
            FallbackError: If the fallback handler itself raised
        """
        guards = self._guards_for(op_kind)
        retry = RetryContext(
            guards.policy.retry_strategy(),
            on_retry=lambda attempt, error, delay: logger.info(
                "retry_scheduled",
                op_kind=op_kind,
                attempt=attempt,
                delay=delay,
                error=str(error),
                error_type=type(error).__name__,
            ),
            sleep=self._sleep,
        )

        try:
            with guards.bulkhead.admit():
                return retry.run(self._attempt, op_kind, guards, operation)
        except self._ignore:
            raise
        except Exception as e:
            return self._degrade(op_kind, e, retry.attempts, fallback)

    def _attempt(self, op_kind: str, guards: _Guards, operation: Callable[[], T]) -> T:
        breaker = guards.breaker
        permit = breaker.allow_request()
        if permit is None:
            raise CircuitOpenError(f"Circuit '{op_kind}' is open").with_context(op_kind=op_kind)

        try:
            result = run_with_timeout(operation, guards.policy.timeout_seconds, operation=op_kind)
        except self._ignore:
            breaker.record_success(permit)
            raise
        except Exception as e:
            breaker.record_failure(permit, e)
            if isinstance(e, OrderSpineError) and e.context.op_kind is None:
                e.with_context(op_kind=op_kind)
            raise

        breaker.record_success(permit)
        return result

    def _degrade(
        self,
        op_kind: str,
        error: Exception,
        attempts: int,
        fallback: Callable[[FallbackContext], T],
    ) -> T:
        # Rejected attempts never reached the operation
        invoked = attempts - (1 if isinstance(error, CircuitOpenError) else 0)
        ctx = FallbackContext(
            op_kind=op_kind,
            reason=classify_failure(error),
            error=error,
            attempts=max(invoked, 0),
        )
        logger.warning(
            "fallback_activated",
            op_kind=op_kind,
            reason=ctx.reason.value,
            attempts=ctx.attempts,
            error=str(error),
            error_type=type(error).__name__,
        )
        try:
            return fallback(ctx)
        except Exception as fe:
            logger.error(
                "fallback_failed",
                op_kind=op_kind,
                reason=ctx.reason.value,
                error=str(fe),
                exc_info=True,
            )
            raise FallbackError(
                f"Fallback for '{op_kind}' raised {type(fe).__name__}",
                cause=fe,
            ).with_context(op_kind=op_kind) from fe

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Breaker and bulkhead state per operation kind, for health reporting."""
        with self._lock:
            items = list(self._guards.items())

        result: dict[str, dict[str, Any]] = {}
        for op_kind, guards in items:
            stats = guards.breaker.stats
            result[op_kind] = {
                "circuit": {
                    "state": guards.breaker.state.value,
                    "window_failures": guards.breaker.window_failures,
                    **asdict(stats),
                    "failure_rate": stats.failure_rate,
                },
                "bulkhead": {
                    "in_flight": guards.bulkhead.in_flight,
                    "limit": guards.bulkhead.max_concurrent,
                    **asdict(guards.bulkhead.stats),
                },
            }
        return result
