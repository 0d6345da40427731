"""Order Spine Execution — fault tolerance around store and cart calls.

ARCHITECTURE
────────────
::

    ResiliencePipeline.execute(op_kind, operation, fallback)
      ├── Bulkhead        ─ non-queueing admission cap per op kind
      ├── RetryContext    ─ bounded re-attempts of retryable failures
      ├── CircuitBreaker  ─ rolling-window fail-fast per op kind
      ├── run_with_timeout─ per-attempt deadline (best-effort cancel)
      └── fallback        ─ degraded result, FallbackContext explains why

MODULE MAP
──────────
  1. circuit_breaker.py ─ CircuitBreaker, CircuitState, CircuitStats
  2. retry.py           ─ RetryStrategy, ConstantBackoff, ExponentialBackoff, RetryContext
  3. timeout.py         ─ run_with_timeout
  4. bulkhead.py        ─ Bulkhead
  5. pipeline.py        ─ ResiliencePipeline, ResiliencePolicy, FallbackContext
"""

from order_spine.execution.bulkhead import Bulkhead, BulkheadStats
from order_spine.execution.circuit_breaker import CircuitBreaker, CircuitState, CircuitStats
from order_spine.execution.pipeline import (
    FallbackContext,
    FallbackReason,
    ResiliencePipeline,
    ResiliencePolicy,
    classify_failure,
)
from order_spine.execution.retry import (
    ConstantBackoff,
    ExponentialBackoff,
    RetryContext,
    RetryStrategy,
    is_retryable,
)
from order_spine.execution.timeout import run_with_timeout

__all__ = [
    "Bulkhead",
    "BulkheadStats",
    "CircuitBreaker",
    "CircuitState",
    "CircuitStats",
    "ConstantBackoff",
    "ExponentialBackoff",
    "FallbackContext",
    "FallbackReason",
    "ResiliencePipeline",
    "ResiliencePolicy",
    "RetryContext",
    "RetryStrategy",
    "classify_failure",
    "is_retryable",
    "run_with_timeout",
]
