"""Timeout enforcement for blocking operations.

Store and cart calls are blocking network I/O that cannot always be
interrupted.  ``run_with_timeout`` runs the callable on a worker thread
and stops the *caller's* wait at the deadline.  The abandoned worker
keeps running until its I/O returns; its result is discarded.  This is
best-effort cancellation: the caller is never blocked past the deadline,
but the underlying request may still complete on the remote side.

Abandoned workers are not counted by the bulkhead: the pipeline frees
its slot when the caller gives up, not when the worker returns.  Under a
hung dependency the number of threads still doing store or cart I/O can
therefore exceed ``bulkhead_limit``; the store and cart clients' own
socket timeouts bound how long each abandoned worker lives.

Architecture:
    ::

        caller thread                     worker thread
        ─────────────                     ─────────────
        submit(func) ───────────────────▶ func() ... (blocking I/O)
        future.result(timeout) ◀──┐
             │                    │ result / exception
             ▼                    │
        TimeoutExpired if the deadline passes first

Log context bound with structlog contextvars is copied onto the worker
so events emitted inside the operation keep their ``request_id``.

Example:
    >>> result = run_with_timeout(fetch_orders, 20.0, operation="getOrders")
"""

from __future__ import annotations

import concurrent.futures
import contextvars
import time
from collections.abc import Callable
from typing import Any, TypeVar

from order_spine.core.errors import TimeoutExpired

T = TypeVar("T")


def run_with_timeout(
    func: Callable[..., T],
    timeout_seconds: float,
    operation: str | None = None,
    args: tuple[Any, ...] | None = None,
    kwargs: dict[str, Any] | None = None,
) -> T:
    """Run a callable, giving up on it after ``timeout_seconds``.

    Args:
        func: Callable to execute
        timeout_seconds: Maximum time the caller waits
        operation: Name for error messages
        args: Positional arguments for func
        kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Raises:
        TimeoutExpired: If execution exceeds timeout
        Exception: Any exception raised by func
    """
    if timeout_seconds <= 0:
        raise ValueError(f"Timeout must be positive, got {timeout_seconds}")

    start = time.monotonic()
    pos_args = args or ()
    kw_args = kwargs or {}
    ctx = contextvars.copy_context()

    executor = concurrent.futures.ThreadPoolExecutor(
        max_workers=1, thread_name_prefix=f"timeout-{operation or 'op'}"
    )
    try:
        future = executor.submit(ctx.run, func, *pos_args, **kw_args)
        try:
            return future.result(timeout=timeout_seconds)
        except concurrent.futures.TimeoutError:
            # The worker thread keeps running; only the wait is cancelled
            future.cancel()
            raise TimeoutExpired(
                timeout=timeout_seconds,
                elapsed=time.monotonic() - start,
                operation=operation or getattr(func, "__name__", "unknown"),
            ) from None
    finally:
        executor.shutdown(wait=False)
