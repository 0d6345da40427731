"""
Structured error types for the order service.

Every failure that crosses a component boundary is expressed as an
``OrderSpineError`` subclass.  The error knows its category, whether the
resilience pipeline may retry it, and carries structured context for
logging.  Raw transport exceptions (botocore, httpx) never leave the
gateway that caught them.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       OrderSpineError                            │
        │  (category, retryable, context, cause)                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ValidationError     TransientError        ConfigError          │
        │  (never retried)     (retryable)           (never retried)      │
        │                          │                       │               │
        │                 TransientStoreError      IdempotencyKeyError     │
        │                 DownstreamError                                  │
        │                 TimeoutExpired                                   │
        │                                                                  │
        │  FatalStoreError     RejectedError         AuthError            │
        │  (never retried)     (fail fast)           (never retried)      │
        │                          │                                       │
        │                  CircuitOpenError                                │
        │                  BulkheadFullError                               │
        └─────────────────────────────────────────────────────────────────┘

Retry semantics:
    - ``ValidationError`` is a client error.  The pipeline re-raises it
      untouched; it never consumes retry budget or trips the breaker.
    - ``TransientStoreError``, ``DownstreamError`` and ``TimeoutExpired``
      are retried and counted as breaker failures.
    - ``FatalStoreError`` and ``ConfigError`` are counted as breaker
      failures but never retried.
    - ``CircuitOpenError`` and ``BulkheadFullError`` are admission
      rejections: not retried, routed straight to the fallback.

Examples:
    >>> error = TransientStoreError("throttled").with_context(op_kind="addOrder")
    >>> error.retryable
    True
    >>> error.to_dict()["context"]
    {'op_kind': 'addOrder'}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and log routing."""

    NETWORK = "NETWORK"
    STORAGE = "STORAGE"
    DOWNSTREAM = "DOWNSTREAM"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    AUTH = "AUTH"
    RESILIENCE = "RESILIENCE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        op_kind: Logical operation category (``getOrders``, ``addOrder``)
        user_id: Caller the operation was executed for
        table: Store table involved, if any
        url: Remote URL involved, if any
        http_status: HTTP status code, if any
        metadata: Additional key/value pairs
    """

    op_kind: str | None = None
    user_id: str | None = None
    table: str | None = None
    url: str | None = None
    http_status: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["op_kind", "user_id", "table", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class OrderSpineError(Exception):
    """Base exception for all order-service errors.

    Subclasses set ``default_category`` and ``default_retryable`` so that
    call sites only pass a message (and optionally a cause).
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> OrderSpineError:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CLIENT ERRORS
# =============================================================================


class ValidationError(OrderSpineError):
    """Bad caller input.  Never retried, surfaced as a 4xx."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class AuthError(OrderSpineError):
    """Caller identity is missing or unusable."""

    default_category = ErrorCategory.AUTH
    default_retryable = False


class PermissionDeniedError(AuthError):
    """Caller is known but lacks the group an operation requires."""


# =============================================================================
# TRANSIENT ERRORS (retryable)
# =============================================================================


class TransientError(OrderSpineError):
    """Temporary failure that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class TransientStoreError(TransientError):
    """Store throttling or connectivity failure."""

    default_category = ErrorCategory.STORAGE


class DownstreamError(TransientError):
    """Cart service returned a non-success response or could not be reached."""

    default_category = ErrorCategory.DOWNSTREAM


class TimeoutExpired(TransientError):
    """An attempt exceeded its deadline.

    Attributes:
        timeout: The timeout value that was exceeded
        elapsed: How long the caller waited before giving up
        operation: Name of the operation
    """

    def __init__(
        self,
        timeout: float,
        elapsed: float | None = None,
        operation: str = "operation",
        **kwargs: Any,
    ):
        self.timeout = timeout
        self.elapsed = elapsed
        self.operation = operation

        msg = f"Operation '{operation}' timed out after {timeout}s"
        if elapsed is not None:
            msg += f" (waited {elapsed:.2f}s)"

        super().__init__(msg, **kwargs)


# =============================================================================
# FATAL ERRORS (never retried)
# =============================================================================


class FatalStoreError(OrderSpineError):
    """Non-transient store failure (bad request, missing table, credentials)."""

    default_category = ErrorCategory.STORAGE
    default_retryable = False


class ConfigError(OrderSpineError):
    """Configuration must be fixed before the operation can succeed."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class IdempotencyKeyError(ConfigError):
    """No hashing implementation is available to derive a record key."""


# =============================================================================
# ADMISSION REJECTIONS (fail fast to fallback)
# =============================================================================


class RejectedError(OrderSpineError):
    """A resilience policy refused to invoke the operation."""

    default_category = ErrorCategory.RESILIENCE
    default_retryable = False


class CircuitOpenError(RejectedError):
    """Raised when the circuit is open and rejecting requests."""

    def __init__(self, message: str = "Circuit breaker is open", **kwargs: Any):
        super().__init__(message, **kwargs)


class BulkheadFullError(RejectedError):
    """Raised when the bulkhead is at capacity."""

    def __init__(self, message: str = "Bulkhead is full", **kwargs: Any):
        super().__init__(message, **kwargs)


class FallbackError(OrderSpineError):
    """A fallback handler broke its contract and raised."""


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "OrderSpineError",
    "ValidationError",
    "AuthError",
    "TransientError",
    "TransientStoreError",
    "DownstreamError",
    "TimeoutExpired",
    "FatalStoreError",
    "ConfigError",
    "IdempotencyKeyError",
    "RejectedError",
    "CircuitOpenError",
    "BulkheadFullError",
    "FallbackError",
]
