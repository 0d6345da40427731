"""API middleware and error handlers."""

from order_spine.api.middleware.errors import problem_response, register_error_handlers
from order_spine.api.middleware.request_id import RequestIDMiddleware
from order_spine.api.middleware.timing import TimingMiddleware

__all__ = [
    "RequestIDMiddleware",
    "TimingMiddleware",
    "problem_response",
    "register_error_handlers",
]
