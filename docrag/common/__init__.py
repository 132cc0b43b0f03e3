"""Common utilities and shared functionality.

This package contains helpers used across the adapters: the cancellation
and timeout policy for remote calls, the async rate limiter, and exception
formatting for logs and API responses.
"""

from .cancellation import CancellationToken, effective_timeout, guarded_call
from .exception_handler import (
    client_error_body,
    format_exception_json,
    get_error_code,
    get_http_status_code,
    handle_exception,
    log_exception,
)
from .rate_limiter import RateLimiter

__all__ = [
    # Cancellation
    "CancellationToken",
    "guarded_call",
    "effective_timeout",
    # Rate limiting
    "RateLimiter",
    # Exception handlers
    "format_exception_json",
    "log_exception",
    "handle_exception",
    "get_error_code",
    "get_http_status_code",
    "client_error_body",
]
