"""Outbound transport for the Graph API.

This package provides:
- A sliding-window rate limiter
- Error classification and retry eligibility
- A retrying HTTP client built on both
"""

from wacloud.client.errors import (
    ApiError,
    AuthError,
    ClientError,
    ErrorCategory,
    NetworkError,
    NetworkErrorKind,
    RateLimitError,
    ServerError,
    UnknownError,
    classify,
    should_retry,
)
from wacloud.client.http import RetryingHttpClient
from wacloud.client.rate_limiter import RateLimiter

__all__ = [
    "ApiError",
    "AuthError",
    "ClientError",
    "ErrorCategory",
    "NetworkError",
    "NetworkErrorKind",
    "RateLimitError",
    "RateLimiter",
    "RetryingHttpClient",
    "ServerError",
    "UnknownError",
    "classify",
    "should_retry",
]
