"""Classified API errors and the status/transport → error mapping."""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any

import httpx

DEFAULT_RETRY_AFTER_SECONDS = 60


class ErrorCategory(str, Enum):
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    CLIENT = "client"
    SERVER = "server"
    NETWORK = "network"
    UNKNOWN = "unknown"


class NetworkErrorKind(str, Enum):
    CONNECTION_TIMEOUT = "connection_timeout"
    RECEIVE_TIMEOUT = "receive_timeout"
    CONNECTION_ERROR = "connection_error"


class ApiError(Exception):
    """Base for every failure surfaced by the request pipeline."""

    category = ErrorCategory.UNKNOWN
    default_message = "Unknown error"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        code: str | None = None,
        response_body: Any = None,
        original: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.status_code = status_code
        self.code = code
        self.response_body = response_body
        self.original = original
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        code = f"[{self.code}] " if self.code else ""
        status = f"HTTP {self.status_code} " if self.status_code else ""
        return f"{type(self).__name__}: {code}{status}{self.message}"


class AuthError(ApiError):
    category = ErrorCategory.AUTH
    default_message = "Authentication failed"


class RateLimitError(ApiError):
    category = ErrorCategory.RATE_LIMIT
    default_message = "Rate limit exceeded"

    def __init__(
        self,
        message: str | None = None,
        *,
        retry_after_seconds: int = DEFAULT_RETRY_AFTER_SECONDS,
        **kwargs: Any,
    ) -> None:
        self.retry_after_seconds = retry_after_seconds
        kwargs.setdefault("status_code", 429)
        super().__init__(message, **kwargs)


class ClientError(ApiError):
    category = ErrorCategory.CLIENT
    default_message = "Client error"


class ServerError(ApiError):
    category = ErrorCategory.SERVER
    default_message = "Server error"


class NetworkError(ApiError):
    category = ErrorCategory.NETWORK
    default_message = "Network error"

    def __init__(
        self,
        message: str | None = None,
        *,
        kind: NetworkErrorKind = NetworkErrorKind.CONNECTION_ERROR,
        **kwargs: Any,
    ) -> None:
        self.kind = kind
        kwargs.setdefault("code", kind.value)
        super().__init__(message, **kwargs)


class UnknownError(ApiError):
    category = ErrorCategory.UNKNOWN


_RETRYABLE = (NetworkError, ServerError, RateLimitError)

_CONNECT_TIMEOUTS = (httpx.ConnectTimeout, httpx.WriteTimeout, httpx.PoolTimeout)


def _decode_body(body: Any) -> Any:
    if isinstance(body, bytes):
        body = body.decode(errors="replace")
    if isinstance(body, str):
        try:
            return json.loads(body)
        except ValueError:
            return body
    return body


def extract_error_details(
    body: Any,
) -> tuple[str | None, str | None, dict[str, Any]]:
    """Pull ``(code, message, extra)`` out of a Graph API error body.

    Accepts dicts and JSON-encoded strings. A string that is not JSON is
    returned as the message.
    """
    decoded = _decode_body(body)
    if isinstance(decoded, str):
        return None, decoded or None, {}
    if not isinstance(decoded, Mapping):
        return None, None, {}

    error = decoded.get("error")
    if isinstance(error, Mapping):
        code = error.get("code")
        message = error.get("message") or decoded.get("message")
        extra = {
            key: error[key]
            for key in ("type", "error_subcode", "fbtrace_id", "error_data")
            if key in error
        }
        return (
            str(code) if code is not None else None,
            str(message) if message is not None else None,
            extra,
        )
    message = decoded.get("message")
    return None, str(message) if message is not None else None, {}


def _retry_after(headers: Mapping[str, str] | None) -> int:
    if not headers:
        return DEFAULT_RETRY_AFTER_SECONDS
    # httpx.Headers is case-insensitive; plain dicts are not
    value = headers.get("retry-after") or headers.get("Retry-After")
    if value is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    try:
        return int(str(value).strip())
    except ValueError:
        return DEFAULT_RETRY_AFTER_SECONDS


def _classify_transport(error: BaseException) -> ApiError:
    if isinstance(error, _CONNECT_TIMEOUTS):
        return NetworkError(
            "Connection timeout",
            kind=NetworkErrorKind.CONNECTION_TIMEOUT,
            original=error,
        )
    if isinstance(error, httpx.ReadTimeout):
        return NetworkError(
            "Receive timeout",
            kind=NetworkErrorKind.RECEIVE_TIMEOUT,
            original=error,
        )
    if isinstance(error, (httpx.NetworkError, httpx.RemoteProtocolError)):
        return NetworkError(
            "Network error",
            kind=NetworkErrorKind.CONNECTION_ERROR,
            original=error,
        )
    return UnknownError(
        f"Unexpected transport failure: {error!r}",
        code="unknown_error",
        original=error,
    )


def classify(
    status_code: int | None,
    response_body: Any = None,
    transport_error: BaseException | None = None,
    headers: Mapping[str, str] | None = None,
) -> ApiError:
    """Map a failed attempt onto the error taxonomy. Pure, never raises."""
    if status_code is None:
        if transport_error is not None:
            return _classify_transport(transport_error)
        return UnknownError(response_body=response_body, code="unknown_error")

    code, message, extra = extract_error_details(response_body)
    common: dict[str, Any] = {
        "status_code": status_code,
        "code": code,
        "response_body": response_body,
        "original": transport_error,
        "details": extra,
    }

    if status_code in (401, 403):
        common["code"] = code or "authentication_error"
        return AuthError(message, **common)
    if status_code == 429:
        return RateLimitError(
            message, retry_after_seconds=_retry_after(headers), **common,
        )
    if 400 <= status_code < 500:
        return ClientError(message, **common)
    if 500 <= status_code < 600:
        return ServerError(message, **common)
    return UnknownError(message, **common)


def should_retry(error: ApiError, attempt: int, max_retries: int) -> bool:
    """True while attempts remain and the failure is transient (network, 5xx, 429)."""
    if attempt >= max_retries:
        return False
    return isinstance(error, _RETRYABLE)
