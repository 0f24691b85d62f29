"""Retrying HTTP client for the Graph API.

Every physical send goes through the same pipeline:

1. Rate limiter admission
2. Fresh auth headers from the AuthProvider
3. Transport call (httpx, shared connection pool)
4. Classification of the attempt as Success / RetryableFailure / TerminalFailure
5. Exponential backoff with jitter before the next attempt
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from wacloud.client.errors import ApiError, classify, should_retry
from wacloud.client.rate_limiter import RateLimiter
from wacloud.config import RetryPolicy

if TYPE_CHECKING:
    from wacloud.auth.provider import AuthProvider

logger = logging.getLogger(__name__)

ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})

DEFAULT_HEADERS = {"Accept": "application/json"}


@dataclass(frozen=True)
class Success:
    body: Any


@dataclass(frozen=True)
class RetryableFailure:
    error: ApiError


@dataclass(frozen=True)
class TerminalFailure:
    error: ApiError


AttemptOutcome = Success | RetryableFailure | TerminalFailure


def decode_body(response: httpx.Response) -> Any:
    """JSON when possible, text otherwise, None for an empty body."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class RetryingHttpClient:
    """Executes logical requests with rate limiting, auth and retries."""

    def __init__(
        self,
        base_url: str,
        auth: AuthProvider,
        *,
        retry_policy: RetryPolicy | None = None,
        rate_limiter: RateLimiter | None = None,
        connect_timeout: float = 30.0,
        receive_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self._auth = auth
        self._retry_policy = retry_policy or RetryPolicy()
        self._owns_limiter = rate_limiter is None
        self._rate_limiter = rate_limiter or RateLimiter()
        self._rng = rng
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers=DEFAULT_HEADERS,
            timeout=httpx.Timeout(
                connect=connect_timeout,
                read=receive_timeout,
                write=connect_timeout,
                pool=connect_timeout,
            ),
            transport=transport,
        )
        logger.debug("RetryingHttpClient initialized with base_url %s", base_url)

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    @property
    def auth(self) -> AuthProvider:
        return self._auth

    async def get(self, path: str, query: Mapping[str, Any] | None = None) -> Any:
        return await self.execute("GET", path, query=query)

    async def post(
        self,
        path: str,
        body: Any = None,
        query: Mapping[str, Any] | None = None,
        *,
        files: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.execute(
            "POST", path, body, query, files=files, data=data,
        )

    async def put(
        self, path: str, body: Any = None, query: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.execute("PUT", path, body, query)

    async def delete(
        self, path: str, body: Any = None, query: Mapping[str, Any] | None = None,
    ) -> Any:
        return await self.execute("DELETE", path, body, query)

    async def fetch_bytes(self, url: str) -> bytes:
        """GET an absolute URL (e.g. a media download link) through the pipeline."""
        return await self._run(
            "GET", url, None, None, None, None, lambda resp: resp.content,
        )

    async def execute(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: Mapping[str, Any] | None = None,
        *,
        files: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        """Run one logical request; return the decoded 2xx body or raise ApiError."""
        return await self._run(method, path, body, query, files, data, decode_body)

    async def _run(
        self,
        method: str,
        path: str,
        body: Any,
        query: Mapping[str, Any] | None,
        files: Mapping[str, Any] | None,
        data: Mapping[str, Any] | None,
        decode: Callable[[httpx.Response], Any],
    ) -> Any:
        verb = method.upper()
        if verb not in ALLOWED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        attempt = 0
        while True:
            outcome = await self._attempt(
                verb, path, body, query, files, data, decode, attempt,
            )
            if isinstance(outcome, Success):
                return outcome.body
            if isinstance(outcome, TerminalFailure):
                logger.error("%s %s failed: %s", verb, path, outcome.error)
                raise outcome.error

            delay = self.compute_backoff(attempt)
            logger.warning(
                "%s %s failed (%s), retrying in %.2fs (%d/%d)",
                verb, path, outcome.error.category.value, delay,
                attempt + 1, self._retry_policy.max_retries,
            )
            await asyncio.sleep(delay)
            attempt += 1

    def compute_backoff(self, attempt: int) -> float:
        return self._retry_policy.backoff_for(attempt, self._rng())

    async def _attempt(
        self,
        method: str,
        path: str,
        body: Any,
        query: Mapping[str, Any] | None,
        files: Mapping[str, Any] | None,
        data: Mapping[str, Any] | None,
        decode: Callable[[httpx.Response], Any],
        attempt: int,
    ) -> AttemptOutcome:
        await self._rate_limiter.acquire()

        try:
            auth_headers = self._auth.get_headers()
        except ApiError as exc:
            return TerminalFailure(exc)

        request_kwargs: dict[str, Any] = {
            "params": dict(query) if query else None,
            "headers": auth_headers,
        }
        if files is not None:
            request_kwargs["files"] = files
            request_kwargs["data"] = data
        elif body is not None:
            request_kwargs["json"] = body

        logger.debug("Request: %s %s (attempt %d)", method, path, attempt + 1)
        try:
            response = await self._http.request(method, path, **request_kwargs)
        except httpx.HTTPError as exc:
            return self._judge(classify(None, transport_error=exc), attempt)

        logger.debug("Response: %d %s %s", response.status_code, method, path)
        if 200 <= response.status_code < 300:
            return Success(decode(response))

        error = classify(
            response.status_code,
            decode_body(response),
            headers=response.headers,
        )
        return self._judge(error, attempt)

    def _judge(self, error: ApiError, attempt: int) -> AttemptOutcome:
        if should_retry(error, attempt, self._retry_policy.max_retries):
            return RetryableFailure(error)
        return TerminalFailure(error)

    async def aclose(self) -> None:
        await self._http.aclose()
        if self._owns_limiter:
            await self._rate_limiter.aclose()

    async def __aenter__(self) -> RetryingHttpClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
