"""Async GET client with optional transport retries and client-side throttling."""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

if TYPE_CHECKING:
    from types import TracebackType

    from hrisync.config.http_resilience import ResilienceConfig, RetryPolicy

type QueryParams = dict[str, str | int]


def build_transport(policy: RetryPolicy) -> httpx.AsyncBaseTransport:
    """Plain transport when retries are off, otherwise a GET-only ``RetryTransport``."""

    if not policy.enabled:
        return httpx.AsyncHTTPTransport()
    retry = Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        allowed_methods=("GET",),
        status_forcelist=tuple(sorted(policy.retry_statuses)),
        retry_on_exceptions=(httpx.TimeoutException, httpx.NetworkError),
    )
    return RetryTransport(retry=retry)


class ResilientClient:
    """Thin wrapper over ``httpx.AsyncClient`` used as an async context manager."""

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit is not None
            else None
        )
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            headers=dict(config.default_headers),
            transport=build_transport(config.retry),
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._client.aclose()

    async def get(self, path: str, *, params: QueryParams | None = None) -> httpx.Response:
        if self._limiter is None:
            return await self._client.get(path, params=params)
        async with self._limiter:
            return await self._client.get(path, params=params)
