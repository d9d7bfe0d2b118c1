from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from mediashelf.config.storage import get_http_cache_path
from mediashelf.domain.errors import FatalProviderError, TransientProviderError

if TYPE_CHECKING:
    from types import TracebackType

    from mediashelf.config.http_resilience import CacheConfig, ResilienceConfig, RetryPolicy
    from mediashelf.domain.model import Provider

_TOO_MANY_REQUESTS = 429
_SERVER_ERROR = 500


def _build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


def _build_cache_storage(config: CacheConfig | None) -> AsyncSqliteStorage | None:
    if config is None or not config.enabled:
        return None
    if config.backend == "sqlite":
        database_path = config.sqlite_path or str(get_http_cache_path())
    elif config.backend == "memory":
        database_path = ":memory:"
    else:
        raise ValueError(f"Unsupported cache backend: {config.backend}")
    return AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.default_ttl_seconds,
        refresh_ttl_on_access=config.refresh_ttl_on_access,
    )


class ResilientClient:
    """Async provider client: request rate limit, transport retries, optional cache.

    Network faults and 5xx answers are retried by ``httpx-retries``; 429 is left to
    the caller so the enrichment throttle can honour ``Retry-After``. ``transport``
    replaces the network layer underneath the retry transport (tests pass an
    ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )
        retry_transport = RetryTransport(transport=transport, retry=_build_retry(config.retry))
        headers = dict(config.default_headers or {})
        storage = _build_cache_storage(config.cache)
        if storage is not None:
            self._client: httpx.AsyncClient = AsyncCacheClient(
                base_url=config.base_url or "",
                timeout=config.timeout_seconds,
                headers=headers,
                transport=retry_transport,
                storage=storage,
            )
        else:
            self._client = httpx.AsyncClient(
                base_url=config.base_url or "",
                timeout=config.timeout_seconds,
                headers=headers,
                transport=retry_transport,
            )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str, *, params: dict[str, str] | None = None) -> httpx.Response:
        if self._limiter is None:
            return await self._client.get(url, params=params)
        async with self._limiter:
            return await self._client.get(url, params=params)

    async def post(self, url: str, *, json: object = None) -> httpx.Response:
        if self._limiter is None:
            return await self._client.post(url, json=json)
        async with self._limiter:
            return await self._client.post(url, json=json)


def raise_for_provider_status(response: httpx.Response, provider: Provider) -> None:
    """Translate an unsuccessful response into the provider error taxonomy.

    429 and 5xx are transient (429 carries ``Retry-After``); every other 4xx,
    including an unknown id, is fatal.
    """

    status = response.status_code
    if response.is_success:
        return
    if status == _TOO_MANY_REQUESTS:
        raise TransientProviderError(
            f"{provider} rate limited the request to {response.request.url}",
            provider=provider,
            retry_after=response.headers.get("Retry-After"),
        )
    if status >= _SERVER_ERROR:
        raise TransientProviderError(
            f"{provider} answered {status} for {response.request.url}", provider=provider
        )
    raise FatalProviderError(
        f"{provider} answered {status} for {response.request.url}", provider=provider
    )
