"""Cached, deduplicated access to provider data.

同一个 cache key 同时只允许一个上游请求：后到的调用者等待并复用
正在进行中的请求结果，避免多个 widget 展示同一 symbol 时重复消耗配额。
"""

import asyncio
from collections.abc import Callable

from finboard.modules.providers.application.service import ProviderService
from finboard.modules.providers.domain.entities import (
    CacheCategory,
    ProviderRequest,
    ProviderResult,
)
from finboard.modules.widgets.infrastructure.cache import MISS, TTLCache


class WidgetDataLoader:
    def __init__(
        self,
        provider_service: ProviderService,
        cache: TTLCache,
        ttl_for: Callable[[CacheCategory], float],
    ):
        self._provider_service = provider_service
        self._cache = cache
        self._ttl_for = ttl_for
        self._in_flight: dict[str, asyncio.Task[ProviderResult]] = {}
        self._lock = asyncio.Lock()

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def cached(self, request: ProviderRequest) -> ProviderResult | None:
        value = self._cache.get(request.cache_key)
        return None if value is MISS else value

    def time_budget(self, request: ProviderRequest) -> float:
        return self._provider_service.time_budget(request)

    async def load(self, request: ProviderRequest, force: bool = False) -> ProviderResult:
        """Return cached data or join/start the single in-flight fetch for the key.

        Cancelling a caller never cancels the shared fetch.
        """
        key = request.cache_key
        async with self._lock:
            if not force:
                hit = self.cached(request)
                if hit is not None:
                    return hit

            task = self._in_flight.get(key)
            if task is None:
                task = asyncio.create_task(
                    self._fetch_and_store(request), name=f"fetch:{key}"
                )
                task.add_done_callback(_consume_exception)
                self._in_flight[key] = task

        return await asyncio.shield(task)

    async def _fetch_and_store(self, request: ProviderRequest) -> ProviderResult:
        key = request.cache_key
        try:
            result = await self._provider_service.fetch(request)
            self._cache.set(key, result, self._ttl_for(result.category))
            return result
        finally:
            # 请求结束（成功或失败）后立即移出去重表
            current = asyncio.current_task()
            if self._in_flight.get(key) is current:
                del self._in_flight[key]


def _consume_exception(task: asyncio.Task) -> None:
    if not task.cancelled():
        task.exception()
