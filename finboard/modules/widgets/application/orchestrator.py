"""Cache & refresh orchestrator.

每个 widget 的状态机：Idle -> Fetching -> {Success, Failure} -> Idle（按计时器循环），
删除后进入 Cancelled（不再有任何状态更新）。

- 缓存命中：直接进入 Success，不设置 is_loading，不发请求
- 缓存未命中：进入 Fetching，经 WidgetDataLoader（带去重）请求上游
- 失败：保留旧 data，仅记录 error；限流时按连续失败次数退避
- 同一 widget 的 tick 由锁串行化，保证状态变化有序
"""

import asyncio
from collections.abc import Callable

from loguru import logger

from finboard.core.infrastructure.logging import BusinessEvents
from finboard.modules.fields.domain.entities import FieldDescriptor
from finboard.modules.fields.domain.extractor import FieldExtractor
from finboard.modules.providers.domain.entities import ProviderRequest, ProviderResult
from finboard.modules.providers.domain.exceptions import (
    ProviderError,
    RateLimitedError,
    UpstreamTimeoutError,
)
from finboard.modules.widgets.application.loader import WidgetDataLoader
from finboard.modules.widgets.application.scheduler import RefreshScheduler
from finboard.modules.widgets.application.store import WidgetStore
from finboard.modules.widgets.domain.entities import WidgetConfig, WidgetRuntimeState
from finboard.modules.widgets.domain.exceptions import (
    UnexpectedRefreshError,
    WidgetNotFoundError,
)
from finboard.modules.widgets.infrastructure.cache import TTLCache

MAX_BACKOFF_MULTIPLIER = 8


def rate_limit_backoff(interval_sec: float, streak: int, cap_sec: float) -> float:
    """interval × min(2^streak, 8), capped."""
    multiplier = min(2 ** max(streak, 0), MAX_BACKOFF_MULTIPLIER)
    return min(interval_sec * multiplier, cap_sec)


class RefreshOrchestrator:
    def __init__(
        self,
        loader: WidgetDataLoader,
        store: WidgetStore,
        cache: TTLCache,
        extractor: FieldExtractor | None = None,
        *,
        tick_timeout_sec: float | None = None,
        backoff_max_sec: float = 600.0,
        sweep_interval_sec: float = 60.0,
        scheduler_factory: Callable[..., RefreshScheduler] = RefreshScheduler,
    ):
        self._loader = loader
        self._store = store
        self._cache = cache
        self._extractor = extractor or FieldExtractor()
        self.tick_timeout_sec = tick_timeout_sec
        self.backoff_max_sec = backoff_max_sec
        self.sweep_interval_sec = sweep_interval_sec

        self._configs: dict[str, WidgetConfig] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._scheduler = scheduler_factory(self._scheduled_tick)
        self._sweeper: asyncio.Task[None] | None = None

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    @property
    def widget_count(self) -> int:
        return len(self._configs)

    def is_registered(self, widget_id: str) -> bool:
        return widget_id in self._configs

    def state(self, widget_id: str) -> WidgetRuntimeState:
        state = self._store.get(widget_id)
        if state is None:
            raise WidgetNotFoundError(widget_id)
        return state

    # ============ 生命周期 ============

    def register(self, config: WidgetConfig, *, immediate: bool = True) -> None:
        """Track a widget and start its timer (first tick right away by default)."""
        self._configs[config.id] = config
        self._locks.setdefault(config.id, asyncio.Lock())
        self._store.register(config.id)
        self._scheduler.schedule(
            config.id, config.refresh_interval_sec, immediate=immediate
        )
        BusinessEvents.widget_registered(
            widget_id=config.id,
            provider=config.provider.value,
            endpoint=config.endpoint,
            refresh_interval_sec=config.refresh_interval_sec,
        )

    def update(self, config: WidgetConfig) -> None:
        """Apply an edited config.

        数据源变化时立即刷新；仅间隔变化时重置计时器。两种情况都保留已有 data。
        """
        previous = self._configs.get(config.id)
        if previous is None:
            raise WidgetNotFoundError(config.id)
        self._configs[config.id] = config

        if previous.request != config.request:
            self._scheduler.schedule(
                config.id, config.refresh_interval_sec, immediate=True
            )
        elif previous.refresh_interval_sec != config.refresh_interval_sec:
            self._scheduler.reschedule(config.id, config.refresh_interval_sec)

    async def remove(self, widget_id: str) -> bool:
        """Cancel the timer and drop the state; late results are discarded."""
        self._scheduler.cancel(widget_id)
        config = self._configs.pop(widget_id, None)
        self._locks.pop(widget_id, None)
        removed = await self._store.discard(widget_id)
        if config is not None:
            BusinessEvents.widget_removed(widget_id=widget_id)
        return removed

    async def refresh_now(self, widget_id: str) -> WidgetRuntimeState:
        """Manual refresh, bypassing the cache (still deduplicated)."""
        if widget_id not in self._configs:
            raise WidgetNotFoundError(widget_id)
        await self.tick(widget_id, force=True)
        return self.state(widget_id)

    # ============ 刷新 ============

    async def _scheduled_tick(self, widget_id: str) -> float | None:
        return await self.tick(widget_id)

    async def tick(self, widget_id: str, force: bool = False) -> float | None:
        """Run one refresh for the widget.

        Returns:
            下一次 tick 的延迟（限流退避时），否则 None
        """
        lock = self._locks.get(widget_id)
        if lock is None:
            return None

        async with lock:
            config = self._configs.get(widget_id)
            if config is None:
                return None
            request = config.request

            if not force:
                cached = self._loader.cached(request)
                if cached is not None:
                    await self._deliver_success(widget_id, request, cached, True)
                    return None

            timeout_sec = self.tick_timeout(request)
            await self._store.mark_loading(widget_id)
            try:
                async with asyncio.timeout(timeout_sec):
                    result = await self._loader.load(request, force=force)
            except asyncio.CancelledError:
                await self._store.clear_loading(widget_id)
                raise
            except TimeoutError:
                error: ProviderError = UpstreamTimeoutError(
                    f"No response within {timeout_sec:g}s",
                    provider=request.provider.value,
                    endpoint=request.endpoint,
                )
                return await self._deliver_failure(widget_id, request, config, error)
            except ProviderError as exc:
                return await self._deliver_failure(widget_id, request, config, exc)
            except Exception as exc:
                logger.exception(f"Unexpected error refreshing widget {widget_id}")
                error = UnexpectedRefreshError(f"Unexpected error: {exc}")
                return await self._deliver_failure(widget_id, request, config, error)

            await self._deliver_success(widget_id, request, result, False)
            return None

    def tick_timeout(self, request: ProviderRequest) -> float:
        """固定值优先；否则按 provider 的超时与重试策略（含降级调用）推算。"""
        if self.tick_timeout_sec is not None:
            return self.tick_timeout_sec
        return self._loader.time_budget(request)

    def _is_current(self, widget_id: str, request: ProviderRequest) -> bool:
        config = self._configs.get(widget_id)
        return config is not None and config.request == request

    async def _deliver_success(
        self,
        widget_id: str,
        request: ProviderRequest,
        result: ProviderResult,
        from_cache: bool,
    ) -> None:
        if not self._is_current(widget_id, request):
            await self._store.clear_loading(widget_id)
            return

        state = await self._store.apply_success(
            widget_id,
            result,
            from_cache=from_cache,
            fields=self._fields_for(widget_id, result),
        )
        if state is not None:
            BusinessEvents.widget_refreshed(
                widget_id=widget_id,
                cache_key=request.cache_key,
                from_cache=from_cache,
                served_via_fallback=result.served_via_fallback,
            )

    async def _deliver_failure(
        self,
        widget_id: str,
        request: ProviderRequest,
        config: WidgetConfig,
        error: ProviderError,
    ) -> float | None:
        if not self._is_current(widget_id, request):
            await self._store.clear_loading(widget_id)
            return None

        state = await self._store.apply_failure(widget_id, error.message, error.kind)
        if state is None:
            return None

        BusinessEvents.widget_refresh_failed(
            widget_id=widget_id,
            error=error.message,
            error_kind=error.kind,
            error_streak=state.error_streak,
        )
        if isinstance(error, RateLimitedError):
            return rate_limit_backoff(
                config.refresh_interval_sec, state.error_streak, self.backoff_max_sec
            )
        return None

    def _fields_for(
        self, widget_id: str, result: ProviderResult
    ) -> list[FieldDescriptor]:
        state = self._store.get(widget_id)
        if state is not None and state.data is result.data:
            return state.fields
        return self._extractor.extract(result.data)

    # ============ 缓存清理 / 关闭 ============

    def start(self) -> None:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop(), name="cache-sweeper")

    async def stop(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            await asyncio.gather(self._sweeper, return_exceptions=True)
            self._sweeper = None
        await self._scheduler.cancel_all()

    def sweep_cache(self) -> int:
        evicted = self._cache.sweep()
        if evicted:
            BusinessEvents.cache_swept(evicted=evicted, remaining=len(self._cache))
        return evicted

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_sec)
            try:
                self.sweep_cache()
            except Exception:
                logger.exception("Cache sweep failed")
