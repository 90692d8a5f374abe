"""Service graph construction.

所有服务在应用启动时构造一次，通过引用传给使用方，不存在模块级单例。
"""

from dataclasses import dataclass

import httpx

from finboard.core.config import Settings
from finboard.core.domain.events import EventBus
from finboard.core.infrastructure.redis import RedisClient, RedisKeys
from finboard.modules.fields.domain.extractor import FieldExtractor
from finboard.modules.providers.application.service import ProviderService
from finboard.modules.providers.domain.entities import CacheCategory
from finboard.modules.providers.infrastructure.clients import ProviderClientFactory
from finboard.modules.widgets.application.loader import WidgetDataLoader
from finboard.modules.widgets.application.orchestrator import RefreshOrchestrator
from finboard.modules.widgets.application.services import WidgetService
from finboard.modules.widgets.application.store import WidgetStore
from finboard.modules.widgets.infrastructure.cache import TTLCache
from finboard.modules.widgets.infrastructure.kv_store import (
    InMemoryKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
)
from finboard.modules.widgets.infrastructure.repositories import (
    KeyValueWidgetConfigRepository,
)


@dataclass
class ServiceContainer:
    config: Settings
    event_bus: EventBus
    cache: TTLCache
    provider_service: ProviderService
    store: WidgetStore
    orchestrator: RefreshOrchestrator
    widget_service: WidgetService
    redis_client: RedisClient | None = None

    async def close(self) -> None:
        await self.orchestrator.stop()
        if self.redis_client is not None:
            await self.redis_client.close()


def cache_ttl(config: Settings, category: CacheCategory) -> float:
    """TTL by data volatility."""
    return {
        CacheCategory.QUOTE: config.CACHE_TTL_QUOTE_SEC,
        CacheCategory.SNAPSHOT: config.CACHE_TTL_SNAPSHOT_SEC,
        CacheCategory.HISTORICAL: config.CACHE_TTL_HISTORICAL_SEC,
    }[category]


def build_container(
    config: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    kv_store: KeyValueStore | None = None,
) -> ServiceContainer:
    extractor = FieldExtractor(
        max_depth=config.FIELD_EXTRACTION_MAX_DEPTH,
        sample_size=config.FIELD_SAMPLE_SIZE,
    )
    provider_service = ProviderService(
        ProviderClientFactory.create_all(config, transport=transport),
        fallback_enabled=config.PROVIDER_FALLBACK_ENABLED,
        extractor=extractor,
    )

    redis_client: RedisClient | None = None
    if kv_store is None:
        if config.WIDGET_STORE_BACKEND == "redis":
            redis_client = RedisClient(config.REDIS_URL)
            kv_store = RedisKeyValueStore(redis_client)
        else:
            kv_store = InMemoryKeyValueStore()

    event_bus = EventBus()
    cache = TTLCache(max_entries=config.CACHE_MAX_ENTRIES)
    loader = WidgetDataLoader(
        provider_service, cache, ttl_for=lambda category: cache_ttl(config, category)
    )
    store = WidgetStore(event_bus)
    orchestrator = RefreshOrchestrator(
        loader,
        store,
        cache,
        extractor,
        tick_timeout_sec=config.REFRESH_TICK_TIMEOUT_SEC,
        backoff_max_sec=config.REFRESH_BACKOFF_MAX_SEC,
        sweep_interval_sec=config.CACHE_SWEEP_INTERVAL_SEC,
    )
    widget_service = WidgetService(
        KeyValueWidgetConfigRepository(kv_store, RedisKeys(config.WIDGET_STORE_PREFIX)),
        orchestrator,
        provider_service,
        min_refresh_interval_sec=config.MIN_REFRESH_INTERVAL_SEC,
        default_refresh_interval_sec=config.DEFAULT_REFRESH_INTERVAL_SEC,
    )
    return ServiceContainer(
        config=config,
        event_bus=event_bus,
        cache=cache,
        provider_service=provider_service,
        store=store,
        orchestrator=orchestrator,
        widget_service=widget_service,
        redis_client=redis_client,
    )
