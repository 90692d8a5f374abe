"""Widget repository implementation on top of a key-value store."""

import asyncio
import json

from loguru import logger
from pydantic import ValidationError

from finboard.core.infrastructure.redis.keys import RedisKeys
from finboard.modules.widgets.domain.entities import WidgetConfig
from finboard.modules.widgets.domain.repository import WidgetConfigRepository
from finboard.modules.widgets.infrastructure.kv_store import KeyValueStore


class KeyValueWidgetConfigRepository(WidgetConfigRepository):
    """Stores each config as JSON under ``<prefix>widget:<id>``.

    另存一个有序的 id 索引（JSON 数组），保证 list_all 按创建顺序返回。
    """

    def __init__(self, store: KeyValueStore, keys: RedisKeys):
        self._store = store
        self._keys = keys
        self._index_lock = asyncio.Lock()

    async def get_by_id(self, entity_id: str) -> WidgetConfig | None:
        raw = await self._store.get(self._keys.widget(entity_id))
        if raw is None:
            return None
        return self._decode(entity_id, raw)

    async def save(self, entity: WidgetConfig) -> WidgetConfig:
        await self._store.set(self._keys.widget(entity.id), entity.model_dump_json())
        async with self._index_lock:
            index = await self._read_index()
            if entity.id not in index:
                index.append(entity.id)
                await self._write_index(index)
        return entity

    async def delete(self, entity_id: str) -> bool:
        async with self._index_lock:
            index = await self._read_index()
            existed = entity_id in index
            if existed:
                index.remove(entity_id)
                await self._write_index(index)
        await self._store.remove(self._keys.widget(entity_id))
        return existed

    async def list_all(self) -> list[WidgetConfig]:
        configs: list[WidgetConfig] = []
        for widget_id in await self._read_index():
            config = await self.get_by_id(widget_id)
            if config is not None:
                configs.append(config)
        return configs

    async def replace_all(self, configs: list[WidgetConfig]) -> None:
        async with self._index_lock:
            for widget_id in await self._read_index():
                await self._store.remove(self._keys.widget(widget_id))
            for config in configs:
                await self._store.set(
                    self._keys.widget(config.id), config.model_dump_json()
                )
            await self._write_index([c.id for c in configs])

    async def _read_index(self) -> list[str]:
        raw = await self._store.get(self._keys.widget_index())
        if not raw:
            return []
        try:
            index = json.loads(raw)
        except ValueError:
            logger.warning("Widget index is not valid JSON, starting empty")
            return []
        return [str(i) for i in index] if isinstance(index, list) else []

    async def _write_index(self, index: list[str]) -> None:
        await self._store.set(self._keys.widget_index(), json.dumps(index))

    @staticmethod
    def _decode(widget_id: str, raw: str) -> WidgetConfig | None:
        try:
            return WidgetConfig.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Skipping unreadable widget config {widget_id}: {e}")
            return None
