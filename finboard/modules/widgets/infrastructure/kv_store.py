"""Key-value store backends for widget persistence."""

from typing import Protocol

from finboard.core.infrastructure.redis import RedisClient


class KeyValueStore(Protocol):
    """Minimal string key/value port: get / set / remove."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local store; contents are lost on restart."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class RedisKeyValueStore:
    """Redis-backed store."""

    def __init__(self, client: RedisClient):
        self._client = client

    async def get(self, key: str) -> str | None:
        return await self._client.get(key)

    async def set(self, key: str, value: str) -> None:
        await self._client.set(key, value)

    async def remove(self, key: str) -> None:
        await self._client.delete(key)
