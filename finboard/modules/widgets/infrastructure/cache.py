"""In-memory TTL cache shared by all widget refresh loops.

基于 cachetools.TLRUCache：每个条目有自己的 TTL（按数据波动性分类），
容量超过 max_entries 时按最久未使用淘汰。条目写入后不可变，只会被整体替换；
过期条目在读取 / 计数时惰性淘汰，也会被周期性 sweep 清理。
"""

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Final

from cachetools import TLRUCache


class _Miss:
    _instance: "_Miss | None" = None

    def __new__(cls) -> "_Miss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Miss"


MISS: Final = _Miss()


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    stored_at: float
    ttl: float

    @property
    def expires_at(self) -> float:
        # 恰好到期仍算命中，过期条件是 now - stored_at > ttl
        return math.nextafter(self.stored_at + self.ttl, math.inf)


def _time_to_use(_key: str, entry: CacheEntry, _now: float) -> float:
    return entry.expires_at


class TTLCache:
    """Key/value cache with per-entry TTL and an injectable clock."""

    def __init__(
        self,
        max_entries: int = 512,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: TLRUCache[str, CacheEntry] = TLRUCache(
            maxsize=self.max_entries, ttu=_time_to_use, timer=clock
        )
        # cachetools 的缓存本身不是线程安全的
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        """Return the cached value, or ``MISS`` when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
        return MISS if entry is None else entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        entry = CacheEntry(key=key, value=value, stored_at=self._clock(), ttl=ttl)
        with self._lock:
            self._entries[key] = entry

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        """Evict every expired entry; returns the number evicted."""
        with self._lock:
            return len(self._entries.expire())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not MISS
