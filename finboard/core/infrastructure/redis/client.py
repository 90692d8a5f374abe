"""Redis 客户端封装。

提供统一的 Redis 访问接口，支持：
- 延迟建立连接
- 健康检查
- 字符串读写
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import redis.asyncio as aioredis
from loguru import logger

if TYPE_CHECKING:
    from redis.asyncio import Redis

from finboard.core.infrastructure.health import HealthStatus, RedisHealthResult


class RedisClient:
    """Redis 客户端封装类。"""

    def __init__(self, url: str):
        """初始化 Redis 客户端。

        Args:
            url: Redis 连接 URL（通常来自 settings.REDIS_URL）
        """
        self._url = url
        self._client: Redis | None = None

    @property
    def client(self) -> Redis:
        """获取 Redis 客户端实例（延迟初始化）。"""
        if self._client is None:
            self._client = aioredis.from_url(
                self._url,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=10.0,
                socket_connect_timeout=5.0,
                retry_on_timeout=True,
            )
        return self._client

    async def close(self) -> None:
        """关闭 Redis 连接。"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def ping(self) -> bool:
        """检查 Redis 连接是否正常。"""
        try:
            return await self.client.ping()
        except Exception as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def health_check(self) -> RedisHealthResult:
        """执行 Redis 健康检查。"""
        try:
            is_connected = await self.ping()
            info = await self.client.info("server") if is_connected else {}
            return RedisHealthResult(
                status=HealthStatus.OK if is_connected else HealthStatus.ERROR,
                connected=is_connected,
                version=info.get("redis_version", "unknown"),
            )
        except Exception as e:
            return RedisHealthResult(
                status=HealthStatus.ERROR,
                connected=False,
                error=str(e),
            )

    # ============ 字符串操作 ============

    async def get(self, key: str) -> str | None:
        """获取字符串值。"""
        return await self.client.get(key)

    async def set(
        self,
        key: str,
        value: str,
        ex: int | timedelta | None = None,
    ) -> bool:
        """设置字符串值。"""
        return await self.client.set(key, value, ex=ex)

    async def delete(self, *keys: str) -> int:
        """删除一个或多个键。"""
        return await self.client.delete(*keys)
