"""Redis 客户端封装。"""

from finboard.core.infrastructure.redis.client import RedisClient
from finboard.core.infrastructure.redis.keys import RedisKeys

__all__ = [
    "RedisClient",
    "RedisKeys",
]
