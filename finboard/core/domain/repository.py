"""Base repository interface."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class BaseRepository(ABC, Generic[T]):
    """基础Repository接口，定义通用CRUD操作"""

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> T | None:
        """根据ID获取实体"""
        pass

    @abstractmethod
    async def save(self, entity: T) -> T:
        """创建或覆盖实体"""
        pass

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        """删除实体"""
        pass

    @abstractmethod
    async def list_all(self) -> list[T]:
        """按创建顺序获取全部实体"""
        pass
