"""Widget domain entities."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finboard.core.domain.base_entity import BaseEntity, new_entity_id
from finboard.modules.fields.domain.entities import FieldDescriptor, ValueFormat
from finboard.modules.providers.domain.entities import (
    Provider,
    ProviderRequest,
    normalize_symbol,
)

MIN_REFRESH_INTERVAL_SEC = 10


class DisplayMode(StrEnum):
    """渲染方式，仅影响哪些字段适合展示。"""

    CARD = "card"
    TABLE = "table"
    CHART = "chart"


class WidgetStatus(StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


class WidgetConfig(BaseEntity):
    """WidgetConfig entity - 用户定义的一个看板卡片。"""

    id: str = Field(default_factory=lambda: new_entity_id("wgt_"))
    name: str = Field(default="", max_length=120, description="显示名称")
    provider: Provider = Field(..., description="数据源")
    endpoint: str = Field(..., min_length=1, description="逻辑端点")
    symbol: str | None = Field(default=None, description="证券代码")
    selected_fields: list[str] = Field(
        default_factory=list, description="已选字段路径（顺序即展示顺序）"
    )
    field_formats: dict[str, ValueFormat] = Field(
        default_factory=dict, description="字段格式（currency/percentage/...）"
    )
    refresh_interval_sec: int = Field(
        default=30, ge=MIN_REFRESH_INTERVAL_SEC, description="刷新间隔（秒）"
    )
    display_mode: DisplayMode = Field(default=DisplayMode.CARD)

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str | None) -> str | None:
        return normalize_symbol(value)

    @field_validator("selected_fields")
    @classmethod
    def _ordered_unique(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        ordered: list[str] = []
        for path in value:
            if path in seen:
                continue
            seen.add(path)
            ordered.append(path)
        return ordered

    @property
    def request(self) -> ProviderRequest:
        return ProviderRequest(
            provider=self.provider, endpoint=self.endpoint, symbol=self.symbol
        )

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        suffix = f" {self.symbol}" if self.symbol else ""
        return f"{self.provider.value} {self.endpoint}{suffix}"


class WidgetRuntimeState(BaseModel):
    """Live companion of a WidgetConfig, replaced wholesale on every transition.

    刷新失败时保留上一次成功的 data，同时记录新的 error。
    """

    model_config = ConfigDict(frozen=True)

    widget_id: str
    status: WidgetStatus = WidgetStatus.IDLE
    data: Any = None
    last_updated: datetime | None = None
    last_success_at: datetime | None = None
    is_loading: bool = False
    error: str | None = None
    error_kind: str | None = None
    error_streak: int = 0
    from_cache: bool = False
    served_via_fallback: bool = False
    fallback_from: str | None = None
    shape: str | None = None
    fields: list[FieldDescriptor] = Field(default_factory=list)
