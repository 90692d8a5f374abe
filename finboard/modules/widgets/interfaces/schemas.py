"""Widget API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from finboard.modules.fields.domain.entities import ValueFormat
from finboard.modules.widgets.domain.entities import DisplayMode, WidgetConfig


class CreateWidgetRequest(BaseModel):
    provider: str = Field(..., description="数据源")
    endpoint: str = Field(..., description="逻辑端点")
    symbol: str | None = Field(default=None, description="证券代码")
    name: str = Field(default="", max_length=120, description="显示名称")
    selected_fields: list[str] = Field(default_factory=list, description="已选字段路径")
    field_formats: dict[str, ValueFormat] = Field(default_factory=dict)
    refresh_interval_sec: int | None = Field(default=None, description="刷新间隔（秒）")
    display_mode: DisplayMode = Field(default=DisplayMode.CARD)


class UpdateWidgetRequest(BaseModel):
    name: str | None = Field(default=None, max_length=120)
    endpoint: str | None = None
    symbol: str | None = None
    selected_fields: list[str] | None = None
    field_formats: dict[str, ValueFormat] | None = None
    refresh_interval_sec: int | None = None
    display_mode: DisplayMode | None = None


class WidgetResponse(BaseModel):
    id: str
    name: str
    display_name: str
    provider: str
    endpoint: str
    symbol: str | None
    selected_fields: list[str]
    field_formats: dict[str, str]
    refresh_interval_sec: int
    display_mode: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_config(cls, config: WidgetConfig) -> "WidgetResponse":
        return cls(
            id=config.id,
            name=config.name,
            display_name=config.display_name,
            provider=config.provider.value,
            endpoint=config.endpoint,
            symbol=config.symbol,
            selected_fields=list(config.selected_fields),
            field_formats={k: v.value for k, v in config.field_formats.items()},
            refresh_interval_sec=config.refresh_interval_sec,
            display_mode=config.display_mode.value,
            created_at=config.created_at,
            updated_at=config.updated_at,
        )


class LayoutImportRequest(BaseModel):
    version: int = Field(..., description="布局格式版本")
    widgets: list[dict[str, Any]] = Field(default_factory=list)
