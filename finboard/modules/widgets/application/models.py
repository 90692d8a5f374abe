"""Widget application models."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from finboard.modules.fields.application.binding import BoundField
from finboard.modules.widgets.domain.entities import WidgetConfig, WidgetRuntimeState

LAYOUT_VERSION = 1


class BoundColumn(BaseModel):
    """One table column: the same path resolved against every row."""

    path: str
    label: str
    values: list[str] = Field(default_factory=list)


class WidgetView(BaseModel):
    """Config + state + selected fields bound against the latest data."""

    widget: WidgetConfig
    state: WidgetRuntimeState
    fields: list[BoundField] = Field(default_factory=list)
    columns: list[BoundColumn] = Field(default_factory=list)


class LayoutSnapshot(BaseModel):
    version: int = LAYOUT_VERSION
    exported_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    widgets: list[WidgetConfig] = Field(default_factory=list)
