"""Widget commands."""

from pydantic import BaseModel, Field

from finboard.modules.fields.domain.entities import ValueFormat
from finboard.modules.widgets.domain.entities import DisplayMode


class CreateWidgetCommand(BaseModel):
    """Command to create a widget."""

    provider: str
    endpoint: str
    symbol: str | None = None
    name: str = ""
    selected_fields: list[str] = Field(default_factory=list)
    field_formats: dict[str, ValueFormat] = Field(default_factory=dict)
    refresh_interval_sec: int | None = None
    display_mode: DisplayMode = DisplayMode.CARD


class UpdateWidgetCommand(BaseModel):
    """Command to update a widget; unset fields are left unchanged."""

    name: str | None = None
    endpoint: str | None = None
    symbol: str | None = None
    selected_fields: list[str] | None = None
    field_formats: dict[str, ValueFormat] | None = None
    refresh_interval_sec: int | None = None
    display_mode: DisplayMode | None = None
