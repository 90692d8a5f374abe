"""Widget domain events."""

from pydantic import Field

from finboard.core.domain.events import DomainEvent
from finboard.modules.widgets.domain.entities import WidgetRuntimeState


class WidgetStateChanged(DomainEvent):
    """Event raised whenever a widget's runtime state is replaced."""

    widget_id: str = Field(..., description="Widget ID")
    state: WidgetRuntimeState


class WidgetRemoved(DomainEvent):
    """Event raised when a widget is removed and its schedule cancelled."""

    widget_id: str = Field(..., description="Widget ID")
