"""Widget module application dependencies."""

from typing import NoReturn

from finboard.modules.widgets.application.services import WidgetService


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_widget_service() -> WidgetService:
    _missing_dependency("WidgetService")
