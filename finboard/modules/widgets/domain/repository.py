"""Widget repository interface."""

from abc import abstractmethod

from finboard.core.domain.repository import BaseRepository
from finboard.modules.widgets.domain.entities import WidgetConfig


class WidgetConfigRepository(BaseRepository[WidgetConfig]):
    """WidgetConfig repository interface."""

    @abstractmethod
    async def replace_all(self, configs: list[WidgetConfig]) -> None:
        """Replace the whole collection (layout import)."""
        pass
