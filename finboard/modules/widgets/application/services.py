"""Widget application service."""

from datetime import UTC, datetime
from typing import Any

from loguru import logger
from pydantic import ValidationError

from finboard.modules.fields.application.binding import (
    bind_fields,
    format_cell,
    resolve_column,
)
from finboard.modules.fields.domain.entities import ABSENT
from finboard.modules.fields.domain.extractor import REPRESENTATIVE_INDEX
from finboard.modules.fields.domain.labels import label_for_path
from finboard.modules.providers.application.models import ConnectionTestResult
from finboard.modules.providers.application.service import ProviderService
from finboard.modules.providers.domain.entities import EndpointSpec
from finboard.modules.widgets.application.commands import (
    CreateWidgetCommand,
    UpdateWidgetCommand,
)
from finboard.modules.widgets.application.models import (
    LAYOUT_VERSION,
    BoundColumn,
    LayoutSnapshot,
    WidgetView,
)
from finboard.modules.widgets.application.orchestrator import RefreshOrchestrator
from finboard.modules.widgets.domain.entities import (
    DisplayMode,
    WidgetConfig,
    WidgetRuntimeState,
)
from finboard.modules.widgets.domain.exceptions import (
    InvalidWidgetConfigError,
    WidgetNotFoundError,
)
from finboard.modules.widgets.domain.repository import WidgetConfigRepository


class WidgetService:
    """Widget lifecycle: persistence + refresh registration + read models."""

    def __init__(
        self,
        repository: WidgetConfigRepository,
        orchestrator: RefreshOrchestrator,
        provider_service: ProviderService,
        min_refresh_interval_sec: int = 10,
        default_refresh_interval_sec: int = 30,
    ):
        self._repository = repository
        self._orchestrator = orchestrator
        self._provider_service = provider_service
        self.min_refresh_interval_sec = min_refresh_interval_sec
        self.default_refresh_interval_sec = default_refresh_interval_sec

    # ============ 查询 ============

    async def get(self, widget_id: str) -> WidgetConfig:
        config = await self._repository.get_by_id(widget_id)
        if config is None:
            raise WidgetNotFoundError(widget_id)
        return config

    async def list_all(self) -> list[WidgetConfig]:
        return await self._repository.list_all()

    def state(self, widget_id: str) -> WidgetRuntimeState:
        return self._orchestrator.state(widget_id)

    async def view(self, widget_id: str) -> WidgetView:
        config = await self.get(widget_id)
        state = self.state(widget_id)

        fields = bind_fields(
            state.data,
            config.selected_fields,
            formats={k: v.value for k, v in config.field_formats.items()},
            catalog=state.fields,
        )
        columns: list[BoundColumn] = []
        if config.display_mode is DisplayMode.TABLE:
            labels = {f.path: f.label for f in state.fields}
            for path in config.selected_fields:
                if REPRESENTATIVE_INDEX not in path:
                    continue
                values = resolve_column(state.data, path)
                fmt = config.field_formats.get(path)
                columns.append(
                    BoundColumn(
                        path=path,
                        label=labels.get(path) or label_for_path(path),
                        values=[]
                        if values is ABSENT
                        else [format_cell(v, fmt) for v in values],
                    )
                )
        return WidgetView(widget=config, state=state, fields=fields, columns=columns)

    def list_endpoints(self, provider: str) -> list[EndpointSpec]:
        return self._provider_service.list_endpoints(provider)

    async def test_connection(
        self, provider: str, endpoint: str, symbol: str | None = None
    ) -> ConnectionTestResult:
        return await self._provider_service.test_connection(provider, endpoint, symbol)

    # ============ 命令 ============

    async def create(self, command: CreateWidgetCommand) -> WidgetConfig:
        request = self._provider_service.build_request(
            command.provider, command.endpoint, command.symbol
        )
        interval = command.refresh_interval_sec or self.default_refresh_interval_sec
        config = self._build_config(
            {
                **command.model_dump(exclude={"refresh_interval_sec"}),
                "provider": request.provider,
                "symbol": request.symbol,
                "refresh_interval_sec": interval,
            }
        )
        await self._repository.save(config)
        self._orchestrator.register(config)
        logger.info(f"Widget created: {config.id} ({config.display_name})")
        return config

    async def update(
        self, widget_id: str, command: UpdateWidgetCommand
    ) -> WidgetConfig:
        current = await self.get(widget_id)
        changes = command.model_dump(exclude_unset=True)

        merged: dict[str, Any] = {**current.model_dump(), **changes}
        request = self._provider_service.build_request(
            merged["provider"], merged["endpoint"], merged.get("symbol")
        )
        merged["symbol"] = request.symbol
        merged["updated_at"] = datetime.now(UTC)
        config = self._build_config(merged)

        await self._repository.save(config)
        if self._orchestrator.is_registered(widget_id):
            self._orchestrator.update(config)
        else:
            self._orchestrator.register(config)
        return config

    async def remove(self, widget_id: str) -> None:
        await self.get(widget_id)
        await self._orchestrator.remove(widget_id)
        await self._repository.delete(widget_id)
        logger.info(f"Widget removed: {widget_id}")

    async def duplicate(self, widget_id: str) -> WidgetConfig:
        source = await self.get(widget_id)
        data = source.model_dump(exclude={"id", "created_at", "updated_at"})
        data["name"] = f"{source.display_name} (Copy)"[:120]
        config = self._build_config(data)
        await self._repository.save(config)
        self._orchestrator.register(config)
        return config

    async def refresh(self, widget_id: str) -> WidgetRuntimeState:
        await self.get(widget_id)
        return await self._orchestrator.refresh_now(widget_id)

    # ============ 布局导入导出 / 启动恢复 ============

    async def export_layout(self) -> LayoutSnapshot:
        return LayoutSnapshot(widgets=await self.list_all())

    async def import_layout(self, payload: dict[str, Any]) -> list[WidgetConfig]:
        """Replace every widget with the ones in ``payload``."""
        try:
            snapshot = LayoutSnapshot.model_validate(payload)
        except ValidationError as e:
            raise InvalidWidgetConfigError(f"layout is malformed: {e}") from e
        if snapshot.version != LAYOUT_VERSION:
            raise InvalidWidgetConfigError(
                f"unsupported layout version {snapshot.version}"
            )

        configs: list[WidgetConfig] = []
        for config in snapshot.widgets:
            self._check_interval(config.refresh_interval_sec)
            request = self._provider_service.build_request(
                config.provider, config.endpoint, config.symbol
            )
            if config.symbol != request.symbol:
                config = config.model_copy(update={"symbol": request.symbol})
            configs.append(config)

        for existing in await self.list_all():
            await self._orchestrator.remove(existing.id)
        await self._repository.replace_all(configs)
        for config in configs:
            self._orchestrator.register(config)
        logger.info(f"Layout imported: {len(configs)} widgets")
        return configs

    async def restore(self) -> int:
        """Register every persisted widget (called once at startup)."""
        restored = 0
        for config in await self.list_all():
            if self._orchestrator.is_registered(config.id):
                continue
            self._orchestrator.register(config)
            restored += 1
        logger.info(f"Restored {restored} widgets")
        return restored

    def _check_interval(self, interval: int) -> None:
        if interval < self.min_refresh_interval_sec:
            raise InvalidWidgetConfigError(
                f"refresh_interval_sec must be >= {self.min_refresh_interval_sec}"
            )

    def _build_config(self, data: dict[str, Any]) -> WidgetConfig:
        interval = data.get("refresh_interval_sec")
        if isinstance(interval, int):
            self._check_interval(interval)
        try:
            return WidgetConfig.model_validate(data)
        except ValidationError as e:
            raise InvalidWidgetConfigError(str(e)) from e
