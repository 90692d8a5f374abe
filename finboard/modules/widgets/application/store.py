"""Widget Store: the sink of runtime states consumed by renderers.

只有已注册的 widget 才能被更新：已删除 widget 的迟到结果会被直接丢弃。
每次状态替换都会发布 WidgetStateChanged 事件。
"""

from datetime import UTC, datetime
from typing import Any

from finboard.core.domain.events import EventBusProtocol
from finboard.modules.fields.domain.entities import FieldDescriptor
from finboard.modules.providers.domain.entities import ProviderResult
from finboard.modules.widgets.domain.entities import WidgetRuntimeState, WidgetStatus
from finboard.modules.widgets.domain.events import WidgetRemoved, WidgetStateChanged


class WidgetStore:
    def __init__(self, event_bus: EventBusProtocol | None = None):
        self._event_bus = event_bus
        self._states: dict[str, WidgetRuntimeState] = {}

    def __contains__(self, widget_id: object) -> bool:
        return widget_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def get(self, widget_id: str) -> WidgetRuntimeState | None:
        return self._states.get(widget_id)

    def all(self) -> dict[str, WidgetRuntimeState]:
        return dict(self._states)

    def register(self, widget_id: str) -> WidgetRuntimeState:
        """Create the idle state; an existing state is kept untouched."""
        state = self._states.get(widget_id)
        if state is None:
            state = WidgetRuntimeState(widget_id=widget_id)
            self._states[widget_id] = state
        return state

    async def discard(self, widget_id: str) -> bool:
        state = self._states.pop(widget_id, None)
        if state is None:
            return False
        if self._event_bus is not None:
            await self._event_bus.publish(WidgetRemoved(widget_id=widget_id))
        return True

    async def mark_loading(self, widget_id: str) -> WidgetRuntimeState | None:
        return await self._replace(
            widget_id, status=WidgetStatus.FETCHING, is_loading=True
        )

    async def clear_loading(self, widget_id: str) -> WidgetRuntimeState | None:
        """Leave the fetching state without recording an outcome."""
        state = self._states.get(widget_id)
        if state is None or not state.is_loading:
            return state
        if state.error is not None:
            status = WidgetStatus.FAILURE
        elif state.data is not None:
            status = WidgetStatus.SUCCESS
        else:
            status = WidgetStatus.IDLE
        return await self._replace(widget_id, status=status, is_loading=False)

    async def apply_success(
        self,
        widget_id: str,
        result: ProviderResult,
        *,
        from_cache: bool,
        fields: list[FieldDescriptor],
    ) -> WidgetRuntimeState | None:
        now = datetime.now(UTC)
        return await self._replace(
            widget_id,
            status=WidgetStatus.SUCCESS,
            data=result.data,
            last_updated=now,
            last_success_at=now,
            is_loading=False,
            error=None,
            error_kind=None,
            error_streak=0,
            from_cache=from_cache,
            served_via_fallback=result.served_via_fallback,
            fallback_from=result.fallback_from.value if result.fallback_from else None,
            shape=result.shape.value,
            fields=fields,
        )

    async def apply_failure(
        self,
        widget_id: str,
        error: str,
        error_kind: str,
    ) -> WidgetRuntimeState | None:
        """Record a failure; the previous data is kept."""
        state = self._states.get(widget_id)
        if state is None:
            return None
        return await self._replace(
            widget_id,
            status=WidgetStatus.FAILURE,
            last_updated=datetime.now(UTC),
            is_loading=False,
            error=error,
            error_kind=error_kind,
            error_streak=state.error_streak + 1,
            from_cache=False,
        )

    async def _replace(
        self, widget_id: str, **changes: Any
    ) -> WidgetRuntimeState | None:
        current = self._states.get(widget_id)
        if current is None:
            return None
        state = current.model_copy(update=changes)
        self._states[widget_id] = state
        if self._event_bus is not None:
            await self._event_bus.publish(
                WidgetStateChanged(widget_id=widget_id, state=state)
            )
        return state
