"""Widget API routes."""

from fastapi import APIRouter, Depends, status

from finboard.core.interfaces.http.response import ApiResponse
from finboard.modules.widgets.application.commands import (
    CreateWidgetCommand,
    UpdateWidgetCommand,
)
from finboard.modules.widgets.application.dependencies import get_widget_service
from finboard.modules.widgets.application.models import LayoutSnapshot, WidgetView
from finboard.modules.widgets.application.services import WidgetService
from finboard.modules.widgets.domain.entities import WidgetRuntimeState
from finboard.modules.widgets.interfaces.schemas import (
    CreateWidgetRequest,
    LayoutImportRequest,
    UpdateWidgetRequest,
    WidgetResponse,
)

router = APIRouter(prefix="/widgets", tags=["widgets"])


@router.get(
    "",
    response_model=ApiResponse[list[WidgetResponse]],
    summary="获取全部 widget",
)
async def list_widgets(
    service: WidgetService = Depends(get_widget_service),
) -> ApiResponse[list[WidgetResponse]]:
    configs = await service.list_all()
    return ApiResponse.success(data=[WidgetResponse.from_config(c) for c in configs])


@router.post(
    "",
    response_model=ApiResponse[WidgetResponse],
    status_code=status.HTTP_201_CREATED,
    summary="创建 widget",
    description="校验 provider/endpoint/symbol 后保存配置，并立即开始按间隔刷新",
)
async def create_widget(
    request: CreateWidgetRequest,
    service: WidgetService = Depends(get_widget_service),
) -> ApiResponse[WidgetResponse]:
    config = await service.create(CreateWidgetCommand(**request.model_dump()))
    return ApiResponse.success(
        data=WidgetResponse.from_config(config),
        message="Widget created",
        code=status.HTTP_201_CREATED,
    )


# layout 路由必须在 /{widget_id} 之前注册
@router.get(
    "/layout/export",
    response_model=ApiResponse[LayoutSnapshot],
    summary="导出布局",
)
async def export_layout(
    service: WidgetService = Depends(get_widget_service),
) -> ApiResponse[LayoutSnapshot]:
    return ApiResponse.success(data=await service.export_layout())


@router.post(
    "/layout/import",
    response_model=ApiResponse[list[WidgetResponse]],
    summary="导入布局（替换现有全部 widget）",
)
async def import_layout(
    request: LayoutImportRequest,
    service: WidgetService = Depends(get_widget_service),
) -> ApiResponse[list[WidgetResponse]]:
    configs = await service.import_layout(request.model_dump())
    return ApiResponse.success(
        data=[WidgetResponse.from_config(c) for c in configs],
        message=f"Imported {len(configs)} widgets",
    )


@router.get(
    "/{widget_id}",
    response_model=ApiResponse[WidgetResponse],
    summary="获取 widget 配置",
)
async def get_widget(
    widget_id: str,
    service: WidgetService = Depends(get_widget_service),
) -> ApiResponse[WidgetResponse]:
    config = await service.get(widget_id)
    return ApiResponse.success(data=WidgetResponse.from_config(config))


@router.patch(
    "/{widget_id}",
    response_model=ApiResponse[WidgetResponse],
    summary="更新 widget 配置",
)
async def update_widget(
    widget_id: str,
    request: UpdateWidgetRequest,
    service: WidgetService = Depends(get_widget_service),
) -> ApiResponse[WidgetResponse]:
    command = UpdateWidgetCommand(**request.model_dump(exclude_unset=True))
    config = await service.update(widget_id, command)
    return ApiResponse.success(data=WidgetResponse.from_config(config))


@router.delete(
    "/{widget_id}",
    response_model=ApiResponse[None],
    summary="删除 widget",
)
async def delete_widget(
    widget_id: str,
    service: WidgetService = Depends(get_widget_service),
) -> ApiResponse[None]:
    await service.remove(widget_id)
    return ApiResponse.success(message="Widget removed")


@router.post(
    "/{widget_id}/duplicate",
    response_model=ApiResponse[WidgetResponse],
    status_code=status.HTTP_201_CREATED,
    summary="复制 widget",
)
async def duplicate_widget(
    widget_id: str,
    service: WidgetService = Depends(get_widget_service),
) -> ApiResponse[WidgetResponse]:
    config = await service.duplicate(widget_id)
    return ApiResponse.success(
        data=WidgetResponse.from_config(config), code=status.HTTP_201_CREATED
    )


@router.post(
    "/{widget_id}/refresh",
    response_model=ApiResponse[WidgetRuntimeState],
    summary="立即刷新（跳过缓存）",
)
async def refresh_widget(
    widget_id: str,
    service: WidgetService = Depends(get_widget_service),
) -> ApiResponse[WidgetRuntimeState]:
    return ApiResponse.success(data=await service.refresh(widget_id))


@router.get(
    "/{widget_id}/state",
    response_model=ApiResponse[WidgetRuntimeState],
    summary="获取 widget 运行时状态",
)
async def get_widget_state(
    widget_id: str,
    service: WidgetService = Depends(get_widget_service),
) -> ApiResponse[WidgetRuntimeState]:
    await service.get(widget_id)
    return ApiResponse.success(data=service.state(widget_id))


@router.get(
    "/{widget_id}/view",
    response_model=ApiResponse[WidgetView],
    summary="获取绑定后的字段值",
)
async def get_widget_view(
    widget_id: str,
    service: WidgetService = Depends(get_widget_service),
) -> ApiResponse[WidgetView]:
    return ApiResponse.success(data=await service.view(widget_id))
