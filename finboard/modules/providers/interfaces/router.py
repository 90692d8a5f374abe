"""Provider API routes."""

from fastapi import APIRouter, Depends

from finboard.core.interfaces.http.response import ApiResponse
from finboard.modules.providers.application.dependencies import get_provider_service
from finboard.modules.providers.application.models import (
    ConnectionTestResult,
    ProviderInfo,
)
from finboard.modules.providers.application.service import ProviderService
from finboard.modules.providers.interfaces.schemas import (
    EndpointResponse,
    ConnectionTestRequest,
)

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get(
    "",
    response_model=ApiResponse[list[ProviderInfo]],
    summary="获取数据源列表",
)
async def list_providers(
    service: ProviderService = Depends(get_provider_service),
) -> ApiResponse[list[ProviderInfo]]:
    return ApiResponse.success(data=service.list_providers())


@router.get(
    "/{provider}/endpoints",
    response_model=ApiResponse[list[EndpointResponse]],
    summary="获取数据源支持的端点",
)
async def list_endpoints(
    provider: str,
    service: ProviderService = Depends(get_provider_service),
) -> ApiResponse[list[EndpointResponse]]:
    endpoints = service.list_endpoints(provider)
    return ApiResponse.success(data=[EndpointResponse.from_spec(e) for e in endpoints])


@router.post(
    "/test-connection",
    response_model=ApiResponse[ConnectionTestResult],
    summary="测试连接并预览可用字段",
    description="请求一次上游数据，返回提取出的字段目录；失败信息在结果中返回",
)
async def test_connection(
    request: ConnectionTestRequest,
    service: ProviderService = Depends(get_provider_service),
) -> ApiResponse[ConnectionTestResult]:
    result = await service.test_connection(
        request.provider, request.endpoint, request.symbol
    )
    return ApiResponse.success(data=result)
