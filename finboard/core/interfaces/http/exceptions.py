"""HTTP exception handlers.

提供统一的异常处理机制，将领域异常转换为标准 HTTP 响应。
各模块的异常类通过定义 http_status_code 和 error_code 类属性来自定义响应。
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from finboard.core.domain.exceptions import DomainException
from finboard.core.interfaces.http.response import ErrorResponse


async def domain_exception_handler(
    _request: Request, exc: DomainException
) -> JSONResponse:
    """Handle domain exceptions.

    通过读取异常类的 http_status_code 和 error_code 类属性来确定响应。
    异常若提供 details()（例如 provider/endpoint/kind），一并返回给前端。
    """
    status_code = getattr(exc, "http_status_code", 400)
    error_code = getattr(exc, "error_code", "DOMAIN_ERROR")
    details_fn = getattr(exc, "details", None)
    details = details_fn() if callable(details_fn) else None

    body = ErrorResponse.create(code=error_code, message=exc.message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    body = ErrorResponse.create(
        code="INTERNAL_ERROR", message="An internal error occurred"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(),
    )
