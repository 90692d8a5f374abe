"""Logging configuration with structlog integration.

提供两种日志记录方式：
1. loguru: 用于一般调试日志
2. structlog: 用于关键业务事件的结构化日志（刷新、降级、失败）
"""

import sys
from typing import Any

import structlog
from loguru import logger

from finboard.core.config import Settings, settings


def setup_logging(config: Settings | None = None) -> None:
    """Configure application logging with structlog and loguru."""
    config = config or settings

    _configure_structlog(config)
    _configure_loguru(config)

    logger.info(f"Logging configured with level: {config.LOG_LEVEL}")


def _configure_structlog(config: Settings) -> None:
    """配置 structlog 处理器链。"""
    if config.ENVIRONMENT == "local":
        # 本地开发使用人类可读格式
        renderer: Any = structlog.dev.ConsoleRenderer(colors=True)
    else:
        # 生产环境使用 JSON 格式
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _get_log_level_number(config.LOG_LEVEL)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _configure_loguru(config: Settings) -> None:
    """配置 loguru。"""
    logger.remove()

    logger.add(
        sys.stderr,
        level=config.LOG_LEVEL,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    if config.ENVIRONMENT != "local":
        logger.add(
            "logs/finboard_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="14 days",
            level="INFO",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        )


def _get_log_level_number(level: str) -> int:
    """将日志级别字符串转换为数字。"""
    levels = {
        "DEBUG": 10,
        "INFO": 20,
        "WARNING": 30,
        "ERROR": 40,
        "CRITICAL": 50,
    }
    return levels.get(level.upper(), 20)


# ============================================================================
# 业务事件日志记录器
# ============================================================================


class BusinessEvents:
    """业务事件日志助手类。

    提供统一的业务事件日志记录接口，确保事件格式一致。
    """

    _log = structlog.get_logger("business.events")

    @classmethod
    def widget_registered(
        cls,
        widget_id: str,
        provider: str,
        endpoint: str,
        refresh_interval_sec: int,
        **extra: Any,
    ) -> None:
        """记录 Widget 注册事件。"""
        cls._log.info(
            "widget_registered",
            event_type="widget",
            widget_id=widget_id,
            provider=provider,
            endpoint=endpoint,
            refresh_interval_sec=refresh_interval_sec,
            **extra,
        )

    @classmethod
    def widget_removed(cls, widget_id: str, **extra: Any) -> None:
        """记录 Widget 删除事件。"""
        cls._log.info(
            "widget_removed",
            event_type="widget",
            widget_id=widget_id,
            **extra,
        )

    @classmethod
    def widget_refreshed(
        cls,
        widget_id: str,
        cache_key: str,
        from_cache: bool,
        served_via_fallback: bool = False,
        **extra: Any,
    ) -> None:
        """记录 Widget 刷新成功事件。"""
        cls._log.info(
            "widget_refreshed",
            event_type="refresh",
            widget_id=widget_id,
            cache_key=cache_key,
            from_cache=from_cache,
            served_via_fallback=served_via_fallback,
            **extra,
        )

    @classmethod
    def widget_refresh_failed(
        cls,
        widget_id: str,
        error: str,
        error_kind: str,
        error_streak: int | None = None,
        **extra: Any,
    ) -> None:
        """记录 Widget 刷新失败事件。"""
        cls._log.warning(
            "widget_refresh_failed",
            event_type="refresh_error",
            widget_id=widget_id,
            error=error,
            error_kind=error_kind,
            error_streak=error_streak,
            **extra,
        )

    @classmethod
    def provider_fallback_used(
        cls,
        primary_provider: str,
        fallback_provider: str,
        endpoint: str,
        reason: str,
        symbol: str | None = None,
        **extra: Any,
    ) -> None:
        """记录 Provider 降级事件。"""
        cls._log.warning(
            "provider_fallback_used",
            event_type="degradation",
            primary_provider=primary_provider,
            fallback_provider=fallback_provider,
            endpoint=endpoint,
            symbol=symbol,
            reason=reason,
            **extra,
        )

    @classmethod
    def provider_call_failed(
        cls,
        provider: str,
        endpoint: str,
        error: str,
        retryable: bool,
        **extra: Any,
    ) -> None:
        """记录上游调用失败事件。"""
        cls._log.warning(
            "provider_call_failed",
            event_type="upstream_error",
            provider=provider,
            endpoint=endpoint,
            error=error,
            retryable=retryable,
            **extra,
        )

    @classmethod
    def cache_swept(cls, evicted: int, remaining: int, **extra: Any) -> None:
        """记录缓存清理事件。"""
        cls._log.info(
            "cache_swept",
            event_type="cache",
            evicted=evicted,
            remaining=remaining,
            **extra,
        )
