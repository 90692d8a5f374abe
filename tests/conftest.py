"""
pytest 配置和共享 fixtures。

测试分层：
- unit/: 单元测试（不依赖外部服务，上游 HTTP 全部由 httpx.MockTransport 模拟）

使用方法：
    # 运行所有测试
    pytest

    # 只运行单元测试
    pytest tests/unit/
"""

from collections.abc import Callable
from typing import Any

import pytest

from finboard.core.config import Settings
from finboard.modules.providers.domain.entities import (
    CacheCategory,
    PayloadShape,
    Provider,
    ProviderResult,
)
from tests.support import FakeClock, UpstreamStub

# ============================================
# 配置 Fixtures
# ============================================


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    """测试环境配置：三个 provider 都已配置，重试不等待。"""
    return Settings(
        ENVIRONMENT="local",
        LOG_LEVEL="WARNING",
        ALPHA_VANTAGE_API_KEY="av-test-key",
        FINNHUB_API_KEY="fh-test-key",
        INDIAN_API_KEY="in-test-key",
        UPSTREAM_TIMEOUT_SEC=2.0,
        UPSTREAM_RETRY_BACKOFF_SEC=0.0,
        UPSTREAM_RETRY_BACKOFF_MAX_SEC=0.0,
        ALPHA_VANTAGE_MAX_RETRIES=0,
        FINNHUB_MAX_RETRIES=2,
        INDIAN_API_MAX_RETRIES=1,
        CACHE_SWEEP_INTERVAL_SEC=3600.0,
        WIDGET_STORE_BACKEND="memory",
    )


# ============================================
# 时钟 / 上游模拟
# ============================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


# ============================================
# 示例 payload
# ============================================


@pytest.fixture
def av_quote_payload() -> dict:
    return {
        "Global Quote": {
            "01. symbol": "AAPL",
            "05. price": "150.00",
            "09. change": "-1.25",
            "10. change percent": "-0.8265%",
        }
    }


@pytest.fixture
def finnhub_quote_payload() -> dict:
    return {
        "c": 151.2,
        "d": 0.7,
        "dp": 0.46,
        "h": 152.0,
        "l": 149.8,
        "o": 150.1,
        "pc": 150.5,
        "t": 1700000000,
    }


@pytest.fixture
def make_result() -> Callable[..., ProviderResult]:
    """构造 ProviderResult 的工厂。"""

    def _make(
        data: Any = None,
        provider: Provider = Provider.ALPHA_VANTAGE,
        endpoint: str = "quote",
        symbol: str | None = "AAPL",
        **kwargs: Any,
    ) -> ProviderResult:
        return ProviderResult(
            provider=provider,
            endpoint=endpoint,
            symbol=symbol,
            data={"price": 1} if data is None else data,
            shape=kwargs.pop("shape", PayloadShape.FLAT_OBJECT),
            category=kwargs.pop("category", CacheCategory.QUOTE),
            **kwargs,
        )

    return _make
