"""ProviderService 单元测试：请求规范化、显式降级、连接测试。"""

import httpx
import pytest

from finboard.modules.providers.application.service import ProviderService
from finboard.modules.providers.domain.entities import Provider, ProviderRequest
from finboard.modules.providers.domain.exceptions import (
    ConfigurationError,
    RateLimitedError,
    SymbolRequiredError,
    UnsupportedEndpointError,
    UpstreamError,
)
from finboard.modules.providers.infrastructure.clients.factory import (
    ProviderClientFactory,
)
from tests.support import AV_HOST, FINNHUB_HOST, INDIAN_HOST

pytestmark = pytest.mark.anyio

FH_QUOTE = "/api/v1/quote"
AV_QUOTE = ProviderRequest(Provider.ALPHA_VANTAGE, "quote", "AAPL")


def _service(config, upstream, **kwargs) -> ProviderService:
    clients = ProviderClientFactory.create_all(config, transport=upstream.transport)
    return ProviderService(clients, **kwargs)


@pytest.fixture
def service(test_settings, upstream) -> ProviderService:
    return _service(test_settings, upstream)


class TestBuildRequest:
    """请求规范化测试。"""

    def test_symbol_trimmed(self, service):
        request = service.build_request("alpha_vantage", "quote", "  AAPL ")
        assert request == AV_QUOTE
        assert request.cache_key == "alpha_vantage:quote:AAPL"

    def test_symbol_dropped_for_market_endpoints(self, service):
        """不接受 symbol 的端点丢弃传入的 symbol，缓存键因此一致。"""
        with_symbol = service.build_request(Provider.INDIAN_API, "top-gainers", "TCS")
        without = service.build_request(Provider.INDIAN_API, "top-gainers")

        assert with_symbol.symbol is None
        assert with_symbol.cache_key == without.cache_key == "indian_api:top-gainers:"

    @pytest.mark.parametrize("symbol", [None, "", "   "])
    def test_symbol_required(self, service, symbol):
        with pytest.raises(SymbolRequiredError):
            service.build_request(Provider.FINNHUB, "quote", symbol)

    def test_symbol_required_is_unprocessable(self, service):
        with pytest.raises(SymbolRequiredError) as exc_info:
            service.build_request(Provider.ALPHA_VANTAGE, "daily")

        assert exc_info.value.http_status_code == 422
        assert exc_info.value.kind == "symbol_required"

    def test_unknown_provider(self, service):
        with pytest.raises(ConfigurationError):
            service.build_request("yahoo", "quote", "AAPL")

    def test_unknown_endpoint(self, service):
        with pytest.raises(UnsupportedEndpointError):
            service.build_request(Provider.ALPHA_VANTAGE, "options-chain", "AAPL")


class TestListing:
    """provider / 端点列表测试。"""

    def test_list_providers(self, test_settings, upstream):
        config = test_settings.model_copy(update={"INDIAN_API_KEY": None})
        providers = {p.provider: p for p in _service(config, upstream).list_providers()}

        assert set(providers) == {"alpha_vantage", "finnhub", "indian_api"}
        assert providers["alpha_vantage"].is_configured is True
        assert providers["indian_api"].is_configured is False
        assert providers["indian_api"].endpoint_count == 7

    def test_list_endpoints(self, service):
        ids = [e.id for e in service.list_endpoints("finnhub")]
        assert ids == ["quote", "profile", "candles", "market-status", "news"]


class TestFallback:
    """显式降级测试。"""

    async def test_rate_limited_quote_served_by_finnhub(
        self, service, upstream, finnhub_quote_payload
    ):
        """Alpha Vantage 限流时由 Finnhub 返回报价，并标记降级来源。"""
        upstream.on(AV_HOST, "/query", {"Note": "Our standard API rate limit is 25 requests per day."})
        upstream.on(FINNHUB_HOST, FH_QUOTE, finnhub_quote_payload)

        result = await service.fetch(AV_QUOTE)

        assert result.provider == Provider.FINNHUB
        assert result.served_via_fallback is True
        assert result.fallback_from == Provider.ALPHA_VANTAGE
        assert "rate limit" in result.fallback_reason
        assert result.symbol == "AAPL"
        assert result.data == finnhub_quote_payload
        assert upstream.count(AV_HOST) == 1
        assert upstream.count(FINNHUB_HOST) == 1

    async def test_unusable_finnhub_quote_served_by_alpha_vantage(
        self, service, upstream, av_quote_payload
    ):
        upstream.on(FINNHUB_HOST, FH_QUOTE, {"c": 0, "d": None, "t": 0})
        upstream.on(AV_HOST, "/query", av_quote_payload)

        result = await service.fetch(ProviderRequest(Provider.FINNHUB, "quote", "AAPL"))

        assert result.provider == Provider.ALPHA_VANTAGE
        assert result.fallback_from == Provider.FINNHUB

    async def test_mismatched_shape_served_by_fallback(
        self, service, upstream, av_quote_payload
    ):
        """报价端点收到记录数组时视为不可用，由备用 provider 返回。"""
        upstream.on(FINNHUB_HOST, FH_QUOTE, [{"c": 151.2, "d": 0.7}])
        upstream.on(AV_HOST, "/query", av_quote_payload)

        result = await service.fetch(ProviderRequest(Provider.FINNHUB, "quote", "AAPL"))

        assert result.provider == Provider.ALPHA_VANTAGE
        assert result.data == av_quote_payload
        assert "Expected flat_object" in result.fallback_reason

    async def test_fallback_disabled(self, test_settings, upstream):
        service = _service(test_settings, upstream, fallback_enabled=False)
        upstream.on(AV_HOST, "/query", {"Note": "limit"})

        with pytest.raises(RateLimitedError):
            await service.fetch(AV_QUOTE)
        assert upstream.count(FINNHUB_HOST) == 0

    async def test_fallback_provider_not_configured(self, test_settings, upstream):
        config = test_settings.model_copy(update={"FINNHUB_API_KEY": None})
        service = _service(config, upstream)
        upstream.on(AV_HOST, "/query", {"Note": "limit"})

        with pytest.raises(RateLimitedError):
            await service.fetch(AV_QUOTE)
        assert upstream.count(FINNHUB_HOST) == 0

    async def test_non_eligible_error_not_substituted(self, service, upstream):
        upstream.on(AV_HOST, "/query", {"Error Message": "Invalid API call."})

        with pytest.raises(UpstreamError):
            await service.fetch(AV_QUOTE)
        assert upstream.count(FINNHUB_HOST) == 0

    async def test_no_route_for_endpoint(self, service, upstream):
        upstream.on(AV_HOST, "/query", {"Note": "limit"}, function="TIME_SERIES_DAILY")

        with pytest.raises(RateLimitedError):
            await service.fetch(ProviderRequest(Provider.ALPHA_VANTAGE, "daily", "IBM"))
        assert upstream.count(FINNHUB_HOST) == 0

    async def test_original_error_raised_when_fallback_fails(self, service, upstream):
        upstream.on(AV_HOST, "/query", {"Note": "limit"})
        upstream.on(FINNHUB_HOST, FH_QUOTE, httpx.Response(500))

        with pytest.raises(RateLimitedError) as exc_info:
            await service.fetch(AV_QUOTE)

        assert exc_info.value.provider == "alpha_vantage"
        assert isinstance(exc_info.value.__cause__, UpstreamError)


class TestTimeBudget:
    """编排器等待上游的时间预算。"""

    def test_includes_fallback_route(self, service):
        # Finnhub：3 次 × 2s；Alpha Vantage 降级：1 次 × 2s（测试配置中退避为 0）
        request = ProviderRequest(Provider.FINNHUB, "quote", "AAPL")
        assert service.time_budget(request) == pytest.approx(8.0)

    def test_without_fallback_route(self, service):
        request = ProviderRequest(Provider.INDIAN_API, "top-gainers")
        assert service.time_budget(request) == pytest.approx(4.0)

    def test_fallback_disabled(self, test_settings, upstream):
        service = _service(test_settings, upstream, fallback_enabled=False)
        assert service.time_budget(AV_QUOTE) == pytest.approx(2.0)


class TestConnection:
    """连接测试。"""

    async def test_success_returns_field_catalog(self, service, upstream, av_quote_payload):
        upstream.on(AV_HOST, "/query", av_quote_payload)

        result = await service.test_connection("alpha_vantage", "quote", "aapl ")

        assert result.success is True
        assert result.symbol == "aapl"
        assert result.shape == "flat_object"
        paths = [f.path for f in result.fields]
        assert "Global Quote.05. price" in paths
        assert paths == sorted(paths)

    async def test_error_reported_not_raised(self, service, upstream):
        upstream.on(INDIAN_HOST, "/price_shockers", {"error": "Invalid API key"})

        result = await service.test_connection("indian_api", "price-shockers")

        assert result.success is False
        assert result.error_kind == "upstream"
        assert "Invalid API key" in result.error
        assert result.fields == []

    async def test_validation_error_makes_no_request(self, service, upstream):
        result = await service.test_connection("finnhub", "quote")

        assert result.success is False
        assert result.error_kind == "symbol_required"
        assert upstream.requests == []

    async def test_fallback_reported(self, service, upstream, finnhub_quote_payload):
        upstream.on(AV_HOST, "/query", {"Note": "limit"})
        upstream.on(FINNHUB_HOST, FH_QUOTE, finnhub_quote_payload)

        result = await service.test_connection("alpha_vantage", "quote", "AAPL")

        assert result.success is True
        assert result.served_via_fallback is True
        assert result.fallback_from == "alpha_vantage"
