"""Static endpoint catalog per provider and fallback routes."""

from finboard.modules.providers.domain.entities import (
    CacheCategory,
    EndpointSpec,
    PayloadShape,
    Provider,
)

ENDPOINT_CATALOG: dict[Provider, tuple[EndpointSpec, ...]] = {
    Provider.ALPHA_VANTAGE: (
        EndpointSpec(
            id="quote",
            label="Real-time Quote",
            requires_symbol=True,
            category=CacheCategory.QUOTE,
            shape=PayloadShape.FLAT_OBJECT,
            upstream="GLOBAL_QUOTE",
        ),
        EndpointSpec(
            id="daily",
            label="Daily Time Series",
            requires_symbol=True,
            category=CacheCategory.HISTORICAL,
            shape=PayloadShape.TIME_SERIES_BY_DATE,
            upstream="TIME_SERIES_DAILY",
        ),
        EndpointSpec(
            id="intraday",
            label="Intraday Data",
            requires_symbol=True,
            category=CacheCategory.SNAPSHOT,
            shape=PayloadShape.TIME_SERIES_BY_DATE,
            upstream="TIME_SERIES_INTRADAY",
            params=(("interval", "5min"),),
        ),
        EndpointSpec(
            id="weekly",
            label="Weekly Time Series",
            requires_symbol=True,
            category=CacheCategory.HISTORICAL,
            shape=PayloadShape.TIME_SERIES_BY_DATE,
            upstream="TIME_SERIES_WEEKLY",
        ),
        EndpointSpec(
            id="top-gainers-losers",
            label="Top Gainers & Losers",
            requires_symbol=False,
            category=CacheCategory.SNAPSHOT,
            shape=PayloadShape.ARRAY_OF_RECORDS,
            upstream="TOP_GAINERS_LOSERS",
        ),
        EndpointSpec(
            id="market-status",
            label="Market Status",
            requires_symbol=False,
            category=CacheCategory.SNAPSHOT,
            shape=PayloadShape.ARRAY_OF_RECORDS,
            upstream="MARKET_STATUS",
        ),
    ),
    Provider.FINNHUB: (
        EndpointSpec(
            id="quote",
            label="Real-time Quote",
            requires_symbol=True,
            category=CacheCategory.QUOTE,
            shape=PayloadShape.FLAT_OBJECT,
            upstream="/quote",
        ),
        EndpointSpec(
            id="profile",
            label="Company Profile",
            requires_symbol=True,
            category=CacheCategory.HISTORICAL,
            shape=PayloadShape.FLAT_OBJECT,
            upstream="/stock/profile2",
        ),
        EndpointSpec(
            id="candles",
            label="Price Candles",
            requires_symbol=True,
            category=CacheCategory.HISTORICAL,
            shape=PayloadShape.OHLC_PARALLEL_ARRAYS,
            upstream="/stock/candle",
            params=(("resolution", "D"),),
        ),
        EndpointSpec(
            id="market-status",
            label="Market Status",
            requires_symbol=False,
            category=CacheCategory.SNAPSHOT,
            shape=PayloadShape.FLAT_OBJECT,
            upstream="/stock/market-status",
            params=(("exchange", "US"),),
        ),
        EndpointSpec(
            id="news",
            label="Market News",
            requires_symbol=False,
            category=CacheCategory.SNAPSHOT,
            shape=PayloadShape.ARRAY_OF_RECORDS,
            upstream="/news",
            params=(("category", "general"),),
        ),
    ),
    Provider.INDIAN_API: (
        EndpointSpec(
            id="quote",
            label="Stock Quote",
            requires_symbol=True,
            category=CacheCategory.QUOTE,
            shape=PayloadShape.FLAT_OBJECT,
            upstream="/stock",
            symbol_param="name",
        ),
        EndpointSpec(
            id="top-gainers",
            label="Top Gainers",
            requires_symbol=False,
            category=CacheCategory.SNAPSHOT,
            shape=PayloadShape.ARRAY_OF_RECORDS,
            upstream="/trending",
            select="trending_stocks.top_gainers",
        ),
        EndpointSpec(
            id="top-losers",
            label="Top Losers",
            requires_symbol=False,
            category=CacheCategory.SNAPSHOT,
            shape=PayloadShape.ARRAY_OF_RECORDS,
            upstream="/trending",
            select="trending_stocks.top_losers",
        ),
        EndpointSpec(
            id="most-active",
            label="NSE Most Active",
            requires_symbol=False,
            category=CacheCategory.SNAPSHOT,
            shape=PayloadShape.ARRAY_OF_RECORDS,
            upstream="/NSE_most_active",
        ),
        EndpointSpec(
            id="bse-most-active",
            label="BSE Most Active",
            requires_symbol=False,
            category=CacheCategory.SNAPSHOT,
            shape=PayloadShape.ARRAY_OF_RECORDS,
            upstream="/BSE_most_active",
        ),
        EndpointSpec(
            id="price-shockers",
            label="Price Shockers",
            requires_symbol=False,
            category=CacheCategory.SNAPSHOT,
            shape=PayloadShape.ARRAY_OF_RECORDS,
            upstream="/price_shockers",
        ),
        EndpointSpec(
            id="index-snapshot",
            label="Index Snapshot",
            requires_symbol=False,
            category=CacheCategory.SNAPSHOT,
            shape=PayloadShape.ARRAY_OF_RECORDS,
            upstream="/indices",
        ),
    ),
}

# (provider, endpoint) -> 等价操作的备用 provider
FALLBACK_ROUTES: dict[tuple[Provider, str], tuple[Provider, str]] = {
    (Provider.ALPHA_VANTAGE, "quote"): (Provider.FINNHUB, "quote"),
    (Provider.FINNHUB, "quote"): (Provider.ALPHA_VANTAGE, "quote"),
}


def list_endpoints(provider: Provider) -> list[EndpointSpec]:
    return list(ENDPOINT_CATALOG.get(provider, ()))


def get_endpoint(provider: Provider, endpoint: str) -> EndpointSpec | None:
    for spec in ENDPOINT_CATALOG.get(provider, ()):
        if spec.id == endpoint:
            return spec
    return None


def fallback_for(provider: Provider, endpoint: str) -> tuple[Provider, str] | None:
    return FALLBACK_ROUTES.get((provider, endpoint))
