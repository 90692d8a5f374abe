"""Provider domain types."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class Provider(StrEnum):
    """Supported upstream data sources."""

    ALPHA_VANTAGE = "alpha_vantage"
    FINNHUB = "finnhub"
    INDIAN_API = "indian_api"


class PayloadShape(StrEnum):
    """Tagged variant describing how a payload is laid out."""

    TIME_SERIES_BY_DATE = "time_series_by_date"
    OHLC_PARALLEL_ARRAYS = "ohlc_parallel_arrays"
    FLAT_OBJECT = "flat_object"
    ARRAY_OF_RECORDS = "array_of_records"
    UNRECOGNIZED = "unrecognized"


class CacheCategory(StrEnum):
    """数据波动性分类，决定缓存 TTL。"""

    QUOTE = "quote"
    SNAPSHOT = "snapshot"
    HISTORICAL = "historical"


@dataclass(frozen=True)
class EndpointSpec:
    """Static description of one logical operation of a provider.

    upstream 是 Alpha Vantage 的 function 名，或其他 provider 的 URL 路径；
    select 非空时，从响应中只保留该路径下的子树（多个端点共用一个上游路径时使用）。
    """

    id: str
    label: str
    requires_symbol: bool
    category: CacheCategory
    shape: PayloadShape
    upstream: str
    params: tuple[tuple[str, str], ...] = ()
    symbol_param: str = "symbol"
    select: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "requires_symbol": self.requires_symbol,
            "category": self.category.value,
            "shape": self.shape.value,
        }


def normalize_symbol(symbol: str | None) -> str | None:
    if symbol is None:
        return None
    symbol = symbol.strip()
    return symbol or None


@dataclass(frozen=True)
class ProviderRequest:
    """Request identity: provider + endpoint + symbol."""

    provider: Provider
    endpoint: str
    symbol: str | None = None

    @property
    def cache_key(self) -> str:
        return f"{self.provider.value}:{self.endpoint}:{self.symbol or ''}"

    def with_provider(self, provider: Provider, endpoint: str) -> "ProviderRequest":
        return ProviderRequest(provider=provider, endpoint=endpoint, symbol=self.symbol)


@dataclass(frozen=True)
class ProviderResult:
    """Uniform fetch result returned by every provider client."""

    provider: Provider
    endpoint: str
    symbol: str | None
    data: Any
    shape: PayloadShape
    category: CacheCategory
    fetched_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration_ms: int = 0
    served_via_fallback: bool = False
    fallback_from: Provider | None = None
    fallback_reason: str | None = None

    def as_fallback_for(
        self, primary: ProviderRequest, reason: str
    ) -> "ProviderResult":
        """Mark this result as substituting for ``primary``."""
        return ProviderResult(
            provider=self.provider,
            endpoint=self.endpoint,
            symbol=self.symbol,
            data=self.data,
            shape=self.shape,
            category=self.category,
            fetched_at=self.fetched_at,
            duration_ms=self.duration_ms,
            served_via_fallback=True,
            fallback_from=primary.provider,
            fallback_reason=reason,
        )
