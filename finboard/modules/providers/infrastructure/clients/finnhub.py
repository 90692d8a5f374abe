"""Finnhub client.

Token 放在 ``X-Finnhub-Token`` 请求头中。
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from finboard.modules.providers.domain.entities import (
    EndpointSpec,
    Provider,
    ProviderRequest,
)
from finboard.modules.providers.domain.exceptions import (
    RateLimitedError,
    UnusablePayloadError,
    UpstreamError,
)
from finboard.modules.providers.infrastructure.clients.base import (
    BaseProviderClient,
    UpstreamCall,
)

CANDLE_LOOKBACK_DAYS = 30


class FinnhubClient(BaseProviderClient):
    provider = Provider.FINNHUB

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        *,
        now: Callable[[], datetime] | None = None,
        **kwargs: Any,
    ):
        super().__init__(api_key, base_url, **kwargs)
        self._now = now or (lambda: datetime.now(UTC))

    def build_request(
        self, spec: EndpointSpec, request: ProviderRequest
    ) -> UpstreamCall:
        params = self._base_params(spec, request)
        if spec.id == "candles":
            end = self._now()
            start = end - timedelta(days=CANDLE_LOOKBACK_DAYS)
            params["from"] = str(int(start.timestamp()))
            params["to"] = str(int(end.timestamp()))
        return UpstreamCall(
            url=f"{self.base_url}{spec.upstream}",
            params=params,
            headers={"X-Finnhub-Token": self.api_key or ""},
        )

    def check_soft_failure(
        self, spec: EndpointSpec, request: ProviderRequest, payload: Any
    ) -> None:
        if not isinstance(payload, dict):
            return

        error = payload.get("error")
        if error:
            message = f"Finnhub error: {error}"
            if "limit" in str(error).lower():
                raise self._error(RateLimitedError, request, message)
            raise self._error(UpstreamError, request, message, retryable=False)

        if spec.id == "candles" and payload.get("s") == "no_data":
            raise self._error(
                UnusablePayloadError,
                request,
                f"Finnhub has no candle data for '{request.symbol}'",
            )

        # 未知 symbol 时 Finnhub 返回全 0 报价
        if spec.id == "quote" and not payload.get("c") and payload.get("d") is None:
            raise self._error(
                UnusablePayloadError,
                request,
                f"Finnhub returned no quote for '{request.symbol}'",
            )
