"""Alpha Vantage client.

API key 通过查询参数 ``apikey`` 传递；逻辑端点映射为 ``function`` 参数。
Alpha Vantage 的错误和限流都以 200 响应体返回：
- ``Error Message``: 参数错误（如无效 symbol），不重试
- ``Note`` / ``Information``: 免费额度用尽
"""

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

QUOTE_KEY = "Global Quote"


class AlphaVantageClient(BaseProviderClient):
    provider = Provider.ALPHA_VANTAGE

    def build_request(
        self, spec: EndpointSpec, request: ProviderRequest
    ) -> UpstreamCall:
        params = {"function": spec.upstream, **self._base_params(spec, request)}
        params["apikey"] = self.api_key or ""
        return UpstreamCall(url=self.base_url, params=params)

    def check_soft_failure(
        self, spec: EndpointSpec, request: ProviderRequest, payload: Any
    ) -> None:
        if not isinstance(payload, dict):
            return

        if "Error Message" in payload:
            raise self._error(
                UpstreamError,
                request,
                f"Alpha Vantage error: {payload['Error Message']}",
                retryable=False,
            )

        for key in ("Note", "Information"):
            if key in payload:
                raise self._error(
                    RateLimitedError, request, f"Alpha Vantage: {payload[key]}"
                )

        if spec.id == "quote":
            quote = payload.get(QUOTE_KEY)
            if not isinstance(quote, dict) or not quote:
                raise self._error(
                    UnusablePayloadError,
                    request,
                    f"Alpha Vantage returned no quote for '{request.symbol}'",
                )
