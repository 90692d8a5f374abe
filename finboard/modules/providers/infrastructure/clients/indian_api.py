"""IndianAPI client (NSE/BSE market data).

Key 放在 ``X-Api-Key`` 请求头中。除 quote 外的端点都是全市场快照，不接受 symbol。
"""

from typing import Any

from finboard.modules.providers.domain.entities import (
    EndpointSpec,
    Provider,
    ProviderRequest,
)
from finboard.modules.providers.domain.exceptions import (
    RateLimitedError,
    UpstreamError,
)
from finboard.modules.providers.infrastructure.clients.base import (
    BaseProviderClient,
    UpstreamCall,
)


class IndianApiClient(BaseProviderClient):
    provider = Provider.INDIAN_API

    def build_request(
        self, spec: EndpointSpec, request: ProviderRequest
    ) -> UpstreamCall:
        return UpstreamCall(
            url=f"{self.base_url}{spec.upstream}",
            params=self._base_params(spec, request),
            headers={"X-Api-Key": self.api_key or ""},
        )

    def check_soft_failure(
        self, spec: EndpointSpec, request: ProviderRequest, payload: Any
    ) -> None:
        if not isinstance(payload, dict):
            return

        error = payload.get("error")
        if error is None and set(payload) == {"message"}:
            error = payload["message"]
        if not error:
            return

        message = f"IndianAPI error: {error}"
        if "limit" in str(error).lower():
            raise self._error(RateLimitedError, request, message)
        raise self._error(UpstreamError, request, message, retryable=False)
