"""Provider 客户端基类。

提供统一的 fetch 接口，所有具体客户端（Alpha Vantage / Finnhub / IndianAPI）都继承此基类，
只需实现：
- build_request: 构造路径、查询参数与鉴权头
- check_soft_failure: 识别 200 响应体中的错误 / 限流信号
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from finboard.core.infrastructure.logging import BusinessEvents
from finboard.modules.fields.domain.resolver import resolve
from finboard.modules.providers.domain.catalog import get_endpoint
from finboard.modules.providers.domain.entities import (
    EndpointSpec,
    PayloadShape,
    Provider,
    ProviderRequest,
    ProviderResult,
)
from finboard.modules.providers.domain.exceptions import (
    ProviderError,
    ProviderNotConfiguredError,
    RateLimitedError,
    SymbolRequiredError,
    UnsupportedEndpointError,
    UnusablePayloadError,
    UpstreamError,
    UpstreamTimeoutError,
)
from finboard.modules.providers.domain.shapes import detect_shape, shape_matches


@dataclass
class UpstreamCall:
    """One concrete HTTP GET against a provider."""

    url: str
    params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)


def _should_retry(exc: BaseException) -> bool:
    # 限流交给降级 / 调度退避处理，不在这里消耗配额
    if isinstance(exc, RateLimitedError):
        return False
    return isinstance(exc, ProviderError) and exc.retryable


class BaseProviderClient(ABC):
    """Provider 客户端基类。

    凭证通过构造函数传入；缺少凭证时 is_configured 为 False，
    所有调用直接抛出 ProviderNotConfiguredError，不会发出网络请求。
    """

    provider: ClassVar[Provider]

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        *,
        timeout: float = 10.0,
        max_retries: int = 0,
        retry_backoff: float = 0.5,
        retry_backoff_max: float = 4.0,
        user_agent: str = "finboard",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key or None
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.retry_backoff = retry_backoff
        self.retry_backoff_max = retry_backoff_max
        self.user_agent = user_agent
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self.api_key is not None

    def time_budget(self) -> float:
        """一次逻辑调用的最长耗时：每次尝试都超时，再加上各次重试前的退避等待。"""
        waits = sum(
            min(self.retry_backoff * 2 ** (attempt - 1), self.retry_backoff_max)
            for attempt in range(1, self.max_retries + 1)
        )
        return self.timeout * (self.max_retries + 1) + waits

    def endpoint_spec(self, endpoint: str) -> EndpointSpec:
        spec = get_endpoint(self.provider, endpoint)
        if spec is None:
            raise UnsupportedEndpointError(self.provider.value, endpoint)
        return spec

    def validate(self, request: ProviderRequest) -> EndpointSpec:
        """Fail fast before any network call."""
        spec = self.endpoint_spec(request.endpoint)
        if not self.is_configured:
            raise ProviderNotConfiguredError(self.provider.value, request.endpoint)
        if spec.requires_symbol and not request.symbol:
            raise SymbolRequiredError(self.provider.value, request.endpoint)
        return spec

    async def fetch(self, request: ProviderRequest) -> ProviderResult:
        """执行一次逻辑调用（含重试）。

        Raises:
            ConfigurationError: 配置问题，未发请求
            UpstreamError / RateLimitedError: 上游失败（重试耗尽后）
        """
        spec = self.validate(request)
        start_time = time.monotonic()

        try:
            payload = await self._fetch_with_retry(spec, request)
        except ProviderError as exc:
            BusinessEvents.provider_call_failed(
                provider=self.provider.value,
                endpoint=request.endpoint,
                error=exc.message,
                retryable=exc.retryable,
                kind=exc.kind,
            )
            raise

        if spec.select:
            selected = resolve(payload, spec.select)
            if not isinstance(selected, list | dict):
                raise self._error(
                    UnusablePayloadError,
                    request,
                    f"Upstream response has no '{spec.select}'",
                )
            payload = selected

        shape = detect_shape(payload)
        if shape is PayloadShape.UNRECOGNIZED:
            raise self._error(
                UnusablePayloadError, request, "Unrecognized payload shape"
            )
        if not shape_matches(spec.shape, payload, shape):
            raise self._error(
                UnusablePayloadError,
                request,
                f"Expected {spec.shape.value} payload, got {shape.value}",
            )

        return ProviderResult(
            provider=self.provider,
            endpoint=request.endpoint,
            symbol=request.symbol if spec.requires_symbol else None,
            data=payload,
            shape=spec.shape,
            category=spec.category,
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )

    async def _fetch_with_retry(
        self, spec: EndpointSpec, request: ProviderRequest
    ) -> Any:
        payload: Any = None
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(
                multiplier=self.retry_backoff, max=self.retry_backoff_max
            ),
            retry=retry_if_exception(_should_retry),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                payload = await self._fetch_once(spec, request)
        return payload

    async def _fetch_once(self, spec: EndpointSpec, request: ProviderRequest) -> Any:
        call = self.build_request(spec, request)
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
            **call.headers,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=False,
                transport=self._transport,
            ) as client:
                response = await client.get(call.url, params=call.params, headers=headers)
        except httpx.TimeoutException as exc:
            raise self._error(
                UpstreamTimeoutError, request, f"Timeout: {exc}"
            ) from exc
        except httpx.HTTPError as exc:
            raise self._error(UpstreamError, request, f"Error: {exc}") from exc

        self._raise_for_status(response, request)

        try:
            payload = response.json()
        except ValueError as exc:
            raise self._error(
                UpstreamError, request, "Invalid JSON in upstream response"
            ) from exc

        self.check_soft_failure(spec, request, payload)
        return payload

    def _raise_for_status(
        self, response: httpx.Response, request: ProviderRequest
    ) -> None:
        code = response.status_code
        if code < 400:
            return
        if code == 429:
            raise self._error(RateLimitedError, request, "HTTP 429: rate limit exceeded")
        if code in (401, 403):
            raise self._error(
                UpstreamError,
                request,
                f"HTTP {code}: upstream rejected credentials",
                retryable=False,
                status_code=code,
            )
        raise self._error(
            UpstreamError,
            request,
            f"HTTP {code}",
            retryable=code >= 500,
            status_code=code,
        )

    def _error(
        self,
        error_cls: type[ProviderError],
        request: ProviderRequest,
        message: str,
        **kwargs: Any,
    ) -> ProviderError:
        return error_cls(
            message,
            provider=self.provider.value,
            endpoint=request.endpoint,
            **kwargs,
        )

    @abstractmethod
    def build_request(
        self, spec: EndpointSpec, request: ProviderRequest
    ) -> UpstreamCall:
        """构造具体的 HTTP 请求。"""
        pass

    def check_soft_failure(
        self, spec: EndpointSpec, request: ProviderRequest, payload: Any
    ) -> None:
        """识别 200 响应体中嵌入的错误信号，默认不做检查。"""
        return None

    def _base_params(
        self, spec: EndpointSpec, request: ProviderRequest
    ) -> dict[str, str]:
        params = dict(spec.params)
        if spec.requires_symbol and request.symbol:
            params[spec.symbol_param] = request.symbol
        return params
