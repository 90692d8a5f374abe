"""Provider domain exceptions.

错误分类：
- ConfigurationError: 缺少凭证 / 不支持的端点 / 缺少 symbol，不重试，不发请求
- UpstreamError: 非 2xx、响应体异常、超时，按 provider 策略重试
- RateLimitedError: 上游明确限流，可降级到备用 provider
"""

from typing import Any

from fastapi import status

from finboard.core.domain.exceptions import DomainException


class ProviderError(DomainException):
    """Base class for errors surfaced by the provider layer."""

    http_status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "PROVIDER_ERROR"
    kind: str = "upstream"
    default_retryable: bool = False
    fallback_eligible: bool = False

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        endpoint: str | None = None,
        retryable: bool | None = None,
    ):
        self.provider = provider
        self.endpoint = endpoint
        self.retryable = self.default_retryable if retryable is None else retryable
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "provider": self.provider,
            "endpoint": self.endpoint,
            "retryable": self.retryable,
        }


class ConfigurationError(ProviderError):
    """Fatal misconfiguration; surfaced immediately, never retried."""

    http_status_code = status.HTTP_400_BAD_REQUEST
    error_code = "CONFIGURATION_ERROR"
    kind = "configuration"


class ProviderNotConfiguredError(ConfigurationError):
    def __init__(self, provider: str, endpoint: str | None = None):
        super().__init__(
            f"Provider '{provider}' is not configured (missing API key)",
            provider=provider,
            endpoint=endpoint,
        )


class UnsupportedEndpointError(ConfigurationError):
    def __init__(self, provider: str, endpoint: str):
        super().__init__(
            f"Endpoint '{endpoint}' is not supported by provider '{provider}'",
            provider=provider,
            endpoint=endpoint,
        )


class SymbolRequiredError(ConfigurationError):
    """Caller error: the endpoint needs a symbol and none was given."""

    http_status_code = 422  # Unprocessable Content
    error_code = "SYMBOL_REQUIRED"
    kind = "symbol_required"

    def __init__(self, provider: str, endpoint: str):
        super().__init__(
            f"Endpoint '{endpoint}' of provider '{provider}' requires a symbol",
            provider=provider,
            endpoint=endpoint,
        )


class UpstreamError(ProviderError):
    """Non-2xx status, malformed body or transport failure."""

    error_code = "UPSTREAM_ERROR"
    kind = "upstream"
    default_retryable = True

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        endpoint: str | None = None,
        retryable: bool | None = None,
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, provider, endpoint, retryable)


class UpstreamTimeoutError(UpstreamError):
    http_status_code = status.HTTP_504_GATEWAY_TIMEOUT
    error_code = "UPSTREAM_TIMEOUT"


class UnusablePayloadError(UpstreamError):
    """200 response whose body cannot be used (empty quote, no data, unknown shape)."""

    error_code = "UNUSABLE_PAYLOAD"
    default_retryable = False
    fallback_eligible = True


class RateLimitedError(ProviderError):
    """Upstream explicitly signalled a rate limit."""

    http_status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error_code = "RATE_LIMITED"
    kind = "rate_limited"
    default_retryable = True
    fallback_eligible = True
