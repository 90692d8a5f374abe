"""Provider service: the single entry point for upstream data.

Wraps the per-provider clients with request normalization, explicit
fallback between equivalent operations, and connection testing.
"""

from loguru import logger

from finboard.core.infrastructure.logging import BusinessEvents
from finboard.modules.fields.domain.extractor import FieldExtractor
from finboard.modules.providers.application.models import (
    ConnectionTestResult,
    ProviderInfo,
)
from finboard.modules.providers.domain.catalog import (
    fallback_for,
    get_endpoint,
    list_endpoints,
)
from finboard.modules.providers.domain.entities import (
    EndpointSpec,
    Provider,
    ProviderRequest,
    ProviderResult,
    normalize_symbol,
)
from finboard.modules.providers.domain.exceptions import (
    ConfigurationError,
    ProviderError,
    ProviderNotConfiguredError,
    SymbolRequiredError,
    UnsupportedEndpointError,
)
from finboard.modules.providers.infrastructure.clients.base import BaseProviderClient


def parse_provider(value: str | Provider) -> Provider:
    try:
        return Provider(value)
    except ValueError:
        raise ConfigurationError(f"Unsupported provider '{value}'") from None


class ProviderService:
    """Uniform fetch over heterogeneous providers."""

    def __init__(
        self,
        clients: dict[Provider, BaseProviderClient],
        fallback_enabled: bool = True,
        extractor: FieldExtractor | None = None,
    ):
        self._clients = clients
        self.fallback_enabled = fallback_enabled
        self._extractor = extractor or FieldExtractor()

    def is_configured(self, provider: Provider | str) -> bool:
        client = self._clients.get(parse_provider(provider))
        return client is not None and client.is_configured

    def list_providers(self) -> list[ProviderInfo]:
        return [
            ProviderInfo(
                provider=p.value,
                is_configured=self.is_configured(p),
                endpoint_count=len(list_endpoints(p)),
            )
            for p in Provider
        ]

    def list_endpoints(self, provider: Provider | str) -> list[EndpointSpec]:
        return list_endpoints(parse_provider(provider))

    def build_request(
        self,
        provider: Provider | str,
        endpoint: str,
        symbol: str | None = None,
    ) -> ProviderRequest:
        """Validate a (provider, endpoint, symbol) triple without touching the network.

        Symbols given to endpoints that take none are dropped.
        """
        resolved = parse_provider(provider)
        spec = get_endpoint(resolved, endpoint)
        if spec is None:
            raise UnsupportedEndpointError(resolved.value, endpoint)

        symbol = normalize_symbol(symbol)
        if not spec.requires_symbol:
            symbol = None
        elif symbol is None:
            raise SymbolRequiredError(resolved.value, endpoint)
        return ProviderRequest(provider=resolved, endpoint=endpoint, symbol=symbol)

    def time_budget(self, request: ProviderRequest) -> float:
        """Upper bound for ``fetch(request)``, including one fallback call."""
        primary = self._clients.get(request.provider)
        budget = primary.time_budget() if primary is not None else 0.0

        route = fallback_for(request.provider, request.endpoint)
        if self.fallback_enabled and route is not None:
            fallback = self._clients.get(route[0])
            if fallback is not None and fallback.is_configured:
                budget += fallback.time_budget()
        return budget

    async def fetch(self, request: ProviderRequest) -> ProviderResult:
        """Fetch through the primary provider, falling back when allowed.

        Fallback only happens for rate limits and unusable payloads, only when an
        equivalent route exists and its provider is configured. The substitution is
        logged and flagged on the result.
        """
        client = self._client(request.provider)
        try:
            return await client.fetch(request)
        except ProviderError as exc:
            fallback_client, fallback_request = self._fallback_target(request, exc)
            if fallback_client is None or fallback_request is None:
                raise

            try:
                result = await fallback_client.fetch(fallback_request)
            except ProviderError as fallback_exc:
                logger.warning(
                    f"Fallback {fallback_request.provider}.{fallback_request.endpoint} "
                    f"also failed for {request.cache_key}: {fallback_exc.message}"
                )
                raise exc from fallback_exc

            BusinessEvents.provider_fallback_used(
                primary_provider=request.provider.value,
                fallback_provider=fallback_request.provider.value,
                endpoint=request.endpoint,
                reason=exc.kind,
                symbol=request.symbol,
            )
            return result.as_fallback_for(request, reason=exc.message)

    async def test_connection(
        self,
        provider: Provider | str,
        endpoint: str,
        symbol: str | None = None,
    ) -> ConnectionTestResult:
        """Fetch once and return the field catalog of the response.

        Errors are reported in the result rather than raised.
        """
        try:
            request = self.build_request(provider, endpoint, symbol)
            result = await self.fetch(request)
        except ProviderError as exc:
            return ConnectionTestResult(
                success=False,
                provider=str(provider),
                endpoint=endpoint,
                symbol=normalize_symbol(symbol),
                error=exc.message,
                error_kind=exc.kind,
            )

        return ConnectionTestResult(
            success=True,
            provider=request.provider.value,
            endpoint=request.endpoint,
            symbol=request.symbol,
            fields=self._extractor.extract(result.data),
            shape=result.shape.value,
            served_via_fallback=result.served_via_fallback,
            fallback_from=result.fallback_from.value if result.fallback_from else None,
        )

    def _client(self, provider: Provider) -> BaseProviderClient:
        client = self._clients.get(provider)
        if client is None:
            raise ProviderNotConfiguredError(provider.value)
        return client

    def _fallback_target(
        self, request: ProviderRequest, exc: ProviderError
    ) -> tuple[BaseProviderClient | None, ProviderRequest | None]:
        if not (self.fallback_enabled and exc.fallback_eligible):
            return None, None

        route = fallback_for(request.provider, request.endpoint)
        if route is None:
            return None, None

        fallback_provider, fallback_endpoint = route
        client = self._clients.get(fallback_provider)
        if client is None or not client.is_configured:
            return None, None
        return client, request.with_provider(fallback_provider, fallback_endpoint)
