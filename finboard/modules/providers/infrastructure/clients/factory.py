"""Provider 客户端工厂。

根据 Settings 构造全部 provider 客户端；凭证缺失的客户端同样会被创建，
只是 is_configured 为 False。
"""

import httpx

from finboard.core.config import Settings
from finboard.modules.providers.domain.entities import Provider
from finboard.modules.providers.infrastructure.clients.alpha_vantage import (
    AlphaVantageClient,
)
from finboard.modules.providers.infrastructure.clients.base import BaseProviderClient
from finboard.modules.providers.infrastructure.clients.finnhub import FinnhubClient
from finboard.modules.providers.infrastructure.clients.indian_api import (
    IndianApiClient,
)


class ProviderClientFactory:
    """Provider 客户端工厂类。"""

    @staticmethod
    def create(
        provider: Provider,
        config: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> BaseProviderClient:
        """根据 provider 创建客户端。

        Raises:
            ValueError: 不支持的 provider
        """
        common = {
            "timeout": config.UPSTREAM_TIMEOUT_SEC,
            "retry_backoff": config.UPSTREAM_RETRY_BACKOFF_SEC,
            "retry_backoff_max": config.UPSTREAM_RETRY_BACKOFF_MAX_SEC,
            "user_agent": config.FETCHER_USER_AGENT,
            "transport": transport,
        }

        match provider:
            case Provider.ALPHA_VANTAGE:
                return AlphaVantageClient(
                    config.ALPHA_VANTAGE_API_KEY,
                    config.ALPHA_VANTAGE_BASE_URL,
                    max_retries=config.ALPHA_VANTAGE_MAX_RETRIES,
                    **common,
                )
            case Provider.FINNHUB:
                return FinnhubClient(
                    config.FINNHUB_API_KEY,
                    config.FINNHUB_BASE_URL,
                    max_retries=config.FINNHUB_MAX_RETRIES,
                    **common,
                )
            case Provider.INDIAN_API:
                return IndianApiClient(
                    config.INDIAN_API_KEY,
                    config.INDIAN_API_BASE_URL,
                    max_retries=config.INDIAN_API_MAX_RETRIES,
                    **common,
                )
        raise ValueError(f"Unsupported provider: {provider}")

    @classmethod
    def create_all(
        cls,
        config: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> dict[Provider, BaseProviderClient]:
        return {p: cls.create(p, config, transport) for p in Provider}
