"""Provider 客户端。"""

from finboard.modules.providers.infrastructure.clients.alpha_vantage import (
    AlphaVantageClient,
)
from finboard.modules.providers.infrastructure.clients.base import (
    BaseProviderClient,
    UpstreamCall,
)
from finboard.modules.providers.infrastructure.clients.factory import (
    ProviderClientFactory,
)
from finboard.modules.providers.infrastructure.clients.finnhub import FinnhubClient
from finboard.modules.providers.infrastructure.clients.indian_api import (
    IndianApiClient,
)

__all__ = [
    "AlphaVantageClient",
    "BaseProviderClient",
    "FinnhubClient",
    "IndianApiClient",
    "ProviderClientFactory",
    "UpstreamCall",
]
