"""Application configuration."""

from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, HttpUrl, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",")]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "finboard"
    SERVER_PORT: int = 8000
    ROOTPATH: str = ""
    API_V1_STR: str = "/api/v1"
    FRONTEND_HOST: str = "http://localhost:3000"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []
    CORS_ALLOW_METHODS: list[str] = ["GET", "POST", "PATCH", "DELETE", "OPTIONS"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]

    @computed_field
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS] + [
            self.FRONTEND_HOST
        ]

    # Sentry
    SENTRY_DSN: HttpUrl | None = None

    # Redis（仅在 WIDGET_STORE_BACKEND=redis 时使用）
    REDIS_URL: str = "redis://localhost:6379/0"

    # Widget 配置持久化
    WIDGET_STORE_BACKEND: Literal["memory", "redis"] = "memory"
    WIDGET_STORE_PREFIX: str = "finboard:"

    # Provider credentials（缺失即视为未配置，不会发起请求）
    ALPHA_VANTAGE_API_KEY: str | None = None
    FINNHUB_API_KEY: str | None = None
    INDIAN_API_KEY: str | None = None

    ALPHA_VANTAGE_BASE_URL: str = "https://www.alphavantage.co/query"
    FINNHUB_BASE_URL: str = "https://finnhub.io/api/v1"
    INDIAN_API_BASE_URL: str = "https://stock.indianapi.in"

    # Upstream call policy
    UPSTREAM_TIMEOUT_SEC: float = 10.0
    UPSTREAM_RETRY_BACKOFF_SEC: float = 0.5
    UPSTREAM_RETRY_BACKOFF_MAX_SEC: float = 4.0
    ALPHA_VANTAGE_MAX_RETRIES: int = 0  # 免费额度极低，不重试
    FINNHUB_MAX_RETRIES: int = 2
    INDIAN_API_MAX_RETRIES: int = 1
    FETCHER_USER_AGENT: str = "finboard/0.1 (+https://github.com/finboard)"
    PROVIDER_FALLBACK_ENABLED: bool = True

    # Cache TTL（按数据波动性分类）
    CACHE_TTL_QUOTE_SEC: float = 30.0
    CACHE_TTL_SNAPSHOT_SEC: float = 60.0
    CACHE_TTL_HISTORICAL_SEC: float = 300.0
    CACHE_MAX_ENTRIES: int = 512
    CACHE_SWEEP_INTERVAL_SEC: float = 60.0

    # Refresh scheduling
    MIN_REFRESH_INTERVAL_SEC: int = 10
    DEFAULT_REFRESH_INTERVAL_SEC: int = 30
    REFRESH_BACKOFF_MAX_SEC: int = 600  # 限流退避上限（10 分钟）
    # 单次 tick 等待上游的上限；为空时按 provider 的超时 × 尝试次数 + 退避（含降级调用）推算
    REFRESH_TICK_TIMEOUT_SEC: float | None = None

    # Field extraction
    FIELD_EXTRACTION_MAX_DEPTH: int = 32
    FIELD_SAMPLE_SIZE: int = 3

    @computed_field
    @property
    def configured_providers(self) -> list[str]:
        keys = {
            "alpha_vantage": self.ALPHA_VANTAGE_API_KEY,
            "finnhub": self.FINNHUB_API_KEY,
            "indian_api": self.INDIAN_API_KEY,
        }
        return [name for name, key in keys.items() if key]


settings = Settings()
