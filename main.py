"""finboard Backend - 金融看板数据核心入口。"""

import httpx
import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.concurrency import asynccontextmanager
from fastapi.routing import APIRoute
from loguru import logger
from starlette.middleware.cors import CORSMiddleware

from finboard.container import ServiceContainer, build_container
from finboard.core.config import Settings, settings
from finboard.core.domain.exceptions import DomainException
from finboard.core.infrastructure.logging import setup_logging
from finboard.core.interfaces.http.exceptions import (
    domain_exception_handler,
    global_exception_handler,
)
from finboard.core.interfaces.http.routers import api_router
from finboard.modules.providers.application import dependencies as providers_app_deps
from finboard.modules.providers.application.service import ProviderService
from finboard.modules.widgets.application import dependencies as widgets_app_deps
from finboard.modules.widgets.application.services import WidgetService
from finboard.modules.widgets.infrastructure.kv_store import KeyValueStore

VERSION = "0.1.0"


def custom_generate_unique_id(route: APIRoute) -> str:
    """Generate unique operation IDs for OpenAPI."""
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


def _container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_provider_service(request: Request) -> ProviderService:
    return _container(request).provider_service


def get_widget_service(request: Request) -> WidgetService:
    return _container(request).widget_service


def create_app(
    config: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    kv_store: KeyValueStore | None = None,
) -> FastAPI:
    """Build the FastAPI app; the service graph is created in the lifespan."""
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        setup_logging(config)
        logger.info("Starting finboard backend...")
        logger.info(f"Environment: {config.ENVIRONMENT}")
        logger.info(f"Configured providers: {config.configured_providers or 'none'}")

        container = build_container(config, transport=transport, kv_store=kv_store)
        app.state.container = container

        await container.widget_service.restore()
        container.orchestrator.start()

        yield

        logger.info("Shutting down finboard backend...")
        await container.close()

    app = FastAPI(
        title=config.PROJECT_NAME,
        description="金融看板数据核心 - 多数据源字段提取、绑定与按 widget 独立刷新",
        version=VERSION,
        openapi_url=f"{config.API_V1_STR}/openapi.json",
        docs_url=f"{config.API_V1_STR}/docs",
        redoc_url=f"{config.API_V1_STR}/redoc",
        root_path=config.ROOTPATH,
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )

    # Dependency overrides (application -> container)
    app.dependency_overrides[providers_app_deps.get_provider_service] = (
        get_provider_service
    )
    app.dependency_overrides[widgets_app_deps.get_widget_service] = get_widget_service

    # Exception handlers
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # CORS middleware
    if config.all_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.all_cors_origins,
            allow_credentials=True,
            allow_methods=config.CORS_ALLOW_METHODS,
            allow_headers=config.CORS_ALLOW_HEADERS,
        )

    app.include_router(api_router, prefix=config.API_V1_STR)

    @app.get("/health", tags=["health"])
    async def health_check(request: Request):
        """Health check endpoint.

        返回缓存条目数、已调度的 widget 数；使用 Redis 持久化时附带 Redis 状态。
        """
        container = _container(request)
        components: dict[str, dict] = {
            "widget_store": {"backend": config.WIDGET_STORE_BACKEND},
        }
        overall_status = "healthy"
        if container.redis_client is not None:
            redis_health = await container.redis_client.health_check()
            components["redis"] = redis_health.to_dict()
            if redis_health.status.value != "ok":
                overall_status = "degraded"

        return {
            "status": overall_status,
            "environment": config.ENVIRONMENT,
            "version": VERSION,
            "components": components,
            "cache_entries": len(container.cache),
            "scheduled_widgets": len(container.orchestrator.scheduler),
            "configured_providers": config.configured_providers,
        }

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint."""
        return {
            "message": "Welcome to finboard API",
            "docs": f"{config.API_V1_STR}/docs",
        }

    return app


# Initialize Sentry if configured
if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(
        dsn=str(settings.SENTRY_DSN),
        enable_tracing=True,
        environment=settings.ENVIRONMENT,
    )

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.SERVER_PORT,
        reload=settings.ENVIRONMENT == "local",
    )
