"""Provider module application dependencies."""

from typing import NoReturn

from finboard.modules.providers.application.service import ProviderService


def _missing_dependency(name: str) -> NoReturn:
    raise RuntimeError(f"Missing dependency override for {name}")


async def get_provider_service() -> ProviderService:
    _missing_dependency("ProviderService")
