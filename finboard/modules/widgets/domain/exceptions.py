"""Widget domain exceptions."""

from fastapi import status

from finboard.core.domain.exceptions import EntityNotFoundError, ValidationError
from finboard.modules.providers.domain.exceptions import ProviderError


class WidgetNotFoundError(EntityNotFoundError):
    """Raised when widget is not found."""

    def __init__(self, widget_id: str | None = None):
        super().__init__("Widget", widget_id)


class InvalidWidgetConfigError(ValidationError):
    """Raised when widget configuration is invalid."""

    error_code = "INVALID_WIDGET_CONFIG"

    def __init__(self, message: str):
        super().__init__(f"Invalid widget configuration: {message}")


class UnexpectedRefreshError(ProviderError):
    """Wraps a non-provider exception raised during a refresh tick."""

    http_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "REFRESH_ERROR"
    kind = "internal"
