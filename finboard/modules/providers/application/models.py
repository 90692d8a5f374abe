"""Provider application models."""

from pydantic import BaseModel, Field

from finboard.modules.fields.domain.entities import FieldDescriptor


class ConnectionTestResult(BaseModel):
    """Preview of a provider/endpoint before a widget is committed."""

    success: bool
    provider: str
    endpoint: str
    symbol: str | None = None
    fields: list[FieldDescriptor] = Field(default_factory=list)
    shape: str | None = None
    served_via_fallback: bool = False
    fallback_from: str | None = None
    error: str | None = None
    error_kind: str | None = None


class ProviderInfo(BaseModel):
    provider: str
    is_configured: bool
    endpoint_count: int
