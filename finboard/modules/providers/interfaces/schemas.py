"""Provider API schemas."""

from pydantic import BaseModel, Field

from finboard.modules.providers.domain.entities import EndpointSpec


class EndpointResponse(BaseModel):
    id: str = Field(..., description="端点ID")
    label: str = Field(..., description="显示名称")
    requires_symbol: bool = Field(..., description="是否需要 symbol")
    category: str = Field(..., description="缓存分类")
    shape: str = Field(..., description="预期的响应结构")

    @classmethod
    def from_spec(cls, spec: EndpointSpec) -> "EndpointResponse":
        return cls.model_validate(spec.to_dict())


class ConnectionTestRequest(BaseModel):
    provider: str = Field(..., description="数据源")
    endpoint: str = Field(..., description="逻辑端点")
    symbol: str | None = Field(default=None, description="证券代码")
