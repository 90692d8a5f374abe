"""Health check result models."""

from enum import Enum

from pydantic import BaseModel


class HealthStatus(str, Enum):
    """Health status of a component."""

    OK = "ok"
    ERROR = "error"
    SKIPPED = "skipped"


class RedisHealthResult(BaseModel):
    """Redis health check result."""

    status: HealthStatus
    connected: bool = False
    version: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, str | bool | None]:
        return self.model_dump(mode="json", exclude_none=True)
