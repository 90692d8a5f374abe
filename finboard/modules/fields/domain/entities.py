"""Field catalog domain types."""

from enum import StrEnum
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field


class FieldKind(StrEnum):
    """JSON 节点类型标签。"""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


class FieldDescriptor(BaseModel):
    """One addressable leaf or array node discovered in a payload.

    path 在一次提取中唯一；数组的代表元素以 ``[0]`` 标记，
    例如 ``data[0].price`` 表示"每一行的 price"。
    """

    model_config = ConfigDict(frozen=True)

    path: str
    label: str
    kind: FieldKind
    sample: Any = Field(default=None)


class ValueFormat(StrEnum):
    """Display formats applied when binding a field."""

    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    NUMBER = "number"
    DATE = "date"


class _Absent:
    """Sentinel for a path that does not address anything."""

    _instance: "_Absent | None" = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Absent"

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT: Final = _Absent()

NOT_AVAILABLE: Final = "N/A"
