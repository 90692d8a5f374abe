"""Bind selected field paths against a payload for display."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from finboard.modules.fields.domain.entities import (
    ABSENT,
    NOT_AVAILABLE,
    FieldDescriptor,
    FieldKind,
    ValueFormat,
)
from finboard.modules.fields.domain.extractor import REPRESENTATIVE_INDEX, scalar_kind
from finboard.modules.fields.domain.labels import label_for_path
from finboard.modules.fields.domain.resolver import resolve


class BoundField(BaseModel):
    """A selected path resolved against the latest data."""

    model_config = ConfigDict(frozen=True)

    path: str
    label: str
    value: Any = None
    display: str
    available: bool = True


def _to_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().rstrip("%").replace(",", ""))
        except ValueError:
            return None
    return None


def _to_date(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        # 大于 1e11 视为毫秒时间戳
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, UTC).date().isoformat()
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).date().isoformat()
        except ValueError:
            return None
    return None


def format_value(
    value: Any,
    kind: FieldKind | str | None = None,
    fmt: ValueFormat | str | None = None,
) -> str:
    """Render a resolved value; absent or null values render as ``N/A``.

    Values that cannot be coerced to the requested format fall back to ``str()``.
    """
    if value is ABSENT or value is None:
        return NOT_AVAILABLE

    match fmt:
        case ValueFormat.CURRENCY:
            number = _to_float(value)
            if number is not None:
                sign = "-" if number < 0 else ""
                return f"{sign}${abs(number):,.2f}"
        case ValueFormat.PERCENTAGE:
            number = _to_float(value)
            if number is not None:
                return f"{number:.2f}%"
        case ValueFormat.NUMBER:
            number = _to_float(value)
            if number is not None:
                return f"{number:,.0f}" if number.is_integer() else f"{number:,.2f}"
        case ValueFormat.DATE:
            date = _to_date(value)
            if date is not None:
                return date

    if isinstance(value, bool):
        return "true" if value else "false"
    if kind == FieldKind.NUMBER and isinstance(value, int | float):
        return f"{value:,}"
    return str(value)


def resolve_column(data: Any, path: str) -> list[Any] | Any:
    """Resolve a ``rows[0].field`` path against every row of the array.

    ``[0]`` 是提取时的"代表行"标记：表格绑定时取数组每一行的同一路径。
    没有标记的路径按普通路径解析（返回单个值）；数组前缀解析不到列表时返回 ABSENT。
    后续的 ``[0]`` 在每一行内递归展开，例如 ``a[0].b[0].c`` 中每行对应一个 ``c`` 的列表。
    """
    marker = path.find(REPRESENTATIVE_INDEX)
    if marker < 0:
        return resolve(data, path)

    prefix = path[:marker]
    suffix = path[marker + len(REPRESENTATIVE_INDEX) :].removeprefix(".")
    rows = resolve(data, prefix) if prefix else data
    if not isinstance(rows, list):
        return ABSENT
    if not suffix:
        return list(rows)
    return [resolve_column(row, suffix) for row in rows]


def format_cell(value: Any, fmt: ValueFormat | str | None = None) -> str:
    """Render one table cell; nested columns join their values."""
    if isinstance(value, list):
        return ", ".join(format_cell(item, fmt) for item in value)
    return format_value(value, fmt=fmt)


def bind_fields(
    data: Any,
    selected_fields: list[str],
    formats: dict[str, str] | None = None,
    catalog: list[FieldDescriptor] | None = None,
) -> list[BoundField]:
    """Resolve each selected path in order; missing paths display ``N/A``."""
    formats = formats or {}
    labels = {f.path: f.label for f in catalog or []}

    bound: list[BoundField] = []
    for path in selected_fields:
        value = resolve(data, path)
        available = value is not ABSENT
        bound.append(
            BoundField(
                path=path,
                label=labels.get(path) or label_for_path(path),
                value=value if available else None,
                display=format_value(value, scalar_kind(value), formats.get(path)),
                available=available,
            )
        )
    return bound


def filter_fields(fields: list[FieldDescriptor], query: str) -> list[FieldDescriptor]:
    """Case-insensitive search over path, label and kind."""
    needle = query.strip().lower()
    if not needle:
        return list(fields)
    return [
        f
        for f in fields
        if needle in f.path.lower()
        or needle in f.label.lower()
        or needle in f.kind.value
    ]
