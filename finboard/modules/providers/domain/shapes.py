"""Payload shape detection."""

import re
from typing import Any

from finboard.modules.providers.domain.entities import PayloadShape

OHLC_KEYS = ("c", "o", "h", "l", "t")

_DATE_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}")


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, str | int | float | bool)


def _is_record_list(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and isinstance(value[0], dict)


def _is_time_series(value: Any) -> bool:
    if not isinstance(value, dict) or not value:
        return False
    return all(
        isinstance(k, str) and _DATE_KEY.match(k) and isinstance(v, dict)
        for k, v in value.items()
    )


def detect_shape(payload: Any) -> PayloadShape:
    """Classify a decoded payload.

    判定顺序：OHLC 平行数组 -> 按日期索引的时间序列 -> 记录数组 -> 对象。
    空数组视为没有行的记录数组；标量、空对象、标量数组、全为 null 的对象都视为无法识别。
    """
    if isinstance(payload, list):
        if not payload or isinstance(payload[0], dict):
            return PayloadShape.ARRAY_OF_RECORDS
        return PayloadShape.UNRECOGNIZED

    if not isinstance(payload, dict) or not payload:
        return PayloadShape.UNRECOGNIZED

    if all(isinstance(payload.get(k), list) for k in OHLC_KEYS):
        return PayloadShape.OHLC_PARALLEL_ARRAYS

    if any(_is_time_series(v) for v in payload.values()):
        return PayloadShape.TIME_SERIES_BY_DATE

    for value in payload.values():
        if _is_record_list(value):
            return PayloadShape.ARRAY_OF_RECORDS
        if isinstance(value, dict) and any(
            _is_record_list(v) for v in value.values()
        ):
            return PayloadShape.ARRAY_OF_RECORDS

    if all(v is None for v in payload.values()):
        return PayloadShape.UNRECOGNIZED

    if all(_is_scalar(v) or isinstance(v, dict | list) for v in payload.values()):
        return PayloadShape.FLAT_OBJECT
    return PayloadShape.UNRECOGNIZED


def shape_matches(
    expected: PayloadShape, payload: Any, detected: PayloadShape
) -> bool:
    """Whether a payload detected as ``detected`` can serve an endpoint declaring ``expected``.

    对象型端点（quote / profile）允许对象内嵌记录数组，例如个股详情里的新闻列表；
    其余形状必须完全一致。
    """
    if detected is PayloadShape.UNRECOGNIZED:
        return False
    if detected is expected:
        return True
    return (
        expected is PayloadShape.FLAT_OBJECT
        and isinstance(payload, dict)
        and detected is PayloadShape.ARRAY_OF_RECORDS
    )
