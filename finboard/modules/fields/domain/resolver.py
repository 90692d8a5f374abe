"""Path resolver.

按字段路径（``a.b``、``data[0].price``）从 JSON 中取值。取不到时返回 ABSENT，
对任何输入都不抛异常。

供应商返回的 key 本身可能含有 ``.``（例如 Alpha Vantage 的
``"Global Quote" -> "05. price"``），所以解析时按段回溯：依次尝试把
1..n 个连续段拼成一个 key，先匹配字面 key，再匹配 ``key[i]`` 下标形式。
"""

import re
from collections.abc import Iterator
from typing import Any

from finboard.modules.fields.domain.entities import ABSENT

MAX_PATH_SEGMENTS = 64

_INDEXED_TOKEN = re.compile(r"^(.*?)((?:\[\d+\])+)$")
_INDEX = re.compile(r"\[(\d+)\]")


def resolve(value: Any, path: str) -> Any:
    """Return the sub-value at ``path`` or ``ABSENT``."""
    if not isinstance(path, str):
        return ABSENT
    if path == "":
        return ABSENT if value is None else value

    segments = path.split(".")
    if len(segments) > MAX_PATH_SEGMENTS:
        return ABSENT
    return _resolve(value, segments, 0)


def exists(value: Any, path: str) -> bool:
    return resolve(value, path) is not ABSENT


def _resolve(current: Any, segments: list[str], start: int) -> Any:
    if start == len(segments):
        return current

    for end in range(start + 1, len(segments) + 1):
        token = ".".join(segments[start:end])
        for candidate in _step(current, token):
            result = _resolve(candidate, segments, end)
            if result is not ABSENT:
                return result
    return ABSENT


def _step(current: Any, token: str) -> Iterator[Any]:
    """Yield every non-null value ``token`` can address inside ``current``."""
    if isinstance(current, dict) and token in current:
        if current[token] is not None:
            yield current[token]

    match = _INDEXED_TOKEN.match(token)
    if match is None:
        return

    key, indexes = match.groups()
    if key == "":
        target = current
    elif isinstance(current, dict) and key in current:
        target = current[key]
    else:
        return

    for raw_index in _INDEX.findall(indexes):
        index = int(raw_index)
        if not isinstance(target, list) or index >= len(target):
            return
        target = target[index]

    if target is not None:
        yield target
