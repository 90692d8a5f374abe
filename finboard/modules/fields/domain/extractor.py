"""Field extractor.

把任意 JSON 值展开为扁平的字段目录（FieldDescriptor 列表），供用户挑选绑定到 widget。

遍历规则：
- None 跳过
- 数组：输出一个 array 描述符（样本为前 N 个元素）；若首元素是对象，
  以 ``[0]`` 作为"代表行"继续向下展开
- 对象：逐 key 展开，路径以 ``.`` 连接
- 标量：按动态类型输出 string / number / boolean
- 达到深度上限的对象：输出一个 object 描述符，样本为其 key 列表

结果按 path 字典序排序，同一 payload 多次提取结果完全一致。
"""

from typing import Any

from finboard.modules.fields.domain.entities import FieldDescriptor, FieldKind
from finboard.modules.fields.domain.labels import format_field_label

DEFAULT_MAX_DEPTH = 32
DEFAULT_SAMPLE_SIZE = 3

REPRESENTATIVE_INDEX = "[0]"


def scalar_kind(value: Any) -> FieldKind | None:
    """Return the field kind of a JSON scalar, or None for non-scalars."""
    # bool 是 int 的子类，必须先判断
    if isinstance(value, bool):
        return FieldKind.BOOLEAN
    if isinstance(value, int | float):
        return FieldKind.NUMBER
    if isinstance(value, str):
        return FieldKind.STRING
    return None


class FieldExtractor:
    """Walks a decoded JSON document and builds its field catalog."""

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
    ):
        self.max_depth = max(1, max_depth)
        self.sample_size = max(1, sample_size)

    def extract(self, value: Any) -> list[FieldDescriptor]:
        found: dict[str, FieldDescriptor] = {}
        self._walk(value, "", [], 0, found)
        return sorted(found.values(), key=lambda f: f.path)

    def _walk(
        self,
        node: Any,
        path: str,
        segments: list[str],
        depth: int,
        found: dict[str, FieldDescriptor],
    ) -> None:
        if node is None:
            return

        if isinstance(node, list):
            self._emit(found, path, segments, FieldKind.ARRAY, node[: self.sample_size])
            if node and isinstance(node[0], dict) and depth < self.max_depth:
                self._walk(
                    node[0], f"{path}{REPRESENTATIVE_INDEX}", segments, depth + 1, found
                )
            return

        if isinstance(node, dict):
            if depth >= self.max_depth:
                self._emit(found, path, segments, FieldKind.OBJECT, list(node.keys()))
                return
            for key, child in node.items():
                if not isinstance(key, str):
                    continue
                child_path = f"{path}.{key}" if path else key
                self._walk(child, child_path, [*segments, key], depth + 1, found)
            return

        kind = scalar_kind(node)
        if kind is not None:
            self._emit(found, path, segments, kind, node)

    @staticmethod
    def _emit(
        found: dict[str, FieldDescriptor],
        path: str,
        segments: list[str],
        kind: FieldKind,
        sample: Any,
    ) -> None:
        if path in found:
            return
        found[path] = FieldDescriptor(
            path=path,
            label=format_field_label(segments),
            kind=kind,
            sample=sample,
        )


def extract_fields(
    value: Any,
    max_depth: int = DEFAULT_MAX_DEPTH,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> list[FieldDescriptor]:
    """Extract the sorted field catalog of ``value``; never raises."""
    return FieldExtractor(max_depth=max_depth, sample_size=sample_size).extract(value)
