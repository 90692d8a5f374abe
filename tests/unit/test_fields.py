"""字段提取与路径解析单元测试。

测试覆盖：
- FieldExtractor：排序、类型、样本截断、代表行 [0]、深度上限
- resolve：点号 key、下标、缺失路径返回 ABSENT
- 标签生成
"""

import pytest

from finboard.modules.fields.domain.entities import ABSENT, FieldKind
from finboard.modules.fields.domain.extractor import FieldExtractor, extract_fields
from finboard.modules.fields.domain.labels import format_field_label, humanize_segment
from finboard.modules.fields.domain.resolver import MAX_PATH_SEGMENTS, exists, resolve

QUOTE = {
    "Global Quote": {
        "01. symbol": "AAPL",
        "05. price": "150.00",
        "09. change": "-1.25",
    }
}

ROWS = {
    "data": [
        {"symbol": "RELIANCE", "price": 2890.5, "volume": 1200},
        {"symbol": "TCS", "price": 3900.0, "volume": 800},
        {"symbol": "INFY", "price": 1500.2, "volume": 900},
        {"symbol": "HDFC", "price": 1600.0, "volume": 700},
    ],
    "meta": {"exchange": "NSE", "open": True, "count": 4},
}


def _paths(fields) -> list[str]:
    return [f.path for f in fields]


class TestFieldExtractor:
    """FieldExtractor 测试。"""

    def test_stock_quote_extraction(self):
        """Alpha Vantage 报价：含点号的 key 原样保留在路径中。"""
        fields = extract_fields(QUOTE)
        by_path = {f.path: f for f in fields}

        price = by_path["Global Quote.05. price"]
        assert price.kind == FieldKind.STRING
        assert price.sample == "150.00"
        assert price.label == "Global Quote → 05. Price"
        assert resolve(QUOTE, price.path) == "150.00"

    def test_output_sorted_by_path(self):
        """结果按 path 字典序排序。"""
        fields = extract_fields(ROWS)
        assert _paths(fields) == sorted(_paths(fields))

    def test_array_descriptor_and_representative_row(self):
        """数组输出 array 描述符，并以首元素展开 [0] 路径。"""
        fields = extract_fields(ROWS)
        by_path = {f.path: f for f in fields}

        data = by_path["data"]
        assert data.kind == FieldKind.ARRAY
        assert len(data.sample) == 3
        assert data.sample[0]["symbol"] == "RELIANCE"

        assert by_path["data[0].price"].kind == FieldKind.NUMBER
        assert by_path["data[0].price"].sample == 2890.5
        assert "data[1].price" not in by_path

    def test_scalar_kinds(self):
        """bool 不会被当作 number。"""
        by_path = {f.path: f for f in extract_fields(ROWS)}
        assert by_path["meta.open"].kind == FieldKind.BOOLEAN
        assert by_path["meta.count"].kind == FieldKind.NUMBER
        assert by_path["meta.exchange"].kind == FieldKind.STRING

    def test_array_of_scalars_not_expanded(self):
        """首元素不是对象的数组只输出一个描述符。"""
        fields = extract_fields({"closes": [1.0, 2.0, 3.0, 4.0]})
        assert _paths(fields) == ["closes"]
        assert fields[0].sample == [1.0, 2.0, 3.0]

    def test_top_level_array(self):
        """顶层数组：根描述符路径为空，行字段以 [0] 开头。"""
        payload = [{"name": "NIFTY 50", "last": 22000.1}]
        paths = _paths(extract_fields(payload))
        assert paths == ["", "[0].last", "[0].name"]
        assert resolve(payload, "[0].last") == 22000.1

    def test_scalar_input(self):
        """标量输入返回一个空路径描述符。"""
        fields = extract_fields(42)
        assert len(fields) == 1
        assert fields[0].path == ""
        assert fields[0].kind == FieldKind.NUMBER
        assert fields[0].sample == 42

    @pytest.mark.parametrize("value", [None, object(), {1, 2}])
    def test_null_or_non_json_input(self, value):
        """None 和非 JSON 值返回空列表，不抛异常。"""
        assert extract_fields(value) == []

    def test_null_values_skipped(self):
        fields = extract_fields({"a": None, "b": 1})
        assert _paths(fields) == ["b"]

    def test_depth_bound(self):
        """超过深度上限的对象以 object 描述符截断，样本为 key 列表。"""
        payload: dict = {"leaf": 1}
        for i in range(5):
            payload = {f"l{i}": payload}

        fields = FieldExtractor(max_depth=3).extract(payload)
        assert len(fields) == 1
        assert fields[0].kind == FieldKind.OBJECT
        assert fields[0].path == "l4.l3.l2"
        assert fields[0].sample == ["l1"]

    def test_deeply_nested_payload_terminates(self):
        """病态深度的 payload 不会导致无限递归。"""
        payload: dict = {}
        node = payload
        for _ in range(500):
            node["n"] = {}
            node = node["n"]
        fields = extract_fields(payload)
        assert len(fields) == 1
        assert fields[0].kind == FieldKind.OBJECT

    def test_idempotent(self):
        assert extract_fields(ROWS) == extract_fields(ROWS)

    def test_every_extracted_path_resolves(self):
        """每个提取出的路径都能解析出值。"""
        payload = {
            "Global Quote": QUOTE["Global Quote"],
            "rows": ROWS["data"],
            "nested": {"x.y": {"z": [1, 2]}, "flag": False},
        }
        for field in extract_fields(payload):
            assert resolve(payload, field.path) is not ABSENT, field.path


class TestResolver:
    """resolve 测试。"""

    def test_dotted_keys(self):
        assert resolve(QUOTE, "Global Quote.09. change") == "-1.25"

    def test_indexed_path(self):
        assert resolve(ROWS, "data[0].price") == 2890.5
        assert resolve(ROWS, "data[2].symbol") == "INFY"

    def test_multiple_indexes(self):
        assert resolve({"m": [[1, 2], [3, 4]]}, "m[1][0]") == 3

    @pytest.mark.parametrize(
        "path",
        [
            "missing",
            "Global Quote.99. nothing",
            "Global Quote.05. price.deeper",
            "data[9].price",
            "meta[0]",
            "data[x].price",
            "data[-1].price",
        ],
    )
    def test_missing_paths_are_absent(self, path):
        payload = {**QUOTE, **ROWS}
        assert resolve(payload, path) is ABSENT

    def test_missing_field_after_reshape(self):
        """行中缺少字段时返回 ABSENT，不影响其他字段。"""
        later = {"data": [{"symbol": "RELIANCE", "price": 2900.0}]}
        assert resolve(later, "data[0].volume") is ABSENT
        assert resolve(later, "data[0].price") == 2900.0

    @pytest.mark.parametrize("value", [None, 1, "text", [], {}])
    def test_total_over_inputs(self, value):
        assert resolve(value, "a.b[0]") is ABSENT

    def test_null_leaf_is_absent(self):
        assert resolve({"a": None}, "a") is ABSENT

    def test_empty_path_returns_value(self):
        assert resolve(ROWS, "") is ROWS

    def test_non_string_path(self):
        assert resolve(ROWS, None) is ABSENT  # type: ignore[arg-type]

    def test_segment_limit(self):
        path = ".".join(["a"] * (MAX_PATH_SEGMENTS + 1))
        assert resolve({"a": 1}, path) is ABSENT

    def test_exists(self):
        assert exists(ROWS, "meta.exchange")
        assert not exists(ROWS, "meta.close")

    def test_absent_is_falsy_singleton(self):
        assert not ABSENT
        assert repr(ABSENT) == "Absent"


class TestLabels:
    """字段标签测试。"""

    @pytest.mark.parametrize(
        ("segment", "expected"),
        [
            ("changePercent", "Change Percent"),
            ("last_price", "Last Price"),
            ("data[0]", "Data"),
            ("05. price", "05. Price"),
        ],
    )
    def test_humanize_segment(self, segment, expected):
        assert humanize_segment(segment) == expected

    def test_format_field_label(self):
        assert format_field_label(["meta", "marketCap"]) == "Meta → Market Cap"
