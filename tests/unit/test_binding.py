"""字段绑定与展示格式化单元测试。"""

import pytest

from finboard.modules.fields.application.binding import (
    bind_fields,
    filter_fields,
    format_cell,
    format_value,
    resolve_column,
)
from finboard.modules.fields.domain.entities import (
    ABSENT,
    NOT_AVAILABLE,
    FieldKind,
    ValueFormat,
)
from finboard.modules.fields.domain.extractor import extract_fields

TRENDING = {
    "data": [
        {"symbol": "RELIANCE", "price": 2890.5, "volume": 1200},
        {"symbol": "TCS", "price": 3900, "volume": 800},
    ]
}


class TestBindFields:
    """bind_fields 测试。"""

    def test_binds_in_selection_order(self):
        bound = bind_fields(TRENDING, ["data[0].volume", "data[0].symbol"])
        assert [b.path for b in bound] == ["data[0].volume", "data[0].symbol"]
        assert bound[0].value == 1200
        assert bound[0].display == "1,200"
        assert bound[1].display == "RELIANCE"
        assert all(b.available for b in bound)

    def test_missing_field_renders_not_available(self):
        """上游 payload 变化导致字段缺失时显示 N/A，其余字段正常。"""
        later = {"data": [{"symbol": "RELIANCE", "price": 2900.0}]}
        bound = bind_fields(later, ["data[0].volume", "data[0].price"])

        missing, price = bound
        assert missing.available is False
        assert missing.value is None
        assert missing.display == NOT_AVAILABLE
        assert price.available is True
        assert price.display == "2,900.0"

    def test_null_value_not_available(self):
        bound = bind_fields({"pe": None}, ["pe"])
        assert bound[0].display == NOT_AVAILABLE
        assert bound[0].available is False

    def test_formats_applied_per_path(self):
        bound = bind_fields(
            {"price": "150.00", "change": "-0.8312"},
            ["price", "change"],
            formats={"price": ValueFormat.CURRENCY, "change": "percentage"},
        )
        assert bound[0].display == "$150.00"
        assert bound[1].display == "-0.83%"

    def test_labels_from_catalog(self):
        catalog = extract_fields(TRENDING)
        bound = bind_fields(TRENDING, ["data[0].price"], catalog=catalog)
        assert bound[0].label == "Data → Price"

    def test_label_without_catalog(self):
        bound = bind_fields({"marketCap": 1}, ["marketCap"])
        assert bound[0].label == "Market Cap"

    def test_data_not_loaded_yet(self):
        bound = bind_fields(None, ["a.b"])
        assert bound[0].display == NOT_AVAILABLE


class TestFormatValue:
    """format_value 测试。"""

    @pytest.mark.parametrize(
        ("value", "fmt", "expected"),
        [
            (-1234.5, ValueFormat.CURRENCY, "-$1,234.50"),
            ("150", ValueFormat.CURRENCY, "$150.00"),
            (1.5, ValueFormat.PERCENTAGE, "1.50%"),
            ("2.5%", ValueFormat.PERCENTAGE, "2.50%"),
            (1234567, ValueFormat.NUMBER, "1,234,567"),
            (1234.567, ValueFormat.NUMBER, "1,234.57"),
            ("12,000", ValueFormat.NUMBER, "12,000"),
            (1700000000, ValueFormat.DATE, "2023-11-14"),
            (1700000000000, ValueFormat.DATE, "2023-11-14"),
            ("2024-01-05", ValueFormat.DATE, "2024-01-05"),
        ],
    )
    def test_formats(self, value, fmt, expected):
        assert format_value(value, fmt=fmt) == expected

    def test_uncoercible_falls_back_to_str(self):
        assert format_value("n/a-ish", fmt=ValueFormat.CURRENCY) == "n/a-ish"
        assert format_value("yesterday", fmt=ValueFormat.DATE) == "yesterday"

    def test_bool_not_treated_as_number(self):
        assert format_value(True, fmt=ValueFormat.CURRENCY) == "true"
        assert format_value(False) == "false"

    def test_number_kind_grouping(self):
        assert format_value(1234567, FieldKind.NUMBER) == "1,234,567"

    def test_absent_and_none(self):
        assert format_value(ABSENT) == NOT_AVAILABLE
        assert format_value(None, fmt=ValueFormat.NUMBER) == NOT_AVAILABLE


class TestResolveColumn:
    """表格列绑定测试。"""

    def test_column_over_rows(self):
        assert resolve_column(TRENDING, "data[0].symbol") == ["RELIANCE", "TCS"]

    def test_missing_cells_are_absent(self):
        payload = {"data": [{"price": 1}, {"volume": 5}]}
        assert resolve_column(payload, "data[0].price") == [1, ABSENT]

    def test_top_level_rows(self):
        rows = [{"name": "NIFTY 50"}, {"name": "SENSEX"}]
        assert resolve_column(rows, "[0].name") == ["NIFTY 50", "SENSEX"]

    def test_plain_path(self):
        assert resolve_column({"a": {"b": 2}}, "a.b") == 2

    def test_prefix_not_a_list(self):
        assert resolve_column({"data": {"x": 1}}, "data[0].x") is ABSENT

    def test_nested_markers_expand_per_row(self):
        """每个外层行得到其内层数组的整列值。"""
        payload = {
            "sectors": [
                {"name": "IT", "stocks": [{"ticker": "TCS"}, {"ticker": "INFY"}]},
                {"name": "Energy", "stocks": [{"ticker": "RELIANCE"}]},
                {"name": "Empty"},
            ]
        }

        assert resolve_column(payload, "sectors[0].stocks[0].ticker") == [
            ["TCS", "INFY"],
            ["RELIANCE"],
            ABSENT,
        ]

    def test_nested_cells_render_joined(self):
        assert format_cell(["TCS", "INFY"]) == "TCS, INFY"
        assert format_cell([1.5, None], ValueFormat.CURRENCY) == "$1.50, N/A"
        assert format_cell(ABSENT) == NOT_AVAILABLE


class TestFilterFields:
    """字段搜索测试。"""

    def test_matches_path_label_and_kind(self):
        fields = extract_fields({"lastPrice": 1.0, "name": "x", "open": True})

        assert [f.path for f in filter_fields(fields, "last price")] == ["lastPrice"]
        assert [f.path for f in filter_fields(fields, "NAME")] == ["name"]
        assert [f.path for f in filter_fields(fields, "boolean")] == ["open"]

    def test_blank_query_returns_all(self):
        fields = extract_fields({"a": 1, "b": 2})
        assert filter_fields(fields, "  ") == fields
