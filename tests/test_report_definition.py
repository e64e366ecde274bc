from __future__ import annotations

import pytest

import config
from report_definition import ColumnAction, ReportDefinition, load_definition


def test_from_dict_full(region_definition):
    d = region_definition
    assert d.column_fields == ["id", "amount"]
    assert d.group_by == (("region", None),)
    assert d.totalizers == ("amount",)
    amount = d.column("amount")
    assert amount.format == "currency"
    assert amount.action == ColumnAction(route="/orders/{id}")
    assert d.column("id").title == "Order"
    assert d.column("missing") is None


def test_columns_as_mapping_and_group_pairs():
    d = ReportDefinition.from_dict(
        {
            "columns": {"code": {"label": "Code"}, "value": {"format": "string", "width": 12}},
            "group_by": [{"region_code": "region_name"}, ["m", None], "x"],
        }
    )
    assert d.column_fields == ["code", "value"]
    assert d.column("value").format == "none"
    assert d.column("value").width == 12.0
    assert d.column("value").title == "value"
    assert d.group_by == (("region_code", "region_name"), ("m", None), ("x", None))


def test_unknown_format_is_rejected():
    with pytest.raises(ValueError):
        ReportDefinition.from_dict({"columns": [{"field": "a", "format": "percent"}]})


def test_action_without_route_is_rejected():
    with pytest.raises(ValueError):
        ReportDefinition.from_dict({"columns": [{"field": "a", "action": {"route": ""}}]})


def test_load_definition_from_yaml(tmp_path):
    path = tmp_path / "orders.yaml"
    path.write_text(
        "title: Orders\n"
        "parameters: {period: 2026}\n"
        "columns:\n"
        "  - {field: id, label: Order}\n"
        "  - {field: amount, format: currency}\n"
        "group_by: [region]\n"
        "totalizers: [amount]\n",
        encoding="utf-8",
    )
    d = load_definition(path)
    assert d.title == "Orders"
    assert d.parameters == {"period": 2026}
    assert d.column_fields == ["id", "amount"]


def test_bundled_sales_definition_loads_by_name():
    assert config.resolve_definition_path("sales") == config.DEFINITIONS_DIR / "sales.yaml"
    d = load_definition("sales")
    assert d.group_by[0] == ("region_code", "region_name")
    assert d.column("id").action.route == "/orders/{id}"


def test_missing_definition_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_definition(tmp_path / "nope.yaml")
