from __future__ import annotations

from datetime import date, datetime
from types import SimpleNamespace

import pandas as pd
import pytest

from utils import build_jinja_env, fmt_date, format_value, money
from utils_common import field_value, slugify_safe, to_number


@pytest.mark.parametrize(
    "value, expected",
    [
        (1234.5, "1.234,50"),
        (10, "10,00"),
        (0, "0,00"),
        (-1234567.891, "-1.234.567,89"),
        ("abc", "0,00"),
        (None, "0,00"),
        (pd.NA, "0,00"),
        ("nan", "0,00"),
        (0.125, "0,13"),
        (2.675, "2,68"),
        (-0.125, "-0,13"),
    ],
)
def test_money_uses_comma_decimals_and_dot_thousands(value, expected):
    assert money(value) == expected


def test_fmt_date_variants():
    assert fmt_date("2026-03-05") == "05/03/2026"
    assert fmt_date(date(2026, 1, 9)) == "09/01/2026"
    assert fmt_date(datetime(2025, 12, 31, 23, 59)) == "31/12/2025"
    assert fmt_date(pd.Timestamp("2024-02-29")) == "29/02/2024"
    assert fmt_date("") == ""
    assert fmt_date(None) == ""
    assert fmt_date(pd.NA) == ""
    assert fmt_date(pd.NaT) == ""
    assert fmt_date("not a date") == "not a date"


def test_format_value_by_column_format():
    assert format_value(10, "currency") == "10,00"
    assert format_value("2026-03-05", "date") == "05/03/2026"
    assert format_value(7, "none") == 7
    assert format_value("x", None) == "x"


def test_field_value_over_record_shapes():
    assert field_value({"a": 1}, "a") == 1
    assert field_value({"a": 1}, "b") == ""
    assert field_value(SimpleNamespace(a=2), "a") == 2
    assert field_value(SimpleNamespace(a=2), "b") == ""
    assert field_value(pd.Series({"a": 3}), "a") == 3
    assert field_value({"a": None}, "a") == ""
    assert field_value({"a": float("nan")}, "a", 0) == 0
    assert field_value({"a": pd.NA}, "a") == ""


def test_to_number_never_raises():
    assert to_number("12.5") == 12.5
    assert to_number(3) == 3.0
    assert to_number("") == 0.0
    assert to_number("1,5 тг") == 0.0
    assert to_number(object()) == 0.0
    assert to_number(pd.NA) == 0.0
    assert to_number("nan") == 0.0
    assert to_number("inf") == 0.0
    assert to_number(float("-inf")) == 0.0
    assert to_number([1, 2]) == 0.0


def test_slugify_safe():
    assert slugify_safe("Vendas por Região (2026)") == "vendas_por_regiao_2026"
    assert slugify_safe("") == "report"


def test_jinja_env_has_report_filters():
    env = build_jinja_env()
    for name in ("money", "fmt_date", "fmt_cell", "slug"):
        assert name in env.filters
    assert env.from_string("{{ 1234.5 | money }}").render() == "1.234,50"
