#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
utils.py · v1.1.0 (12 Окт 2026)
────────────────────────────────────────────────────────────────────
Общие утилиты форматирования, используемые рендерами (Excel и PDF).

• money(x)               – формат «1.234.567,89» (Babel, локаль config.NUMBER_LOCALE)
• fmt_date(x)            – дата «DD/MM/YYYY»
• format_value(x, fmt)   – значение колонки по её формату (none/currency/date)
• slugify_safe(txt)      – прокси из utils_common
• generated_at_tz()      – прокси из config
• build_jinja_env()      – единый Jinja-Environment с фильтрами
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any

import jinja2
import pandas as pd
from babel.numbers import format_decimal

import config                       # ROOT/пути/TZ/логи, generated_at_tz()
from utils_common import field_value, is_missing, slugify_safe, to_number  # лёгкие хелперы

# ── версия и логи ──────────────────────────────────────────────────
__VERSION__ = "1.1.0"
log = config.setup_logging(Path(__file__).stem)
config.register_version(__name__, __VERSION__)

generated_at_tz = config.generated_at_tz

FORMAT_NONE = "none"
FORMAT_CURRENCY = "currency"
FORMAT_DATE = "date"
FORMATS = (FORMAT_NONE, FORMAT_CURRENCY, FORMAT_DATE)

DATE_FMT = "%d/%m/%Y"


# ── форматирование чисел ──────────────────────────────────────────
def _fmt(num: float, frac: int = 2) -> str:
    """Округление половины вверх (0,125 → 0,13), затем разделители локали."""
    rounded = Decimal(str(num)).quantize(Decimal(1).scaleb(-frac), rounding=ROUND_HALF_UP)
    return format_decimal(rounded, format=f"#,##0.{'0' * frac}", locale=config.NUMBER_LOCALE)


def money(x: Any) -> str:
    """Деньги «1.234,50»; нечисловое считается нулём (как в итогах)."""
    return _fmt(to_number(x), 2)


# ── даты ──────────────────────────────────────────────────────────
def fmt_date(x: Any) -> str:
    """
    date/datetime/Timestamp/строка → «DD/MM/YYYY».
    Пустое → ''. Нераспознанная строка возвращается как есть.
    """
    if is_missing(x) or x == "":
        return ""
    if isinstance(x, (datetime, date)):
        return x.strftime(DATE_FMT)
    ts = pd.to_datetime(str(x).strip(), errors="coerce")
    if pd.isna(ts):
        log.debug("fmt_date: не распознана дата %r", x)
        return str(x)
    return ts.strftime(DATE_FMT)


def format_value(value: Any, fmt: str | None) -> Any:
    """Значение колонки по формату; без формата — сырое значение."""
    if fmt == FORMAT_CURRENCY:
        return money(value)
    if fmt == FORMAT_DATE:
        return fmt_date(value)
    return value


# ── Jinja-environment ─────────────────────────────────────────────
def _fmt_cell(record: Any, column: Any) -> str:
    """Jinja: {{ row | fmt_cell(col) }} — значение колонки записи в виде текста."""
    val = format_value(field_value(record, column.field), column.format)
    return "" if is_missing(val) else str(val)


def build_jinja_env() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(config.TEMPLATES_DIR)),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters.update(
        {
            "money": money,
            "fmt_date": fmt_date,
            "fmt_cell": _fmt_cell,
            "slug": slugify_safe,
        }
    )
    # глобальные функции доступны прямо в шаблоне: {{ generated_at_tz() }}
    env.globals["generated_at_tz"] = generated_at_tz
    return env


# ── smoke-тест ────────────────────────────────────────────────────
if __name__ == "__main__":  # запуск: python utils.py
    print("generated_at:", generated_at_tz())
    for val in (1_234_567.891, 10, 0.5, "abc"):
        print("money:", money(val))
    print("date:", fmt_date("2026-03-05"))
    env = build_jinja_env()
    print("Jinja OK, filters:", sorted(env.filters.keys())[:6])
