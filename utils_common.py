"""
utils_common.py · baseline 2026-10-12
──────────────────────────────────────────────────────────────
Лёгкие утилиты; из внешних зависимостей только pandas (распознавание пропусков: NaN, NaT, pd.NA).

• field_value(record, field) – единый доступ к полю записи (dict / объект / pandas-строка)
• to_number(value)           – приведение к float, всё нечисловое → 0.0
• slugify_safe(text)         – безопасное имя файла
"""

from __future__ import annotations
import math, re, unicodedata
from collections.abc import Mapping
from typing import Any

import pandas as pd


def is_missing(value: Any) -> bool:
    """None, NaN, NaT и pd.NA считаются отсутствующим значением; списки и массивы нет."""
    if value is None:
        return True
    if not pd.api.types.is_scalar(value):
        return False
    return bool(pd.isna(value))


def field_value(record: Any, field: str, default: Any = "") -> Any:
    """
    Значение поля записи. Никогда не падает:
      {'amount': 10}        → 10       (mapping)
      Order(amount=10)      → 10       (атрибут)
      df.iloc[0]            → 10       (pandas.Series через .get)
    Отсутствующее поле / None / NaN → default.
    """
    if isinstance(record, Mapping):
        value = record.get(field, default)
    elif callable(getattr(record, "get", None)):
        try:
            value = record.get(field, default)
        except (TypeError, KeyError):
            value = default
    else:
        value = getattr(record, field, default)
    return default if is_missing(value) else value


def to_number(value: Any) -> float:
    """
    10 → 10.0; '12.5' → 12.5; 'abc' / '' / None / NaN / pd.NA / 'nan' / 'inf' → 0.0
    """
    if is_missing(value) or (isinstance(value, str) and not value.strip()):
        return 0.0
    try:
        num = float(value)
    except (TypeError, ValueError):
        return 0.0
    return num if math.isfinite(num) else 0.0


def slugify_safe(text: str, allow_dot: bool = False) -> str:
    """
    'Vendas por Região (2026)'  → 'vendas_por_regiao_2026'
    """
    text = unicodedata.normalize("NFKD", str(text)).encode("ascii", "ignore").decode()
    text = re.sub(r"[^\w\-.]" if allow_dot else r"[^\w\-]", "_", text.lower())
    text = re.sub(r"__+", "_", text).strip("_")
    return text[:255] or "report"      # безопасная длина для Windows/FAT

__all__ = ["is_missing", "field_value", "to_number", "slugify_safe"]
