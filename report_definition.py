#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
report_definition.py · v1.0.1 · 2026-10-12

Описание отчёта (только чтение): колонки, группировки, итоговые поля, заголовок, параметры.

YAML (config/reports/<имя>.yaml):

    title: Vendas por região
    parameters: {periodo: "01/2026", usuario: ana}
    columns:
      - {field: id, label: Pedido}
      - {field: amount, label: Valor, format: currency, width: 14, action: {route: "/orders/{id}"}}
      - {field: created_at, label: Data, format: date}
    group_by:
      - region                      # группировка и подпись по одному полю
      - {region_code: region_name}  # группировка по коду, подпись из другого поля
    totalizers: [amount]

Колонки допускается задавать и словарём {field: {label, format, ...}} — порядок ключей сохраняется.

Публичный API:
    ReportDefinition.from_dict(dict) -> ReportDefinition
    load_definition(name_or_path)     -> ReportDefinition
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import config
from utils import FORMAT_NONE, FORMATS

__VERSION__ = "report_definition=v1.0.1"
log = config.setup_logging("report_definition")
config.register_version("report_definition", "v1.0.1")


@dataclass(frozen=True)
class ColumnAction:
    route: str          # шаблон адреса: '/orders/{id}'


@dataclass(frozen=True)
class ColumnSpec:
    field: str
    label: str = ""
    format: str = FORMAT_NONE
    width: Optional[float] = None
    action: Optional[ColumnAction] = None

    @property
    def title(self) -> str:
        return self.label or self.field


GroupField = Tuple[str, Optional[str]]   # (поле группировки, поле подписи | None)


@dataclass(frozen=True)
class ReportDefinition:
    columns: Tuple[ColumnSpec, ...] = ()
    group_by: Tuple[GroupField, ...] = ()
    totalizers: Tuple[str, ...] = ()
    title: str = ""
    parameters: Dict[str, Any] = field(default_factory=dict)

    @property
    def column_fields(self) -> List[str]:
        return [c.field for c in self.columns]

    def column(self, field_name: str) -> Optional[ColumnSpec]:
        return next((c for c in self.columns if c.field == field_name), None)

    # ── разбор словаря/YAML ─────────────────────────────────────────
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportDefinition":
        return cls(
            columns=tuple(_parse_columns(data.get("columns") or [])),
            group_by=tuple(_parse_group_by(data.get("group_by") or [])),
            totalizers=tuple(str(f) for f in (data.get("totalizers") or [])),
            title=str(data.get("title") or ""),
            parameters=dict(data.get("parameters") or {}),
        )


def _parse_column(field_name: str, raw: Dict[str, Any]) -> ColumnSpec:
    fmt = str(raw.get("format") or FORMAT_NONE).lower()
    if fmt == "string":      # синоним из старых описаний
        fmt = FORMAT_NONE
    if fmt not in FORMATS:
        raise ValueError(f"колонка {field_name!r}: неизвестный формат {fmt!r} (допустимо: {', '.join(FORMATS)})")

    action = None
    raw_action = raw.get("action")
    if raw_action:
        route = raw_action.get("route") if isinstance(raw_action, dict) else raw_action
        if not route:
            raise ValueError(f"колонка {field_name!r}: action без route")
        action = ColumnAction(route=str(route))

    width = raw.get("width")
    return ColumnSpec(
        field=field_name,
        label=str(raw.get("label") or ""),
        format=fmt,
        width=float(width) if width is not None else None,
        action=action,
    )


def _parse_columns(raw: Any) -> List[ColumnSpec]:
    cols: List[ColumnSpec] = []
    if isinstance(raw, dict):
        for name, spec in raw.items():
            cols.append(_parse_column(str(name), spec or {}))
        return cols
    for item in raw:
        if isinstance(item, str):
            cols.append(ColumnSpec(field=item))
            continue
        if not isinstance(item, dict) or not item.get("field"):
            raise ValueError(f"колонка без field: {item!r}")
        cols.append(_parse_column(str(item["field"]), item))
    return cols


def _parse_group_by(raw: Any) -> List[GroupField]:
    """
    ['region']                 → [('region', None)]
    [{'code': 'name'}]         → [('code', 'name')]
    {'code': 'name', 'x': None} → [('code', 'name'), ('x', None)]
    """
    items = list(raw.items()) if isinstance(raw, dict) else raw
    out: List[GroupField] = []
    for item in items:
        if isinstance(item, str):
            out.append((item, None))
        elif isinstance(item, dict) and len(item) == 1:
            key, display = next(iter(item.items()))
            out.append((str(key), str(display) if display else None))
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            key, display = item
            out.append((str(key), str(display) if display else None))
        else:
            raise ValueError(f"group_by: не понял элемент {item!r}")
    return out


def load_definition(name_or_path: str | Path) -> ReportDefinition:
    path = config.resolve_definition_path(name_or_path)
    definition = ReportDefinition.from_dict(config.read_yaml(path))
    log.info("Описание отчёта %s: колонок=%d, группировок=%d, итогов=%d",
             path.name, len(definition.columns), len(definition.group_by), len(definition.totalizers))
    return definition
