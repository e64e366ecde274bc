#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
report_processor.py · v1.1 · 2026-10-12

Плоский список записей → дерево групп с итогами на каждом уровне + общие итоги.

Инварианты:
• Глубина дерева = число полей группировки; когда поля кончились — листья-записи.
• Разбиение по «сырому» ключу с сохранением порядка первого появления; подпись группы
  берётся из первой записи этого ключа (поле подписи может отличаться от поля ключа).
• Итоги узла считаются по ВСЕМУ его поддереву (по записям узла), до рекурсии.
• Общие итоги считаются по полному набору записей.
• Нечисловое/пустое значение итогового поля → 0.0. Функция не падает ни на каком входе.

Публичный API:
    process(records, group_fields, totalizers) -> (tree, grand_totals)
    ReportProcessor(records, definition).process() -> ProcessedReport
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Sequence, Tuple, Union

import pandas as pd

import config
from report_definition import ColumnSpec, GroupField, ReportDefinition
from utils_common import field_value, to_number

__VERSION__ = "report_processor=v1.1"
log = config.setup_logging("report_processor")
config.register_version("report_processor", "v1.1")


@dataclass
class GroupNode:
    group_field: str
    group_value: Any                     # подпись (display)
    group_key: Any                       # исходный ключ (равенство)
    totals: Dict[str, float] = field(default_factory=dict)
    items: List[Any] = field(default_factory=list)   # GroupNode | запись


ReportTree = List[Union[GroupNode, Any]]


@dataclass
class ProcessedReport:
    title: str
    parameters: Dict[str, Any]
    columns: Sequence[ColumnSpec]
    data: ReportTree
    grand_totals: Dict[str, float]
    totalizers: Sequence[str] = ()

    @property
    def metadata(self) -> Dict[str, Any]:
        return {"title": self.title, "parameters": self.parameters, "columns": list(self.columns)}


def is_group(item: Any) -> bool:
    return isinstance(item, GroupNode)


def records_from(source: Any) -> List[Any]:
    """DataFrame → список словарей; любой другой iterable → список как есть."""
    if source is None:
        return []
    if isinstance(source, pd.DataFrame):
        return source.to_dict("records")
    return list(source)


def calculate_totals(rows: Iterable[Any], fields: Sequence[str]) -> Dict[str, float]:
    totals = {f: 0.0 for f in fields}
    for row in rows:
        for f in fields:
            totals[f] += to_number(field_value(row, f, 0))
    return totals


def _key(value: Any) -> Any:
    try:
        hash(value)
        return value
    except TypeError:
        return repr(value)


def group_rows(rows: List[Any], group_fields: Sequence[GroupField], totalizers: Sequence[str]) -> ReportTree:
    if not group_fields:
        return list(rows)         # группировок больше нет: листья

    raw_field, display_field = group_fields[0]
    display_field = display_field or raw_field
    rest = group_fields[1:]

    buckets: Dict[Any, Tuple[GroupNode, List[Any]]] = {}   # dict хранит порядок вставки
    for row in rows:
        key = field_value(row, raw_field)
        k = _key(key)
        if k not in buckets:
            node = GroupNode(group_field=raw_field,
                             group_value=field_value(row, display_field),
                             group_key=key)
            buckets[k] = (node, [])
        buckets[k][1].append(row)

    tree: ReportTree = []
    for node, subset in buckets.values():
        node.totals = calculate_totals(subset, totalizers)
        node.items = group_rows(subset, rest, totalizers)
        tree.append(node)
    return tree


def process(records: Any,
            group_fields: Sequence[GroupField] = (),
            totalizers: Sequence[str] = ()) -> Tuple[ReportTree, Dict[str, float]]:
    rows = records_from(records)
    fields = [(raw, disp) for raw, disp in group_fields]
    tree = group_rows(rows, fields, list(totalizers))
    grand_totals = calculate_totals(rows, list(totalizers))
    return tree, grand_totals


def iter_records(tree: Iterable[Any]) -> Iterator[Any]:
    """Листья дерева в прямом порядке обхода."""
    for item in tree:
        if is_group(item):
            yield from iter_records(item.items)
        else:
            yield item


def iter_groups(tree: Iterable[Any], depth: int = 0) -> Iterator[Tuple[int, GroupNode]]:
    for item in tree:
        if is_group(item):
            yield depth, item
            yield from iter_groups(item.items, depth + 1)


class ReportProcessor:
    def __init__(self, records: Any, definition: ReportDefinition):
        self.records = records_from(records)
        self.definition = definition

    def process(self) -> ProcessedReport:
        d = self.definition
        tree, grand_totals = process(self.records, d.group_by, d.totalizers)
        log.info("Обработано записей=%d, групп верхнего уровня=%d, итоговых полей=%d",
                 len(self.records), sum(1 for x in tree if is_group(x)), len(d.totalizers))
        return ProcessedReport(
            title=d.title,
            parameters=dict(d.parameters),
            columns=list(d.columns),
            data=tree,
            grand_totals=grand_totals,
            totalizers=list(d.totalizers),
        )
