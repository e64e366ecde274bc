#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
excel_render.py · v1.3 · 2026-10-14

Рендер дерева отчёта в лист Excel по чертежам строк шаблона.

Обход в глубину с ОДНИМ общим курсором строки:
  группа  → вставить строку, заголовок группы, курсор+1; дети; вставить строку, итог группы, курсор+1
  запись  → вставить строку, строка записи, курсор+1
Нет чертежа для вида строки → минимальный встроенный формат (без ошибок).

Штамповка строки: значения и стили чертежа → слияния чертежа на новую строку →
подстановка тегов (только в ячейках, где есть «{{»):
  группа: {{group_value}}, {{group_field}}
  итог:   {{total_<поле>}} (формат «1.234,50»), {{group_value}}
  запись: {{<поле колонки>}} по формату колонки; если у колонки есть action.route —
          гиперссылка с подставленными {param} из записи + стиль ссылки.
Неизвестные теги остаются в тексте как есть.
"""
from __future__ import annotations

import re
from copy import copy
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Sequence

from openpyxl.styles import Font

import config
from excel_template import (
    GROUP_FIELD, GROUP_VALUE, TOTAL_PREFIX,
    RowBlueprint, TemplateBlueprints, resolve_cell, scan_tags,
)
from report_definition import ColumnSpec
from report_processor import GroupNode, is_group
from utils import format_value, money
from utils_common import field_value
from utils_excel import SheetDocument

__VERSION__ = "excel_render=v1.3"
log = config.setup_logging("excel_render")
config.register_version("excel_render", "v1.3")

ROUTE_PARAM_RE = re.compile(r"\{(\w+)\}")
LINK_TOOLTIP = "Click to see details"
LINK_COLOR = "FF0000FF"

KIND_ITEM = "item"
KIND_GROUP = "group"
KIND_TOTAL = "total"


@dataclass
class RowCursor:
    """Следующая свободная строка. Двигается только вперёд и ровно на 1 за строку."""
    row: int
    emitted: int = 0

    def advance(self) -> None:
        self.row += 1
        self.emitted += 1


def build_route(route: str, record: Any) -> str:
    """'/orders/{id}' + {'id': 7} → '/orders/7'"""
    return ROUTE_PARAM_RE.sub(lambda m: str(field_value(record, m.group(1))), route)


def link_font(font: Font) -> Font:
    f = copy(font)
    return Font(name=f.name, size=f.size, bold=f.bold, italic=f.italic,
                vertAlign=f.vertAlign, strike=f.strike,
                underline="single", color=LINK_COLOR)


class TreeRenderer:
    def __init__(self,
                 doc: SheetDocument,
                 columns: Sequence[ColumnSpec],
                 blueprints: Optional[TemplateBlueprints] = None):
        self.doc = doc
        self.columns = list(columns)
        self.blueprints = blueprints or TemplateBlueprints()

    # ── обход ────────────────────────────────────────────────
    def render(self, tree: Iterable[Any], start_row: int) -> int:
        """Рисует дерево начиная со start_row. Возвращает следующую свободную строку."""
        cursor = RowCursor(row=start_row)
        self._render_items(tree, cursor)
        log.info("Отрисовано строк=%d (строки %d..%d)", cursor.emitted, start_row, cursor.row - 1)
        return cursor.row

    def _render_items(self, items: Iterable[Any], cursor: RowCursor) -> None:
        for item in items:
            if is_group(item):
                self._emit(cursor, self.blueprints.group_header, KIND_GROUP, item, self._fallback_group)
                self._render_items(item.items, cursor)
                self._emit(cursor, self.blueprints.total, KIND_TOTAL, item, self._fallback_total)
            else:
                self._emit(cursor, self.blueprints.item, KIND_ITEM, item, self._fallback_item)

    def _emit(self, cursor: RowCursor, blueprint: Optional[RowBlueprint], kind: str,
              item: Any, fallback: Callable[[int, Any], None]) -> None:
        self.doc.insert_row_before(cursor.row)
        if blueprint is not None:
            self.stamp(cursor.row, blueprint, kind, item)
        else:
            fallback(cursor.row, item)
        cursor.advance()

    # ── штамповка по чертежу ─────────────────────────────────
    def stamp(self, row: int, blueprint: RowBlueprint, kind: str, item: Any) -> None:
        doc = self.doc
        for cell in blueprint.cells:
            doc.set_value(row, cell.column, cell.value)
            doc.apply_style(row, cell.column, cell.style)
        if blueprint.height is not None:
            doc.set_row_height(row, blueprint.height)
        for start_col, end_col in sorted(blueprint.merges):
            doc.merge(row, start_col, end_col)

        lookup: Optional[Dict[str, Any]] = None
        for cell in blueprint.cells:
            tags = scan_tags(cell.value)
            if not tags:
                continue
            if lookup is None:
                lookup = self._lookup(kind, item)
            doc.set_value(row, cell.column, resolve_cell(cell.value, lookup))
            if kind == KIND_ITEM:
                self._apply_actions(row, cell.column, tags, item)

    def _lookup(self, kind: str, item: Any) -> Dict[str, Any]:
        if kind == KIND_GROUP:
            return {GROUP_VALUE: item.group_value, GROUP_FIELD: item.group_field}
        if kind == KIND_TOTAL:
            lookup: Dict[str, Any] = {TOTAL_PREFIX + f: money(v) for f, v in item.totals.items()}
            lookup[GROUP_VALUE] = item.group_value
            return lookup
        return {c.field: format_value(field_value(item, c.field), c.format) for c in self.columns}

    def _apply_actions(self, row: int, col: int, tags: Sequence[str], record: Any) -> None:
        """Гиперссылка ставится, даже если после подстановки текст ячейки пустой."""
        for column in self.columns:
            if column.action is None or column.field not in tags:
                continue
            url = build_route(column.action.route, record)
            self.doc.set_hyperlink(row, col, url, LINK_TOOLTIP)
            cell = self.doc.get_cell(row, col)
            cell.font = link_font(cell.font)

    # ── встроенный минимальный формат ────────────────────────
    def _fallback_group(self, row: int, node: GroupNode) -> None:
        self.doc.set_value(row, 1, f"Group: {node.group_value}")
        cell = self.doc.get_cell(row, 1)
        cell.font = Font(bold=True)

    def _fallback_total(self, row: int, node: GroupNode) -> None:
        self.doc.set_value(row, 1, f"Total {node.group_value}")

    def _fallback_item(self, row: int, record: Any) -> None:
        for col, column in enumerate(self.columns, start=1):
            self.doc.set_value(row, col, field_value(record, column.field))


def render_tree(doc: SheetDocument,
                tree: Iterable[Any],
                columns: Sequence[ColumnSpec],
                blueprints: Optional[TemplateBlueprints],
                start_row: int) -> int:
    return TreeRenderer(doc, columns, blueprints).render(tree, start_row)
