#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
excel_template.py · v1.3 · 2026-10-14

Анализ Excel-шаблона отчёта и снятие «чертежей» строк.

Теги в ячейках шаблона — {{имя}}:
• строка записи  — есть {{<поле колонки>}};
• строка итога   — есть тег вида {{total_<поле>}};
• строка группы  — есть {{group_value}} (только если строка не итоговая).
Итоговая классификация главнее: строка с {{total_…}} не считается ни группой, ни записью.
Для каждого вида запоминается только ПЕРВАЯ найденная строка.

Глобальные теги ({{title}}/{{titulo}} и имена параметров) подставляются в первых
GLOBAL_TAG_ROWS строках ДО снятия чертежей.

Чертёж (RowBlueprint) — неизменяемый снимок строки: значения, стили, слияния в пределах
строки, высота. После снятия всех чертежей исходные строки удаляются по убыванию индекса;
первая освободившаяся позиция — стартовая строка рендера.

Публичный API:
    scan_tags(text) / resolve_tags(text, lookup) / resolve_cell(text, lookup)
    analyze_template(doc, column_fields) -> TemplateRows
    replace_global_tags(doc, title, parameters) -> int
    extract_blueprint(doc, row) -> RowBlueprint
    capture_blueprints(doc, rows) -> (TemplateBlueprints, start_row)
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

import config
from utils_excel import SheetDocument, StyleSnapshot

__VERSION__ = "excel_template=v1.3"
log = config.setup_logging("excel_template")
config.register_version("excel_template", "v1.3")

TAG_OPEN = "{{"
TAG_RE = re.compile(r"\{\{(\w+)\}\}")
TOTAL_PREFIX = "total_"
GROUP_VALUE = "group_value"
GROUP_FIELD = "group_field"
TITLE_TAGS = ("title", "titulo")

GLOBAL_TAG_ROWS = 20


# ── Теги ─────────────────────────────────────────────────────
def tag(name: str) -> str:
    return TAG_OPEN + name + "}}"


def scan_tags(text: Any) -> List[str]:
    """'{{a}} x {{b}}' → ['a', 'b']"""
    if not isinstance(text, str) or TAG_OPEN not in text:
        return []
    return TAG_RE.findall(text)


def resolve_tags(text: str, lookup: Mapping[str, Any]) -> str:
    """
    Один проход по тексту: каждый {{имя}} заменяется значением из lookup.
    Неизвестный тег остаётся как есть — это сигнал о кривом шаблоне.
    """
    def _sub(m: re.Match) -> str:
        name = m.group(1)
        if name not in lookup:
            return m.group(0)
        value = lookup[name]
        return "" if value is None else str(value)
    return TAG_RE.sub(_sub, text)


def resolve_cell(text: str, lookup: Mapping[str, Any]) -> Any:
    """
    Как resolve_tags, но если вся ячейка — ровно один известный тег,
    возвращается само значение (число остаётся числом, дата — датой).
    """
    m = TAG_RE.fullmatch(text.strip())
    if m and m.group(1) in lookup:
        value = lookup[m.group(1)]
        return "" if value is None else value
    return resolve_tags(text, lookup)


# ── Классификация строк ──────────────────────────────────────
@dataclass(frozen=True)
class TemplateRows:
    item: Optional[int] = None
    group_header: Optional[int] = None
    total: Optional[int] = None

    def indices(self) -> List[int]:
        return sorted({r for r in (self.item, self.group_header, self.total) if r})


def classify_row(values: Iterable[Any], column_fields: Iterable[str]) -> Tuple[bool, bool, bool]:
    """(is_item, is_group, is_total) для значений одной строки."""
    item_tags = {tag(f) for f in column_fields}
    is_item = is_group = is_total = False
    for val in values:
        if not isinstance(val, str) or TAG_OPEN not in val:
            continue
        if any(t in val for t in item_tags):
            is_item = True
        if TAG_OPEN + TOTAL_PREFIX in val:
            is_total = True
        if tag(GROUP_VALUE) in val:
            is_group = True
    if is_total:
        return False, False, True
    return is_item, is_group, False


def analyze_template(doc: SheetDocument, column_fields: Iterable[str]) -> TemplateRows:
    fields = list(column_fields)
    found: Dict[str, Optional[int]] = {"item": None, "group_header": None, "total": None}

    for row in range(1, doc.highest_row + 1):
        values = [v for _, v in doc.iter_row_values(row)]
        is_item, is_group, is_total = classify_row(values, fields)
        if is_item and found["item"] is None:
            found["item"] = row
        if is_group and found["group_header"] is None:
            found["group_header"] = row
        if is_total and found["total"] is None:
            found["total"] = row

    rows = TemplateRows(**found)
    log.info("Шаблон: строка записи=%s, заголовок группы=%s, итог=%s",
             rows.item, rows.group_header, rows.total)
    return rows


def replace_global_tags(doc: SheetDocument, title: str, parameters: Mapping[str, Any]) -> int:
    """Подстановка {{title}} и параметров отчёта в первых GLOBAL_TAG_ROWS строках. Возвращает число изменённых ячеек."""
    lookup: Dict[str, Any] = {k: title for k in TITLE_TAGS}
    lookup.update({str(k): v for k, v in (parameters or {}).items()})

    changed = 0
    limit = min(GLOBAL_TAG_ROWS, doc.highest_row)
    for row in range(1, limit + 1):
        for col, val in doc.iter_row_values(row):
            if not scan_tags(val):
                continue
            new = resolve_cell(val, lookup)
            if new != val:
                doc.set_value(row, col, new)
                changed += 1
    log.debug("Глобальные теги: изменено ячеек=%d", changed)
    return changed


# ── Чертежи строк ────────────────────────────────────────────
@dataclass(frozen=True)
class CellBlueprint:
    column: int
    value: Any
    style: StyleSnapshot


@dataclass(frozen=True)
class RowBlueprint:
    cells: Tuple[CellBlueprint, ...]
    merges: FrozenSet[Tuple[int, int]] = frozenset()   # (start_col, end_col) в пределах строки
    height: Optional[float] = None


@dataclass(frozen=True)
class TemplateBlueprints:
    item: Optional[RowBlueprint] = None
    group_header: Optional[RowBlueprint] = None
    total: Optional[RowBlueprint] = None


def extract_blueprint(doc: SheetDocument, row: int) -> RowBlueprint:
    cells = tuple(
        CellBlueprint(column=col, value=doc.get_value(row, col), style=doc.get_style(row, col))
        for col in range(1, doc.highest_column + 1)
    )
    merges = frozenset(
        (rng.min_col, rng.max_col)
        for rng in doc.merged_ranges()
        if rng.min_row == row and rng.max_row == row
    )
    return RowBlueprint(cells=cells, merges=merges, height=doc.row_height(row))


def capture_blueprints(doc: SheetDocument, rows: TemplateRows) -> Tuple[TemplateBlueprints, int]:
    """
    Снять чертежи найденных строк и удалить эти строки (строго по убыванию индекса,
    чтобы ранние удаления не сдвигали ещё не обработанные). Возвращает (чертежи, стартовая строка).
    """
    blueprints = TemplateBlueprints(
        item=extract_blueprint(doc, rows.item) if rows.item else None,
        group_header=extract_blueprint(doc, rows.group_header) if rows.group_header else None,
        total=extract_blueprint(doc, rows.total) if rows.total else None,
    )

    to_delete = rows.indices()
    for r in sorted(to_delete, reverse=True):
        doc.remove_row(r)

    start_row = min(to_delete) if to_delete else 1
    log.info("Чертежи сняты, удалено строк=%d, старт рендера=%d", len(to_delete), start_row)
    return blueprints, start_row
