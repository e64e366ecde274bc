#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
excel_report.py · v1.2 · 2026-10-15

XLSX-выгрузка отчёта (ProcessedReport → Workbook).

Два режима:
• по шаблону  — analyze_template → replace_global_tags → capture_blueprints → render_tree;
                после рендера в «подвале» шаблона подставляются {{grand_total_<поле>}};
• по умолчанию (шаблона нет или он не открылся) — простая последовательная запись:
  заголовок, шапка колонок, группы «Group: …» с итогами «Total …», общий итог «Grand total».

Выход по умолчанию: reports/excel/<slug заголовка>.xlsx

Публичный API:
    ExcelGenerator(report).set_template(path).generate() -> Workbook
    build_excel(report, out_path=None, template=None)    -> Path
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

import config
from excel_render import render_tree
from excel_template import (
    TemplateBlueprints, analyze_template, capture_blueprints,
    replace_global_tags, resolve_cell, scan_tags,
)
from report_processor import ProcessedReport, is_group
from utils import FORMAT_CURRENCY, format_value, money
from utils_common import field_value, slugify_safe
from utils_excel import SheetDocument, column_letter, open_workbook, save_workbook

__VERSION__ = "excel_report=v1.2"
log = config.setup_logging("excel_report")
config.register_version("excel_report", "v1.2")

GRAND_TOTAL_PREFIX = "grand_total_"
GROUP_FILL = PatternFill(fill_type="solid", start_color="FFEEEEEE", end_color="FFEEEEEE")
RIGHT = Alignment(horizontal="right")
TITLE_MERGE_LAST_COL = 6           # A1:F1
SHEET_TITLE_MAX = 31               # ограничение Excel на имя листа


class ExcelGenerator:
    def __init__(self, report: ProcessedReport):
        self.report = report
        self.workbook = Workbook()
        self.template_path: Optional[Path] = None
        self.blueprints = TemplateBlueprints()

    def set_template(self, path: str | Path | None) -> "ExcelGenerator":
        """Шаблон, который нельзя открыть, не ошибка: останется режим по умолчанию."""
        if not path:
            return self
        try:
            self.workbook = open_workbook(path)
            self.template_path = Path(path)
            log.info("Шаблон: %s", self.template_path.name)
        except FileNotFoundError:
            log.warning("Шаблон не найден: %s — рендер по умолчанию", path)
        except Exception as e:
            log.warning("Шаблон не открылся (%s): %s — рендер по умолчанию", path, e)
            self.workbook = Workbook()
        return self

    def generate(self) -> Workbook:
        if self.template_path:
            return self.generate_from_template()
        return self.generate_default()

    # ── по шаблону ───────────────────────────────────────────
    def generate_from_template(self) -> Workbook:
        r = self.report
        doc = SheetDocument(self.workbook.active)

        rows = analyze_template(doc, [c.field for c in r.columns])
        replace_global_tags(doc, r.title, r.parameters)
        self.blueprints, start_row = capture_blueprints(doc, rows)

        next_row = render_tree(doc, r.data, r.columns, self.blueprints, start_row)
        replace_grand_total_tags(doc, next_row, r.grand_totals)
        return self.workbook

    # ── по умолчанию ─────────────────────────────────────────
    def generate_default(self) -> Workbook:
        r = self.report
        ws = self.workbook.active
        ws.title = (r.title or "Report")[:SHEET_TITLE_MAX]

        row = 1
        ws.cell(row=row, column=1, value=r.title)
        ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=TITLE_MERGE_LAST_COL)
        ws.cell(row=row, column=1).font = Font(bold=True, size=14)
        row += 2

        for col, column in enumerate(r.columns, start=1):
            cell = ws.cell(row=row, column=col, value=column.title)
            cell.font = Font(bold=True)
            width = column.width if column.width else max(len(column.title), 10) + 2
            ws.column_dimensions[column_letter(col)].width = width
        row += 1

        row = self._render_group(ws, r.data, row)
        self._render_totals(ws, r.grand_totals, row, "Grand total")
        return self.workbook

    def _render_group(self, ws, items: Iterable[Any], row: int) -> int:
        for item in items:
            if is_group(item):
                cell = ws.cell(row=row, column=1, value=f"Group: {item.group_value}")
                cell.font = Font(bold=True)
                cell.fill = GROUP_FILL
                row += 1
                row = self._render_group(ws, item.items, row)
                row = self._render_totals(ws, item.totals, row, f"Total {item.group_value}")
                row += 1       # пустая строка-разделитель после группы
                continue
            for col, column in enumerate(self.report.columns, start=1):
                value = format_value(field_value(item, column.field), column.format)
                cell = ws.cell(row=row, column=col, value=value)
                if column.format == FORMAT_CURRENCY:
                    cell.alignment = RIGHT
            row += 1
        return row

    def _render_totals(self, ws, totals: Dict[str, float], row: int, label: str) -> int:
        cell = ws.cell(row=row, column=1, value=label)
        cell.font = Font(bold=True)
        cell.alignment = RIGHT
        for col, column in enumerate(self.report.columns, start=1):
            if column.field not in totals:
                continue
            cell = ws.cell(row=row, column=col, value=money(totals[column.field]))
            cell.font = Font(bold=True)
            cell.alignment = RIGHT
        return row + 1

    def save(self, out_path: str | Path) -> Path:
        return save_workbook(self.workbook, out_path)


def replace_grand_total_tags(doc: SheetDocument, from_row: int, grand_totals: Dict[str, float]) -> int:
    """{{grand_total_<поле>}} в строках подвала (от from_row до конца листа)."""
    lookup = {GRAND_TOTAL_PREFIX + f: money(v) for f, v in grand_totals.items()}
    changed = 0
    for row in range(from_row, doc.highest_row + 1):
        for col, val in doc.iter_row_values(row):
            if not scan_tags(val):
                continue
            new = resolve_cell(val, lookup)
            if new != val:
                doc.set_value(row, col, new)
                changed += 1
    return changed


def build_excel(report: ProcessedReport,
                out_path: str | Path | None = None,
                template: str | Path | None = None) -> Path:
    out = Path(out_path) if out_path else config.EXCEL_DIR / f"{slugify_safe(report.title)}.xlsx"
    gen = ExcelGenerator(report).set_template(template)
    gen.generate()
    path = gen.save(out)
    log.info("✔ XLSX: %s (шаблон: %s)", path, gen.template_path.name if gen.template_path else "—")
    return path
