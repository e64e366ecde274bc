#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
utils_excel.py
version: v1.2 (2026-10-12)

Назначение: тонкий адаптер листа openpyxl под нужды рендера отчёта
(ячейки/стили/слияния/вставка и удаление строк/гиперссылки).

Инварианты:
• Нумерация строк и колонок — с 1, как в openpyxl.
• insert_row_before / remove_row сдвигают ВСЁ, что openpyxl сам не двигает:
  объединённые диапазоны, высоты строк, привязку гиперссылок.
• Стиль ячейки снимается целиком в StyleSnapshot (шрифт, заливка, рамка,
  выравнивание, числовой формат, защита) и применяется обратно без потерь.

Публичный API:
    StyleSnapshot.capture(cell) / snapshot.apply(cell)
    SheetDocument(ws)
    open_workbook(path) -> Workbook
"""

from __future__ import annotations

from copy import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import MergedCell
from openpyxl.styles import Alignment, Border, Font, PatternFill, Protection
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.cell_range import CellRange, MultiCellRange
from openpyxl.worksheet.worksheet import Worksheet

import config
from config import setup_logging

__VERSION__ = "utils_excel.py v1.2 — 2026-10-12"
log = setup_logging("utils_excel")
config.register_version("utils_excel", "v1.2")


# ── Снимок стиля ─────────────────────────────────────────────
@dataclass(frozen=True)
class StyleSnapshot:
    font: Font
    fill: PatternFill
    border: Border
    alignment: Alignment
    number_format: str
    protection: Protection

    @classmethod
    def capture(cls, cell) -> "StyleSnapshot":
        return cls(
            font=copy(cell.font),
            fill=copy(cell.fill),
            border=copy(cell.border),
            alignment=copy(cell.alignment),
            number_format=cell.number_format,
            protection=copy(cell.protection),
        )

    def apply(self, cell) -> None:
        cell.font = copy(self.font)
        cell.fill = copy(self.fill)
        cell.border = copy(self.border)
        cell.alignment = copy(self.alignment)
        cell.number_format = self.number_format
        cell.protection = copy(self.protection)


# ── Адаптер листа ────────────────────────────────────────────
class SheetDocument:
    """Лист Excel с примитивами, которых требует рендер дерева отчёта."""

    def __init__(self, ws: Worksheet):
        self.ws = ws

    # размеры
    @property
    def highest_row(self) -> int:
        return int(self.ws.max_row or 0)

    @property
    def highest_column(self) -> int:
        return int(self.ws.max_column or 0)

    # ячейки
    def get_cell(self, row: int, col: int):
        return self.ws.cell(row=row, column=col)

    def get_value(self, row: int, col: int) -> Any:
        return self.ws.cell(row=row, column=col).value

    def set_value(self, row: int, col: int, value: Any) -> None:
        cell = self.ws.cell(row=row, column=col)
        if isinstance(cell, MergedCell):
            # значение объединённого диапазона живёт в левой верхней ячейке
            log.debug("Пропуск записи в объединённую ячейку %s", cell.coordinate)
            return
        cell.value = value

    def iter_row_values(self, row: int) -> Iterator[Tuple[int, Any]]:
        for col in range(1, self.highest_column + 1):
            yield col, self.get_value(row, col)

    # стили
    def get_style(self, row: int, col: int) -> StyleSnapshot:
        return StyleSnapshot.capture(self.get_cell(row, col))

    def apply_style(self, row: int, col: int, style: StyleSnapshot) -> None:
        style.apply(self.get_cell(row, col))

    def row_height(self, row: int) -> Optional[float]:
        return self.ws.row_dimensions[row].height

    def set_row_height(self, row: int, height: Optional[float]) -> None:
        self.ws.row_dimensions[row].height = height

    # слияния
    def merged_ranges(self) -> List[CellRange]:
        return list(self.ws.merged_cells.ranges)

    def merge(self, row: int, start_col: int, end_col: int) -> None:
        if end_col <= start_col:
            return
        self.ws.merge_cells(start_row=row, start_column=start_col, end_row=row, end_column=end_col)

    # гиперссылки
    def set_hyperlink(self, row: int, col: int, url: str, tooltip: str = "") -> None:
        cell = self.get_cell(row, col)
        cell.hyperlink = url
        if tooltip:
            cell.hyperlink.tooltip = tooltip

    # ── вставка / удаление строк ──────────────────────────────
    def insert_row_before(self, row: int) -> None:
        """Пустая строка на позиции row; всё, что было на row и ниже, уезжает на 1 вниз."""
        self.ws.insert_rows(row, 1)
        self._shift_merges_insert(row)
        self._shift_heights(row, 1)
        self._refresh_hyperlinks(row + 1)

    def remove_row(self, row: int) -> None:
        """Удаляет строку row; всё ниже поднимается на 1."""
        for rng in self.merged_ranges():
            if rng.min_row == rng.max_row == row:
                self.ws.unmerge_cells(rng.coord)
        self.ws.delete_rows(row, 1)
        self._shift_merges_delete(row)
        self._shift_heights(row, -1)
        self._refresh_hyperlinks(row)

    def _shift_merges_insert(self, row: int) -> None:
        ranges = []
        for rng in self.merged_ranges():
            if rng.min_row >= row:
                rng.shift(row_shift=1)
            elif rng.max_row >= row:      # вставка внутри диапазона: растягиваем
                rng.expand(down=1)
            ranges.append(rng)
        self.ws.merged_cells = MultiCellRange(ranges)

    def _shift_merges_delete(self, row: int) -> None:
        ranges = []
        for rng in self.merged_ranges():
            if rng.min_row > row:
                rng.shift(row_shift=-1)
            elif rng.max_row >= row:      # удалена строка внутри диапазона: сжимаем
                rng.expand(down=-1)
            ranges.append(rng)
        self.ws.merged_cells = MultiCellRange(ranges)

    def _shift_heights(self, row: int, amount: int) -> None:
        dims = self.ws.row_dimensions
        heights = {r: d.height for r, d in list(dims.items()) if r >= row and d.height is not None}
        for r in heights:
            dims[r].height = None
        for r, h in heights.items():
            if amount < 0 and r == row:
                continue              # высота удалённой строки
            dims[r + amount].height = h

    def _refresh_hyperlinks(self, from_row: int) -> None:
        if from_row > self.highest_row:
            return
        for cells in self.ws.iter_rows(min_row=from_row, max_row=self.highest_row):
            for cell in cells:
                if cell.hyperlink is not None:
                    cell.hyperlink.ref = cell.coordinate


# ── Загрузка/сохранение ──────────────────────────────────────
def open_workbook(path: str | Path) -> Workbook:
    """Открыть XLSX (шаблон). Нет файла → FileNotFoundError; битый файл — исключение openpyxl."""
    src = Path(path)
    if not src.exists() or src.suffix.lower() not in (".xlsx", ".xlsm"):
        raise FileNotFoundError(src)
    return load_workbook(src)


def save_workbook(wb: Workbook, out_path: str | Path) -> Path:
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    wb.save(out)
    log.info("XLSX → %s", out)
    return out


def column_letter(col: int) -> str:
    return get_column_letter(col)
