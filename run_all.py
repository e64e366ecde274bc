#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
run_all.py · v1.1  (15 Oct 2026)
— Пакетная выгрузка: файл(ы) данных (.xlsx/.csv/.json) + YAML-описание → XLSX (и PDF по --pdf).
— Папка на входе: берутся все поддерживаемые файлы (без рекурсии, если не указан --recursive).
— Коды выхода: 0 — всё ок, 1 — были ошибки, 2 — нечего обрабатывать / плохое описание.

Пример:
    python run_all.py data/orders.xlsx --definition sales --template templates/sales.xlsx --pdf
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

import config
from excel_report import build_excel
from pdf_report import build_pdf
from report_definition import ReportDefinition, load_definition
from report_processor import ProcessedReport, ReportProcessor
from utils_common import slugify_safe

__VERSION__ = "run_all=v1.1"
log = config.setup_logging("run_all")
config.register_version("run_all", "v1.1")

READERS = {
    ".xlsx": pd.read_excel,
    ".xls": pd.read_excel,
    ".csv": pd.read_csv,
    ".json": pd.read_json,
}


def read_records(path: Path) -> pd.DataFrame:
    reader = READERS.get(path.suffix.lower())
    if reader is None:
        raise ValueError(f"неподдерживаемый формат данных: {path.name}")
    df = reader(path)
    log.info("SRC %s: строк=%d, колонок=%d", path.name, len(df), len(df.columns))
    return df


def collect_inputs(inputs: List[str], recursive: bool = False) -> List[Path]:
    files: List[Path] = []
    for raw in inputs:
        p = Path(raw).resolve()
        if p.is_file():
            files.append(p)
        elif p.is_dir():
            found = p.rglob("*") if recursive else p.glob("*")
            files.extend(sorted(f for f in found if f.suffix.lower() in READERS))
        else:
            log.warning("Пропускаю: %s (нет такого файла/папки)", p)
    return files


def build_one(src: Path, definition: ReportDefinition, *,
              template: Optional[str] = None,
              out_dir: Optional[Path] = None,
              pdf: bool = False,
              wkhtml: Optional[str] = None) -> ProcessedReport:
    report = ReportProcessor(read_records(src), definition).process()
    stem = slugify_safe(f"{definition.title} {src.stem}" if definition.title else src.stem)
    build_excel(report, (out_dir or config.EXCEL_DIR) / f"{stem}.xlsx", template=template)
    if pdf:
        build_pdf(report, stem=stem, wkhtml=wkhtml, out_dir=out_dir)
    return report


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Grouped report → XLSX/PDF")
    ap.add_argument("inputs", nargs="+", help="Data file(s) (.xlsx/.csv/.json) or folder(s)")
    ap.add_argument("--definition", required=True, help="Report definition: name in config/reports or path to .yaml")
    ap.add_argument("--template", default=None, help="Excel template (.xlsx) with {{tags}}")
    ap.add_argument("--out", default=None, help="Output folder (default reports/excel, reports/pdf)")
    ap.add_argument("--pdf", action="store_true", help="Also build PDF through wkhtmltopdf")
    ap.add_argument("--wkhtml", default=None, help="Path to wkhtmltopdf")
    ap.add_argument("--recursive", action="store_true", help="Search folders recursively")
    args = ap.parse_args(argv if argv is not None else sys.argv[1:])

    try:
        definition = load_definition(args.definition)
    except (FileNotFoundError, ValueError) as e:
        log.error("Описание отчёта не загружено: %s", e)
        return 2

    files = collect_inputs(args.inputs, recursive=args.recursive)
    if not files:
        log.error("Файлы данных не найдены.")
        return 2

    out_dir = Path(args.out).resolve() if args.out else None
    errors = 0
    for f in files:
        try:
            build_one(f, definition, template=args.template, out_dir=out_dir,
                      pdf=args.pdf, wkhtml=args.wkhtml)
        except Exception as e:
            log.exception("✗ Ошибка: %s: %s", f.name, e)
            errors += 1

    log.info("Done. Processed %d file(s). Errors %d.", len(files), errors)
    return 1 if errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
