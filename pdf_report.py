#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
pdf_report.py · v1.0.2 · 2026-10-15

PDF-выгрузка отчёта: ProcessedReport → HTML (Jinja, templates/report_pdf.html) → PDF (wkhtmltopdf).

Инварианты:
• HTML → reports/html/<slug>.html, PDF → reports/pdf/<slug>.pdf
• Шаблон получает тот же ProcessedReport, что и Excel-рендер (только чтение):
  title, parameters, columns, data (дерево), grand_totals, totalizers, generated.
• Футер: config.generated_at_tz()

Публичный API:
    render_html(report) -> str
    build_pdf(report, *, stem=None, wkhtml=None, out_dir=None) -> Path
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import config
from report_processor import ProcessedReport, is_group
from tools.pdf_export import export_to_pdf, detect_wkhtmltopdf
from utils import build_jinja_env
from utils_common import slugify_safe

__VERSION__ = "pdf_report=v1.0.2"
log = config.setup_logging("pdf_report")
config.register_version("pdf_report", "v1.0.2")

TEMPLATE_NAME = "report_pdf.html"


def render_html(report: ProcessedReport, template_name: str = TEMPLATE_NAME) -> str:
    env = build_jinja_env()
    env.tests["group"] = is_group          # {% if item is group %}
    tpl = env.get_template(template_name)
    return tpl.render(
        title=report.title,
        parameters=report.parameters,
        columns=list(report.columns),
        data=report.data,
        grand_totals=report.grand_totals,
        totalizers=list(report.totalizers),
        generated=config.generated_at_tz(),
    )


def write_html(report: ProcessedReport, out_path: Optional[Path] = None) -> Path:
    out = out_path or config.HTML_DIR / f"{slugify_safe(report.title)}.html"
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(render_html(report), encoding="utf-8")
    log.info("HTML → %s", out)
    return out


def build_pdf(report: ProcessedReport, *,
              stem: Optional[str] = None,
              wkhtml: str | Path | None = None,
              out_dir: Optional[Path] = None) -> Path:
    """Всегда перезаписывает PDF: отчёт строится заново на каждый вызов."""
    html = write_html(report, config.HTML_DIR / f"{stem}.html" if stem else None)
    pdf = export_to_pdf(html, wkhtml_path=detect_wkhtmltopdf(wkhtml),
                        out_dir=out_dir or config.PDF_DIR, force=True)
    log.info("✔ PDF: %s", pdf)
    return pdf
