# tools/pdf_export.py
# version: v2.0 (2026-10-16)
# Назначение: HTML отчёта → PDF через внешний wkhtmltopdf.
# Страница отчёта: A4 альбомная, поля 5/5/10/5 мм, в подвале линия и «Page N of M».
# Поиск бинарника: аргумент → WKHTMLTOPDF_BIN (.env) → tools/wkhtmltopdf/bin/wkhtmltopdf(.exe).

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional

import config

__VERSION__ = "pdf_export.py v2.0 — 2026-10-16"
log = config.setup_logging("pdf_export")
config.register_version("pdf_export", "v2.0")

WKHTML_DEFAULT = config.ROOT / "tools" / "wkhtmltopdf" / "bin" / (
    "wkhtmltopdf.exe" if os.name == "nt" else "wkhtmltopdf")
TIMEOUT_SEC = 300
_NO_WINDOW = 0x08000000          # CREATE_NO_WINDOW, только Windows


@dataclass(frozen=True)
class PageSetup:
    """Параметры страницы PDF; поля в миллиметрах."""
    margin_top: int = 5
    margin_right: int = 5
    margin_bottom: int = 10
    margin_left: int = 5
    orientation: str = "Landscape"
    page_size: str = "A4"
    outline: bool = False
    footer_line: bool = True
    footer_spacing: int = 2
    footer_font_size: int = 8
    footer_font_name: str = "sans-serif"
    footer_right: str = "Page [page] of [toPage]"

    def to_args(self) -> List[str]:
        args = [
            "--margin-top", str(self.margin_top),
            "--margin-right", str(self.margin_right),
            "--margin-bottom", str(self.margin_bottom),
            "--margin-left", str(self.margin_left),
            "--orientation", self.orientation,
            "--page-size", self.page_size,
        ]
        if not self.outline:
            args.append("--no-outline")
        if self.footer_line:
            args.append("--footer-line")
        if self.footer_right:
            args += [
                "--footer-spacing", str(self.footer_spacing),
                "--footer-font-size", str(self.footer_font_size),
                "--footer-font-name", self.footer_font_name,
                "--footer-right", self.footer_right,
            ]
        return args


REPORT_PAGE = PageSetup()


def _candidates(explicit: str | Path | None) -> Iterator[Path]:
    if explicit:
        yield Path(explicit)
    env_path = os.getenv("WKHTMLTOPDF_BIN")
    if env_path:
        yield Path(env_path)
    yield WKHTML_DEFAULT


def detect_wkhtmltopdf(explicit: str | Path | None = None) -> Path:
    """Первый существующий файл из: аргумент, WKHTMLTOPDF_BIN, путь по умолчанию."""
    tried = []
    for p in _candidates(explicit):
        if p.is_file():
            return p
        tried.append(str(p))
    raise FileNotFoundError("wkhtmltopdf not found (argument / WKHTMLTOPDF_BIN / default). Tried:\n  "
                            + "\n  ".join(tried))


def build_command(wkhtml: Path, html_path: Path, pdf_path: Path,
                  page: Optional[PageSetup] = None) -> List[str]:
    return [str(wkhtml), "--enable-local-file-access", "--encoding", "utf-8",
            *(page or REPORT_PAGE).to_args(), str(html_path), str(pdf_path)]


def export_to_pdf(html_path: Path | str,
                  wkhtml_path: Path | None = None,
                  out_dir: Path | None = None,
                  force: bool = False,
                  page: Optional[PageSetup] = None) -> Path:
    """
    Один HTML → <out_dir>/<имя>.pdf (по умолчанию reports/pdf).
    Готовый PDF без force не пересобирается.
    Ненулевой код wkhtmltopdf → RuntimeError (stdout/stderr уходят в лог).
    """
    html = Path(html_path).resolve()
    if html.suffix.lower() != ".html" or not html.is_file():
        raise FileNotFoundError(f"HTML not found or wrong extension: {html}")

    target_dir = out_dir or config.PDF_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    pdf = target_dir / f"{html.stem}.pdf"
    if pdf.exists() and not force:
        log.info("↪ PDF уже есть, пропуск: %s", pdf)
        return pdf

    cmd = build_command(wkhtml_path or detect_wkhtmltopdf(), html, pdf, page)
    log.info("PDF: %s → %s", html.name, pdf)
    res = subprocess.run(cmd, capture_output=True, text=True, check=False, timeout=TIMEOUT_SEC,
                         creationflags=_NO_WINDOW if os.name == "nt" else 0)
    if res.returncode != 0:
        log.error("wkhtmltopdf: код %s\nstdout: %s\nstderr: %s",
                  res.returncode, (res.stdout or "").strip(), (res.stderr or "").strip())
        raise RuntimeError(f"wkhtmltopdf error code {res.returncode}")
    if res.stderr:
        log.debug("wkhtmltopdf stderr:\n%s", res.stderr.strip())
    if not pdf.exists():
        raise RuntimeError(f"wkhtmltopdf finished without errors, but the file is missing: {pdf}")
    return pdf
