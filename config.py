#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
config.py · v2.0 · 2026-10-16
Пути, окружение (.env), часовой пояс, логирование и версии модулей движка отчётов.
Загрузка YAML-описаний отчётов. Логики группировки и рендера здесь нет.

Раскладка:
    reports/excel  — готовые .xlsx
    reports/html   — промежуточный HTML для wkhtmltopdf
    reports/pdf    — PDF
    templates/     — Jinja (HTML) и Excel-шаблоны
    config/reports — YAML-описания отчётов (<имя>.yaml)
    logs/          — <module>_YYYYMMDD_HHMMSS.log

Переменные окружения (.env не обязателен, окружение важнее):
    REPORT_TZ           — часовой пояс логов и футера (Asia/Almaty)
    REPORT_LOCALE       — локаль чисел Babel (pt_BR → «1.234,50»)
    REPORT_LOG_LEVEL    — уровень логов (INFO)
    REPORT_LOG_TO_FILE  — 0 → только консоль (удобно в тестах)
    WKHTMLTOPDF_BIN     — путь к wkhtmltopdf
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

import yaml
from dotenv import load_dotenv

# ── окружение и пути ─────────────────────────────────────────
ROOT = Path(__file__).resolve().parent
load_dotenv(ROOT / ".env", override=False)

REPORTS_DIR = ROOT / "reports"
EXCEL_DIR, HTML_DIR, PDF_DIR = (REPORTS_DIR / sub for sub in ("excel", "html", "pdf"))
TEMPLATES_DIR = ROOT / "templates"
CONFIG_DIR = ROOT / "config"
DEFINITIONS_DIR = CONFIG_DIR / "reports"
LOGS_DIR = ROOT / "logs"

DEFAULT_TZ = os.getenv("REPORT_TZ") or "Asia/Almaty"
NUMBER_LOCALE = os.getenv("REPORT_LOCALE") or "pt_BR"
LOG_LEVEL = (os.getenv("REPORT_LOG_LEVEL") or "INFO").upper()
LOG_TO_FILE = os.getenv("REPORT_LOG_TO_FILE", "1") != "0"

for _dir in (EXCEL_DIR, HTML_DIR, PDF_DIR, TEMPLATES_DIR, DEFINITIONS_DIR, LOGS_DIR):
    _dir.mkdir(parents=True, exist_ok=True)

TZ = ZoneInfo(DEFAULT_TZ)


def now_tz() -> datetime:
    return datetime.now(TZ)


# ── версии модулей ───────────────────────────────────────────
_versions: Dict[str, str] = {}


def register_version(module_key: str, version: str) -> None:
    _versions[module_key] = str(version)


def get_versions_line() -> str:
    """report_processor=v1.1; excel_render=v1.3"""
    return "; ".join(f"{k}={v}" for k, v in _versions.items())


def generated_at_tz(version: Optional[str] = None) -> str:
    """«Generated: DD.MM.YYYY HH:MM (<TZ>) | Version: …» — строка футера отчётов."""
    line = f"Generated: {now_tz():%d.%m.%Y %H:%M} ({DEFAULT_TZ})"
    ver = version or get_versions_line()
    return f"{line} | Version: {ver}" if ver else line


# ── логирование ──────────────────────────────────────────────
class _TzFormatter(logging.Formatter):
    """Время записей — в REPORT_TZ, а не в локальном поясе машины."""

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, TZ)
        return stamp.strftime(datefmt) if datefmt else stamp.isoformat()


_FORMATTER = _TzFormatter("%(asctime)s, %(levelname)s %(message)s", "%Y-%m-%d %H:%M:%S")


def setup_logging(module_name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Логгер модуля: консоль + logs/<module>_YYYYMMDD_HHMMSS.log (если LOG_TO_FILE).
    Повторный вызов возвращает уже настроенный логгер.
    """
    logger = logging.getLogger(module_name)
    if logger.handlers:
        return logger
    logger.setLevel(level if level is not None else LOG_LEVEL)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if LOG_TO_FILE:
        log_path = LOGS_DIR / f"{module_name}_{now_tz():%Y%m%d_%H%M%S}.log"
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    for h in handlers:
        h.setFormatter(_FORMATTER)
        logger.addHandler(h)
    logger.propagate = False
    return logger


# ── описания отчётов (YAML) ──────────────────────────────────
def read_yaml(p: str | Path) -> Dict[str, Any]:
    """Нет файла → FileNotFoundError; корень не словарь → ValueError."""
    path = Path(p)
    if not path.is_file():
        raise FileNotFoundError(path)
    with path.open(encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: ожидался YAML-словарь, получено {type(data).__name__}")
    return data


def resolve_definition_path(name_or_path: str | Path) -> Path:
    """
    'sales'             → config/reports/sales.yaml
    'path/to/other.yml' → как есть
    """
    p = Path(name_or_path)
    if p.suffix.lower() in (".yaml", ".yml") or p.exists():
        return p
    return DEFINITIONS_DIR / f"{p.name}.yaml"
