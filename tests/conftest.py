from __future__ import annotations

import os
from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# логи тестов только в консоль; числа всегда в формате «1.234,50»
os.environ.setdefault("REPORT_LOG_TO_FILE", "0")
os.environ["REPORT_LOCALE"] = "pt_BR"

from report_definition import ReportDefinition  # noqa: E402  # pylint: disable=wrong-import-position


@pytest.fixture
def region_records() -> list[dict]:
    return [
        {"id": 1, "region": "N", "amount": 100},
        {"id": 2, "region": "N", "amount": 50},
        {"id": 3, "region": "S", "amount": 30},
    ]


@pytest.fixture
def region_definition() -> ReportDefinition:
    return ReportDefinition.from_dict(
        {
            "title": "Sales",
            "parameters": {"period": "01/2026"},
            "columns": [
                {"field": "id", "label": "Order"},
                {"field": "amount", "label": "Amount", "format": "currency",
                 "action": {"route": "/orders/{id}"}},
            ],
            "group_by": ["region"],
            "totalizers": ["amount"],
        }
    )


@pytest.fixture
def template_workbook():
    """
    Шаблон в памяти:
      1  {{title}} | Period: {{period}}
      2  Order | Amount
      3  {{group_value}} (A3:B3)
      4  {{id}} | {{amount}}
      5  Total {{group_value}} | {{total_amount}}
      6  Grand total | {{grand_total_amount}}
      7  notes (A7:B7)
    """
    from openpyxl import Workbook
    from openpyxl.styles import Font

    wb = Workbook()
    ws = wb.active
    ws["A1"] = "{{title}}"
    ws["B1"] = "Period: {{period}}"
    ws["A2"] = "Order"
    ws["B2"] = "Amount"
    ws["A3"] = "{{group_value}}"
    ws["A3"].font = Font(bold=True, color="FF333333")
    ws.merge_cells("A3:B3")
    ws.row_dimensions[3].height = 22
    ws["A4"] = "{{id}}"
    ws["B4"] = "{{amount}}"
    ws["B4"].font = Font(name="Arial", size=9)
    ws["A5"] = "Total {{group_value}}"
    ws["B5"] = "{{total_amount}}"
    ws["B5"].font = Font(bold=True)
    ws["A6"] = "Grand total"
    ws["B6"] = "{{grand_total_amount}}"
    ws["A7"] = "notes"
    ws.merge_cells("A7:B7")
    return wb


@pytest.fixture
def template_path(tmp_path, template_workbook):
    path = tmp_path / "sales_template.xlsx"
    template_workbook.save(path)
    return path
