from __future__ import annotations

from openpyxl import load_workbook

from excel_report import ExcelGenerator, build_excel
from report_processor import ReportProcessor


def _report(records, definition):
    return ReportProcessor(records, definition).process()


def _cols(ws, row):
    return ws.cell(row=row, column=1).value, ws.cell(row=row, column=2).value


def test_default_layout(region_records, region_definition):
    wb = ExcelGenerator(_report(region_records, region_definition)).generate()
    ws = wb.active

    assert ws.title == "Sales"
    assert ws["A1"].value == "Sales"
    assert ws["A1"].font.bold is True
    assert "A1:F1" in ws.merged_cells
    assert _cols(ws, 3) == ("Order", "Amount")
    assert ws.column_dimensions["A"].width == 12

    assert _cols(ws, 4) == ("Group: N", None)
    assert ws["A4"].fill.start_color.rgb == "FFEEEEEE"
    assert _cols(ws, 5) == (1, "100,00")
    assert _cols(ws, 6) == (2, "50,00")
    assert _cols(ws, 7) == ("Total N", "150,00")
    assert _cols(ws, 8) == (None, None)
    assert _cols(ws, 9) == ("Group: S", None)
    assert _cols(ws, 10) == (3, "30,00")
    assert _cols(ws, 11) == ("Total S", "30,00")
    assert _cols(ws, 13) == ("Grand total", "180,00")
    assert ws["B13"].font.bold is True


def test_default_sheet_title_is_truncated(region_records, region_definition):
    report = _report(region_records, region_definition)
    report.title = "Monthly sales by region and manager 2026"
    ws = ExcelGenerator(report).generate().active
    assert len(ws.title) == 31
    assert ws["A1"].value == report.title


def test_missing_template_falls_back_to_default(tmp_path, region_records, region_definition):
    gen = ExcelGenerator(_report(region_records, region_definition)).set_template(tmp_path / "none.xlsx")
    assert gen.template_path is None
    ws = gen.generate().active
    assert ws["A4"].value == "Group: N"


def test_broken_template_falls_back_to_default(tmp_path, region_records, region_definition):
    broken = tmp_path / "broken.xlsx"
    broken.write_bytes(b"not a zip")
    gen = ExcelGenerator(_report(region_records, region_definition)).set_template(broken)
    assert gen.template_path is None
    assert gen.generate().active["A13"].value == "Grand total"


def test_build_excel_from_template_file(tmp_path, template_path, region_records, region_definition):
    out = build_excel(_report(region_records, region_definition), tmp_path / "out" / "sales.xlsx",
                      template=template_path)

    assert out.exists()
    ws = load_workbook(out).active
    assert ws["A1"].value == "Sales"
    assert _cols(ws, 3) == ("N", None)
    assert _cols(ws, 4) == (1, "100,00")
    assert _cols(ws, 6) == ("Total N", "150,00")
    assert _cols(ws, 10) == ("Grand total", "180,00")
    assert ws["B4"].hyperlink.target == "/orders/1"
    assert {r.coord for r in ws.merged_cells.ranges} == {"A3:B3", "A7:B7", "A11:B11"}


def test_empty_report_keeps_footer(tmp_path, template_path, region_definition):
    out = build_excel(_report([], region_definition), tmp_path / "empty.xlsx", template=template_path)
    ws = load_workbook(out).active
    assert _cols(ws, 3) == ("Grand total", "0,00")
    assert ws["A4"].value == "notes"
