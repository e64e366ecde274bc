from __future__ import annotations

from openpyxl import load_workbook

import run_all

DEFINITION = (
    "title: Sales\n"
    "columns:\n"
    "  - {field: id, label: Order}\n"
    "  - {field: amount, label: Amount, format: currency}\n"
    "group_by: [region]\n"
    "totalizers: [amount]\n"
)


def _inputs(tmp_path):
    data = tmp_path / "orders.csv"
    data.write_text("id,region,amount\n1,N,100\n2,N,50\n3,S,30\n", encoding="utf-8")
    definition = tmp_path / "sales.yaml"
    definition.write_text(DEFINITION, encoding="utf-8")
    return data, definition


def test_csv_to_xlsx(tmp_path):
    data, definition = _inputs(tmp_path)
    out = tmp_path / "out"

    rc = run_all.main([str(data), "--definition", str(definition), "--out", str(out)])

    assert rc == 0
    produced = sorted(p.name for p in out.glob("*.xlsx"))
    assert produced == ["sales_orders.xlsx"]
    ws = load_workbook(out / "sales_orders.xlsx").active
    assert ws["A4"].value == "Group: N"
    assert ws["B7"].value == "150,00"
    assert ws["B13"].value == "180,00"


def test_folder_input_with_template(tmp_path, template_path):
    data, definition = _inputs(tmp_path)
    folder = tmp_path / "data"
    folder.mkdir()
    data.rename(folder / data.name)
    (folder / "readme.txt").write_text("skip me", encoding="utf-8")
    out = tmp_path / "out"

    rc = run_all.main([str(folder), "--definition", str(definition), "--out", str(out),
                       "--template", str(template_path)])

    assert rc == 0
    assert sorted(p.name for p in out.glob("*.xlsx")) == ["sales_orders.xlsx"]
    ws = load_workbook(out / "sales_orders.xlsx").active
    assert ws["A3"].value == "N"
    assert ws["B10"].value == "180,00"


def test_bad_definition_and_no_inputs(tmp_path):
    data, definition = _inputs(tmp_path)
    assert run_all.main([str(data), "--definition", str(tmp_path / "missing.yaml")]) == 2
    assert run_all.main([str(tmp_path / "nothing_here"), "--definition", str(definition)]) == 2


def test_unsupported_file_counts_as_error(tmp_path):
    _, definition = _inputs(tmp_path)
    odd = tmp_path / "orders.txt"
    odd.write_text("x", encoding="utf-8")
    assert run_all.main([str(odd), "--definition", str(definition), "--out", str(tmp_path / "out")]) == 1
