# tests/test_table_extractor.py
from datetime import datetime

import openpyxl
import pytest

from docextract.core.errors import StrategyError
from docextract.extractors.table_extractor import (
    GRAND_TOTAL_FIELD,
    ROW_COUNT_FIELD,
    TabularStrategy,
    column_confidence,
    identify_document_type,
    read_delimited,
    representative_value,
)


def by_name(fields):
    return {f.name: f for f in fields}


def test_csv_total_column(make_csv):
    path = make_csv([["Total"], ["10"], ["20"], ["30"]])

    fields = by_name(TabularStrategy().extract_data(path))

    assert fields["Total"].value == "60.00"
    assert fields["Sum of Total"].value == "60.00"
    assert fields[GRAND_TOTAL_FIELD].value == "60.00"
    assert fields[ROW_COUNT_FIELD].value == "3"
    assert fields[ROW_COUNT_FIELD].confidence == 1.0
    assert fields["Total"].confidence == pytest.approx(0.85)


def test_csv_invoice_columns(make_csv):
    path = make_csv([
        ["Invoice #", "Customer", "Amount"],
        ["INV-1", "Acme", "$1,000.00"],
        ["INV-2", "Globex", "250.50"],
    ])

    fields = by_name(TabularStrategy().extract_data(path))

    assert fields["Invoice #"].value == "INV-1"
    assert fields["Customer"].value == "Acme"
    assert fields["Amount"].value == "1250.50"
    assert fields["Document Type"].value == "Invoice"
    assert fields["Document Type"].confidence == 0.8
    assert fields["Sum of Amount"].confidence == 0.85
    assert fields[GRAND_TOTAL_FIELD].confidence == 0.8


def test_blank_rows_are_skipped(make_csv):
    path = make_csv([["Name", "Qty"], ["a", "1"], ["", ""], ["b", "2"]])
    records = read_delimited(path)

    assert [r["Name"] for r in records] == ["a", "b"]


def test_representative_value_rules():
    assert representative_value(["7", "8"], "Order Number") == "7"
    assert representative_value(["1.5", "2.5"], "Unit Cost") == "4.00"
    # not all numeric: fall back to first value
    assert representative_value(["10", "n/a"], "Price") == "10"
    assert representative_value(["red", "blue"], "Color") == "red"


def test_column_confidence():
    assert column_confidence(["a", "b"], "Color") == pytest.approx(0.7)
    assert column_confidence(["a", ""], "Color") == pytest.approx(0.35)
    assert column_confidence(["10", "", "x"], "Amount") == pytest.approx(0.85 * (1 / 3 + 1 / 4))
    assert column_confidence(["2024-01-02", "soon"], "Ship Date") == pytest.approx(0.85 * 0.75)
    assert column_confidence([], "Amount") == 0.0


def test_identify_document_type():
    assert identify_document_type(["Item", "Total"]) == "Invoice"
    assert identify_document_type(["Expense", "Cost"]) == "Expense Report"
    assert identify_document_type(["PO", "Purchase Date"]) == "Purchase Order"
    assert identify_document_type(["SKU", "Stock"]) == "Inventory"
    assert identify_document_type(["Color"]) is None


def test_tsv(tmp_path):
    path = tmp_path / "rows.tsv"
    path.write_text("Item\tPrice\nA\t1.25\nB\t2.75\n", encoding="utf-8")

    fields = by_name(TabularStrategy().extract_data(path))
    assert fields["Price"].value == "4.00"
    assert fields["Sum of Price"].value == "4.00"
    assert GRAND_TOTAL_FIELD not in fields


def test_xlsx(tmp_path):
    path = tmp_path / "stock.xlsx"
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(["Item", "Quantity", "Price", "Received"])
    ws.append(["Widget", 2, 10.5, datetime(2024, 3, 15)])
    ws.append(["Gadget", 1, 4.5, datetime(2024, 3, 16)])
    wb.save(path)

    fields = by_name(TabularStrategy().extract_data(path))

    assert fields["Item"].value == "Widget"
    assert fields["Quantity"].value == "2"
    assert fields["Price"].value == "15.00"
    assert fields["Received"].value == "2024-03-15"
    assert fields["Document Type"].value == "Inventory"
    assert fields[ROW_COUNT_FIELD].value == "2"


def test_header_only_sheet(make_csv):
    path = make_csv([["Total", "Name"]])
    assert TabularStrategy().extract_data(path) == []


def test_corrupt_workbook(tmp_path):
    path = tmp_path / "bad.xlsx"
    path.write_bytes(b"definitely not a zip")

    with pytest.raises(StrategyError):
        TabularStrategy().extract_data(path)


def test_supports_file_type():
    strategy = TabularStrategy()
    assert strategy.supports_file_type("spreadsheet", "")
    assert strategy.supports_file_type("", ".xlsx")
    assert not strategy.supports_file_type("pdf", ".pdf")


def test_extensionless_workbook(tmp_path):
    saved = tmp_path / "export.xlsx"
    wb = openpyxl.Workbook()
    wb.active.append(["Total"])
    for v in (10, 20, 30):
        wb.active.append([v])
    wb.save(saved)
    path = saved.rename(tmp_path / "export")

    fields = by_name(TabularStrategy().extract_data(path))

    assert fields["Total"].value == "60.00"
    assert fields[ROW_COUNT_FIELD].value == "3"
