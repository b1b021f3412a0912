# tests/test_text_extractor.py
import json

import pytest

from docextract.core.errors import StrategyError
from docextract.extractors.text_extractor import (
    LINE_ITEMS_FIELD,
    TextStrategy,
    extract_fields_from_text,
    find_key_value_pairs,
    find_tables,
    match_key_value_line,
)


def by_name(fields):
    return {f.name: f for f in fields}


def test_invoice_number_label():
    fields = extract_fields_from_text("Invoice Number: INV-42")

    assert len(fields) == 1
    f = fields[0]
    assert f.name == "Invoice Number"
    assert f.value == "INV-42"
    assert 0.8 <= f.confidence <= 0.9


def test_labeled_fields_from_invoice_text():
    text = "\n".join([
        "ACME Supplies",
        "Invoice No. A-1001",
        "Invoice Date: 03/15/2024",
        "Customer: Globex Corporation",
        "Total Due: $1,234.50",
    ])
    fields = by_name(extract_fields_from_text(text))

    assert fields["Invoice Number"].value == "A-1001"
    assert fields["Date"].value == "03/15/2024"
    assert fields["Date"].confidence == 0.9
    assert fields["Customer Name"].value == "Globex Corporation"
    assert fields["Total Amount"].value == "$1,234.50"


def test_key_value_pairs():
    assert match_key_value_line("Payment Terms: Net 30") == ("Payment Terms", "Net 30")
    assert match_key_value_line("Ship Via | Ground") == ("Ship Via", "Ground")
    assert match_key_value_line("no separator here") is None

    pairs = find_key_value_pairs("Reference: A\nReference: B")
    assert pairs == {"Reference": "B"}


def test_key_value_fields_skip_labeled_names():
    text = "Invoice Number: INV-42\nPayment Terms: Net 30"
    fields = by_name(extract_fields_from_text(text))

    assert set(fields) == {"Invoice Number", "Payment Terms"}
    assert fields["Payment Terms"].confidence == 0.7


def test_find_tables():
    text = "Item    Qty    Price\nWidget    2    10.00\n\nGadget    1    5.00\nThanks"
    tables = find_tables(text)

    assert tables == [
        {
            "headers": ["Item", "Qty", "Price"],
            "rows": [["Widget", "2", "10.00"], ["Gadget", "1", "5.00"]],
        }
    ]


def test_find_tables_splits_on_column_count_change():
    text = "A  B  C\n1  2  3\nW  X  Y  Z\n5  6  7  8"
    tables = find_tables(text)

    assert [t["headers"] for t in tables] == [["A", "B", "C"], ["W", "X", "Y", "Z"]]


def test_find_tables_drops_header_only_tables():
    assert find_tables("A  B  C\nshort line\n1  2  3") == []


def test_line_items_field():
    text = "Item    Qty    Price\nWidget    2    10.00"
    fields = by_name(extract_fields_from_text(text))

    assert json.loads(fields[LINE_ITEMS_FIELD].value) == [
        {"headers": ["Item", "Qty", "Price"], "rows": [["Widget", "2", "10.00"]]}
    ]
    assert fields[LINE_ITEMS_FIELD].confidence == 0.7


def test_no_fields_in_empty_text():
    assert extract_fields_from_text("") == []


def test_supports_file_type():
    strategy = TextStrategy()
    assert strategy.supports_file_type("pdf", "")
    assert strategy.supports_file_type("PDF", ".bin")
    assert strategy.supports_file_type("", ".TXT")
    assert not strategy.supports_file_type("spreadsheet", ".csv")


def test_plain_text_file(tmp_path):
    path = tmp_path / "note.txt"
    path.write_text("Invoice Number: INV-42\n", encoding="utf-8")

    fields = TextStrategy().extract_data(path)
    assert fields[0].name == "Invoice Number"
    assert fields[0].confidence == 0.85


def test_pdf_file(make_pdf):
    path = make_pdf([
        "Invoice Number: INV-1001",
        "Date: 03/15/2024",
        "Customer: Globex Corporation",
        "Payment Terms: Net 30",
        "Total Amount: $1,234.50",
        ("Item", "Qty", "Price"),
        ("Widget", "2", "10.00"),
        ("Gadget", "1", "5.00"),
    ])

    fields = by_name(TextStrategy().extract_data(path))

    assert fields["Invoice Number"].value == "INV-1001"
    assert fields["Total Amount"].value == "$1,234.50"
    assert fields["Customer Name"].value == "Globex Corporation"
    assert fields["Customer Name"].confidence == 0.75
    assert fields["Payment Terms"].value == "Net 30"
    assert json.loads(fields[LINE_ITEMS_FIELD].value) == [
        {
            "headers": ["Item", "Qty", "Price"],
            "rows": [["Widget", "2", "10.00"], ["Gadget", "1", "5.00"]],
        }
    ]


def test_extensionless_pdf_is_read_as_pdf(make_pdf):
    path = make_pdf(["Invoice Number: INV-1002"], name="download")

    fields = by_name(TextStrategy().extract_data(path))
    assert fields["Invoice Number"].value == "INV-1002"


def test_extensionless_text_is_read_as_text(tmp_path):
    path = tmp_path / "notes"
    path.write_text("Invoice Number: INV-42\n", encoding="utf-8")

    fields = by_name(TextStrategy().extract_data(path))
    assert fields["Invoice Number"].value == "INV-42"


def test_unreadable_pdf(tmp_path):
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"not a pdf at all")

    with pytest.raises(StrategyError):
        TextStrategy().extract_data(path)
