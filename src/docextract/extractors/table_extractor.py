# src/docextract/extractors/table_extractor.py
from __future__ import annotations

import csv
import logging
import re
import zipfile
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import openpyxl

from docextract.core.errors import StrategyError
from docextract.core.types import ExtractedField, StrategyKind
from docextract.extractors.base import ExtractionStrategy
from docextract.utils.numeric_parser import parse_number

logger = logging.getLogger(__name__)

Row = Dict[str, str]


# ============================================================
# Header keyword tables
# ============================================================

FIRST_VALUE_KEYWORDS = ("id", "number", "date", "name")
SUM_KEYWORDS = ("amount", "total", "price", "cost", "value")
IMPORTANT_KEYWORDS = ("total", "amount", "invoice", "date", "customer", "vendor", "id")
NUMERIC_KEYWORDS = ("amount", "price", "cost", "total")
GRAND_TOTAL_KEYWORDS = ("total", "amount")

DEFAULT_COLUMN_CONFIDENCE = 0.7
IMPORTANT_COLUMN_CONFIDENCE = 0.85
ROW_COUNT_CONFIDENCE = 1.0
DOCUMENT_TYPE_CONFIDENCE = 0.8
COLUMN_SUM_CONFIDENCE = 0.85
GRAND_TOTAL_CONFIDENCE = 0.8

WORKBOOK_EXTENSIONS = (".xlsx", ".xlsm")

ROW_COUNT_FIELD = "_metadata_row_count"
DOCUMENT_TYPE_FIELD = "Document Type"
GRAND_TOTAL_FIELD = "Grand Total"

_CELL_DATE_RE = re.compile(r"^\d{1,4}[/\-.]\d{1,2}[/\-.]\d{1,4}$")


def _has_any(header: str, keywords: Sequence[str]) -> bool:
    return any(k in header for k in keywords)


# ============================================================
# Readers
# ============================================================

def _cell_to_str(cell: Any) -> str:
    if cell is None:
        return ""
    if isinstance(cell, datetime):
        if cell.time() == datetime.min.time():
            return cell.date().isoformat()
        return cell.isoformat(sep=" ")
    if isinstance(cell, date):
        return cell.isoformat()
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    return str(cell)


def _rows_to_records(rows: Sequence[Sequence[Any]]) -> List[Row]:
    """First row is the header. Cells beyond the header width are dropped."""
    if not rows:
        return []

    headers = [_cell_to_str(h).strip() for h in rows[0]]
    records: List[Row] = []

    for row in rows[1:]:
        cells = [_cell_to_str(c) for c in row]
        if not any(c.strip() for c in cells):
            continue
        record: Row = {}
        for i, header in enumerate(headers):
            if header in record:
                continue  # first column wins on duplicate headers
            record[header] = cells[i] if i < len(cells) else ""
        records.append(record)

    return records


def read_delimited(path: Path, delimiter: str = ",") -> List[Row]:
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        rows = list(csv.reader(f, delimiter=delimiter))
    return _rows_to_records(rows)


def read_workbook(path: Path) -> List[Row]:
    """
    First worksheet of an .xlsx/.xlsm workbook, cached formula values.
    Opened from a file handle so extensionless downloads are accepted.
    """
    with open(path, "rb") as f:
        wb = openpyxl.load_workbook(f, read_only=True, data_only=True)
        try:
            ws = wb.worksheets[0]
            rows = [list(r) for r in ws.iter_rows(values_only=True)]
        finally:
            wb.close()
    return _rows_to_records(rows)


# ============================================================
# Column analysis
# ============================================================

def representative_value(values: Sequence[str], header: str) -> str:
    """
    Pick the value standing for a whole column:
      - id / number / date / name headers: first value
      - amount / total / price / cost / value headers: sum when all numeric
      - otherwise: first value
    `values` holds the non-empty cells only.
    """
    lowered = header.lower()

    if _has_any(lowered, FIRST_VALUE_KEYWORDS):
        return values[0]

    if _has_any(lowered, SUM_KEYWORDS):
        numbers = [parse_number(v) for v in values]
        if all(n is not None for n in numbers):
            return f"{sum(numbers):.2f}"

    return values[0]


def column_confidence(all_values: Sequence[str], header: str) -> float:
    """
    Base 0.7 (0.85 for important headers) scaled by consistency.

    Consistency is the non-empty fraction over all rows; numeric and date
    columns blend it 50/50 with the parseable fraction of their non-empty
    cells.
    """
    if not all_values:
        return 0.0

    lowered = header.lower()
    base = IMPORTANT_COLUMN_CONFIDENCE if _has_any(lowered, IMPORTANT_KEYWORDS) else DEFAULT_COLUMN_CONFIDENCE

    non_empty = [v for v in all_values if v.strip()]
    consistency = len(non_empty) / len(all_values)
    if not non_empty:
        return 0.0

    if _has_any(lowered, NUMERIC_KEYWORDS):
        numeric = sum(1 for v in non_empty if parse_number(v) is not None) / len(non_empty)
        return base * (consistency * 0.5 + numeric * 0.5)

    if "date" in lowered:
        dated = sum(1 for v in non_empty if _CELL_DATE_RE.match(v.strip())) / len(non_empty)
        return base * (consistency * 0.5 + dated * 0.5)

    return base * consistency


def identify_document_type(headers: Sequence[str]) -> Optional[str]:
    lowered = [h.lower() for h in headers]

    def any_has(word: str) -> bool:
        return any(word in h for h in lowered)

    if any_has("invoice") or (any_has("total") and any_has("item")):
        return "Invoice"
    if any_has("expense") or any_has("claim"):
        return "Expense Report"
    if any_has("order") or any_has("purchase"):
        return "Purchase Order"
    if any_has("inventory") or any_has("stock") or any_has("quantity"):
        return "Inventory"
    return None


def summary_fields(records: Sequence[Row], headers: Sequence[str]) -> List[ExtractedField]:
    """`Sum of <header>` per amount-like column, plus one `Grand Total`."""
    out: List[ExtractedField] = []
    has_grand_total = False

    for header in headers:
        lowered = header.lower()
        if not _has_any(lowered, NUMERIC_KEYWORDS):
            continue

        numbers = [parse_number(r.get(header, "")) for r in records]
        numbers = [n for n in numbers if n is not None]
        if not numbers:
            continue

        total = f"{sum(numbers):.2f}"
        out.append(ExtractedField(name=f"Sum of {header}", value=total, confidence=COLUMN_SUM_CONFIDENCE))

        if not has_grand_total and _has_any(lowered, GRAND_TOTAL_KEYWORDS):
            out.append(ExtractedField(name=GRAND_TOTAL_FIELD, value=total, confidence=GRAND_TOTAL_CONFIDENCE))
            has_grand_total = True

    return out


def process_records(records: Sequence[Row]) -> List[ExtractedField]:
    """Column fields, then row count, document type and column sums."""
    if not records:
        return []

    headers = list(records[0].keys())
    fields: List[ExtractedField] = []

    for header in headers:
        if not header.strip():
            continue

        all_values = [r.get(header, "") for r in records]
        values = [v for v in all_values if v.strip()]
        if not values:
            logger.debug("table: skipping empty column %r", header)
            continue

        fields.append(
            ExtractedField(
                name=header,
                value=representative_value(values, header),
                confidence=column_confidence(all_values, header),
            )
        )

    fields.append(ExtractedField(name=ROW_COUNT_FIELD, value=str(len(records)), confidence=ROW_COUNT_CONFIDENCE))

    doc_type = identify_document_type(headers)
    if doc_type:
        fields.append(ExtractedField(name=DOCUMENT_TYPE_FIELD, value=doc_type, confidence=DOCUMENT_TYPE_CONFIDENCE))

    fields.extend(summary_fields(records, headers))

    logger.info("table: %d rows, %d fields", len(records), len(fields))
    return fields


# ============================================================
# Strategy
# ============================================================

class TabularStrategy(ExtractionStrategy):
    """CSV, TSV and Excel workbooks."""

    kind = StrategyKind.TABULAR
    declared_kinds = frozenset({"spreadsheet"})
    extensions = frozenset({".csv", ".tsv", ".xlsx", ".xlsm"})

    def extract_data(self, file_path: Path) -> List[ExtractedField]:
        path = Path(file_path)
        suffix = path.suffix.lower()
        logger.info("table: extracting from %s", path)

        try:
            if suffix in WORKBOOK_EXTENSIONS or (not suffix and zipfile.is_zipfile(path)):
                records = read_workbook(path)
            elif suffix == ".tsv":
                records = read_delimited(path, delimiter="\t")
            else:
                records = read_delimited(path)
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise StrategyError(f"Failed to extract data from spreadsheet: {exc}") from exc
        except Exception as exc:
            # openpyxl surfaces corrupt archives as zipfile/KeyError/ValueError
            logger.error("table: failed to open workbook %s: %s", path, exc)
            raise StrategyError(f"Failed to extract data from spreadsheet: {exc}") from exc

        return process_records(records)
