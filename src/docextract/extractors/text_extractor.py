# src/docextract/extractors/text_extractor.py
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from docextract.core.errors import StrategyError
from docextract.core.types import ExtractedField, StrategyKind
from docextract.extractors.base import ExtractionStrategy
from docextract.utils.pdf_reader import extract_text

logger = logging.getLogger(__name__)


# =====================================================================
# Labeled field patterns
#
# Ordered; confidence drops as the pattern gets looser.
# =====================================================================

@dataclass(frozen=True)
class LabeledPattern:
    name: str
    pattern: re.Pattern
    confidence: float


_DATE_VALUE = (
    r"\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}"
    r"|\d{2,4}[-/.]\d{1,2}[-/.]\d{1,2}"
    r"|(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{1,2}(?:,|\s+)\s*\d{2,4}"
)

LABELED_PATTERNS: Tuple[LabeledPattern, ...] = (
    LabeledPattern(
        "Invoice Number",
        re.compile(
            r"(?:invoice|bill|receipt)(?:\s+|\s*[:#]\s*)(?:number|num|no|#)?\.?\s*[:#]?\s*"
            r"((?=[\w/-]*\d)\w+(?:[-/]\w+)*)",
            re.IGNORECASE,
        ),
        0.85,
    ),
    LabeledPattern(
        "Date",
        re.compile(
            r"(?:invoice|bill|receipt|order|date)(?:\s+|\s*[:#]\s*)(?:date|issued|created)?"
            r"\s*[:#]?\s*(" + _DATE_VALUE + r")",
            re.IGNORECASE,
        ),
        0.9,
    ),
    LabeledPattern(
        "Total Amount",
        re.compile(
            r"(?:total|amount|sum|balance|due)(?:\s+|\s*[:#]\s*)(?:due|amount|payable)?"
            r"\s*[:#]?\s*([$€£]?\s*(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{2})?)",
            re.IGNORECASE,
        ),
        0.9,
    ),
    LabeledPattern(
        "Customer Name",
        re.compile(
            r"(?:customer|client|vendor|supplier|bill to|sold to)(?:\s+|\s*[:#]\s*)"
            r"(?:name|company)?\s*[:#]?\s*([A-Za-z0-9 \t.,&'-]{2,40}?)(?:\r|\n|,|$)",
            re.IGNORECASE,
        ),
        0.75,
    ),
)

KEY_VALUE_CONFIDENCE = 0.7
LINE_ITEMS_CONFIDENCE = 0.7
LINE_ITEMS_FIELD = "Line Items"

_KEY_VALUE_RE = re.compile(r"^\s*([A-Za-z\s&]{2,25}?)(?:\s*[:|-]\s*|\s{2,})(.+)$")
_COLUMN_SPLIT_RE = re.compile(r"\s{2,}|\t")


# =====================================================================
# Scanners (shared with the image strategy)
# =====================================================================

def iter_labeled_matches(text: str) -> Iterator[Tuple[LabeledPattern, str, int]]:
    """Yield (pattern, value, offset) for the first hit of each labeled pattern."""
    for lp in LABELED_PATTERNS:
        m = lp.pattern.search(text)
        if not m:
            continue
        value = m.group(1).strip()
        if value:
            logger.debug("labeled hit %s: %r", lp.name, value)
            yield lp, value, m.start(1)


def find_labeled_fields(text: str) -> List[ExtractedField]:
    return [
        ExtractedField(name=lp.name, value=value, confidence=lp.confidence)
        for lp, value, _ in iter_labeled_matches(text)
    ]


def match_key_value_line(line: str) -> Optional[Tuple[str, str]]:
    """Parse "Key: value", "Key - value", "Key | value" or "Key    value"."""
    m = _KEY_VALUE_RE.match(line)
    if not m:
        return None

    key = m.group(1).strip()
    value = m.group(2).strip()

    if 1 < len(key) < 25 and value:
        return key, value
    return None


def find_key_value_pairs(text: str) -> Dict[str, str]:
    """Later lines win when the same key appears twice."""
    pairs: Dict[str, str] = {}
    for line in re.split(r"\r?\n", text):
        hit = match_key_value_line(line)
        if hit:
            pairs[hit[0]] = hit[1]
    return pairs


def squash_key(name: str) -> str:
    return re.sub(r"\s+", "", name.lower())


def find_tables(text: str) -> List[Dict[str, List]]:
    """
    Detect whitespace-aligned tables.

    A line with >= 3 columns (split on 2+ spaces or tabs) opens a table as its
    header; following lines with the same column count are rows. A line with
    fewer columns closes the table; a line with a different column count
    closes it and opens a new one. Blank lines are skipped. Tables without
    rows are dropped.
    """
    tables: List[Dict[str, List]] = []
    headers: List[str] = []
    rows: List[List[str]] = []

    def close() -> None:
        nonlocal headers, rows
        if headers and rows:
            tables.append({"headers": headers, "rows": rows})
        headers, rows = [], []

    for raw in re.split(r"\r?\n", text):
        line = raw.strip()
        if not line:
            continue

        columns = [c for c in _COLUMN_SPLIT_RE.split(line) if c]

        if len(columns) < 3:
            close()
            continue

        if not headers:
            headers = columns
        elif len(columns) == len(headers):
            rows.append(columns)
        else:
            close()
            headers = columns

    close()
    return tables


def extract_fields_from_text(text: str) -> List[ExtractedField]:
    """Labeled regex fields, then the Line Items table field, then key-value pairs."""
    fields = find_labeled_fields(text)

    tables = find_tables(text)
    if tables:
        fields.append(
            ExtractedField(
                name=LINE_ITEMS_FIELD,
                value=json.dumps(tables),
                confidence=LINE_ITEMS_CONFIDENCE,
            )
        )

    for key, value in find_key_value_pairs(text).items():
        squashed = squash_key(key)
        if any(squash_key(f.name) == squashed for f in fields):
            continue
        fields.append(ExtractedField(name=key, value=value, confidence=KEY_VALUE_CONFIDENCE))

    logger.info("text: %d fields (%d tables)", len(fields), len(tables))
    return fields


# =====================================================================
# Strategy
# =====================================================================

PDF_MAGIC = b"%PDF-"


def _is_pdf(path: Path) -> bool:
    """.pdf suffix, or a %PDF- header for extensionless files."""
    suffix = path.suffix.lower()
    if suffix == ".pdf":
        return True
    if suffix == ".txt":
        return False
    with open(path, "rb") as f:
        return f.read(len(PDF_MAGIC)) == PDF_MAGIC


def _read_plain_text(path: Path) -> str:
    data = path.read_bytes()
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("text: %s is not UTF-8, falling back to latin-1", path)
        return data.decode("latin-1")


class TextStrategy(ExtractionStrategy):
    """PDF and plain-text documents."""

    kind = StrategyKind.TEXT
    declared_kinds = frozenset({"pdf", "text"})
    extensions = frozenset({".pdf", ".txt"})

    def __init__(self, *, layout: bool = True) -> None:
        self.layout = layout

    def extract_data(self, file_path: Path) -> List[ExtractedField]:
        path = Path(file_path)
        logger.info("text: extracting from %s", path)

        try:
            if _is_pdf(path):
                text = extract_text(path, layout=self.layout)
            else:
                text = _read_plain_text(path)
        except StrategyError:
            raise
        except OSError as exc:
            raise StrategyError(f"Failed to read document: {exc}") from exc

        return extract_fields_from_text(text)
